"""Zoom API client: account-credentials token, recording lookup, transcript download."""

import base64
from urllib.parse import quote

import httpx
import structlog
from opentelemetry import trace
from pydantic import ValidationError

from vtt_relay.config import Settings
from vtt_relay.errors import (
    ConfigurationError,
    TokenFetchError,
    TranscriptNotFoundError,
    ZoomAPIError,
)
from vtt_relay.http_client import response_body
from vtt_relay.schemas import RecordingFile

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


def encode_meeting_id(meeting_id: str) -> str:
    """URL-encode a meeting id or UUID for a path segment.

    UUIDs that begin with "/" or contain "//" must be encoded twice.
    """
    encoded = quote(meeting_id, safe="")
    if meeting_id.startswith("/") or "//" in meeting_id:
        encoded = quote(encoded, safe="")
    return encoded


async def fetch_access_token(
    client: httpx.AsyncClient,
    client_id: str,
    client_secret: str,
    account_id: str,
    token_url: str,
) -> str:
    """Run the account_credentials grant and return the bearer token. Raises TokenFetchError."""
    credentials = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    try:
        response = await client.post(
            token_url,
            params={"grant_type": "account_credentials", "account_id": account_id},
            headers={"Authorization": f"Basic {credentials}"},
        )
    except httpx.HTTPError as e:
        raise TokenFetchError(f"Token request failed: {e}") from e

    payload = response_body(response)
    if not response.is_success:
        raise TokenFetchError(
            f"Token endpoint responded with {response.status_code}", details=payload
        )
    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not token:
        raise TokenFetchError("Token response did not include access_token", details=payload)
    return token


class ZoomClient:
    """Sequential token → recordings → download flow for one request."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.client = client

    async def get_access_token(self) -> str:
        s = self.settings
        if not (s.ZOOM_CLIENT_ID and s.ZOOM_CLIENT_SECRET and s.ZOOM_ACCOUNT_ID):
            raise ConfigurationError("Zoom OAuth credentials are not configured")
        return await fetch_access_token(
            self.client,
            s.ZOOM_CLIENT_ID,
            s.ZOOM_CLIENT_SECRET,
            s.ZOOM_ACCOUNT_ID,
            s.ZOOM_OAUTH_URL,
        )

    async def list_recording_files(self, meeting_id: str, token: str) -> list[RecordingFile]:
        url = f"{self.settings.ZOOM_API_BASE_URL.rstrip('/')}/meetings/{encode_meeting_id(meeting_id)}/recordings"
        try:
            response = await self.client.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            raise ZoomAPIError(f"Recording lookup failed: {e}") from e

        payload = response_body(response)
        if not response.is_success:
            raise ZoomAPIError(
                f"Recording lookup responded with {response.status_code}", details=payload
            )
        if not isinstance(payload, dict):
            raise ZoomAPIError("Recording lookup returned an unexpected body", details=payload)
        try:
            return [RecordingFile.model_validate(f) for f in payload.get("recording_files") or []]
        except ValidationError as e:
            raise ZoomAPIError("Recording lookup returned malformed recording_files") from e

    @staticmethod
    def find_transcript_file(files: list[RecordingFile]) -> RecordingFile:
        for recording_file in files:
            if recording_file.is_transcript and recording_file.download_url:
                return recording_file
        raise TranscriptNotFoundError()

    async def download_transcript(self, recording_file: RecordingFile, token: str) -> str:
        try:
            response = await self.client.get(
                recording_file.download_url,
                headers={"Authorization": f"Bearer {token}"},
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            raise ZoomAPIError(f"Transcript download failed: {e}") from e
        if not response.is_success:
            raise ZoomAPIError(
                f"Transcript download responded with {response.status_code}",
                details=response_body(response),
            )
        return response.text

    async def fetch_meeting_transcript(self, meeting_id: str) -> str:
        """Return the raw VTT text of the meeting's transcript recording file."""
        with tracer.start_as_current_span("fetch_meeting_transcript") as span:
            span.set_attribute("zoom.meeting_id", meeting_id)
            logger.info("zoom.fetch_transcript.start", meeting_id=meeting_id)

            token = await self.get_access_token()
            files = await self.list_recording_files(meeting_id, token)
            logger.info(
                "zoom.fetch_transcript.recordings_listed",
                meeting_id=meeting_id,
                file_count=len(files),
            )
            transcript_file = self.find_transcript_file(files)
            vtt_text = await self.download_transcript(transcript_file, token)

            logger.info(
                "zoom.fetch_transcript.downloaded",
                meeting_id=meeting_id,
                file_id=transcript_file.id,
                length=len(vtt_text),
            )
            return vtt_text
