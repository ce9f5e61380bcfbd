"""Shared fixtures: per-test Settings, app, and outbound HTTP mocking."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from vtt_relay.config import Settings
from vtt_relay.http_client import get_http_client
from vtt_relay.main import create_app

WEBHOOK_SECRET = "test-webhook-secret"
FORWARD_URL = "https://workflow.example.com/hooks/transcripts"
VTT_BODY = "WEBVTT\n\n1\n00:00:01.000 --> 00:00:02.000\nHello from Zoom\n"
DOWNLOAD_URL = "https://zoom.test/rec/download/transcript-1"

TRANSCRIPT_COMPLETED = {
    "event": "recording.transcript_completed",
    "event_ts": 1700000000000,
    "payload": {
        "account_id": "acc-1",
        "object": {"id": 85746065432, "uuid": "4444AAAiAAAAAiAiAiiAii==", "topic": "Standup"},
    },
}


def zoom_api(request: httpx.Request) -> httpx.Response:
    """Happy-path fake of the Zoom token, recordings and download endpoints."""
    if request.url.path == "/oauth/token":
        return httpx.Response(200, json={"access_token": "tok-123", "token_type": "bearer"})
    if request.url.path.endswith("/recordings"):
        return httpx.Response(
            200,
            json={
                "id": 85746065432,
                "recording_files": [
                    {"id": "mp4-1", "file_type": "MP4", "download_url": "https://zoom.test/mp4"},
                    {
                        "id": "transcript-1",
                        "file_type": "TRANSCRIPT",
                        "file_extension": "VTT",
                        "download_url": DOWNLOAD_URL,
                        "status": "completed",
                    },
                ],
            },
        )
    if str(request.url) == DOWNLOAD_URL:
        return httpx.Response(200, text=VTT_BODY)
    return httpx.Response(404, json={"code": 404, "message": "unexpected"})


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def make_settings(upload_dir: Path) -> Callable[..., Settings]:
    """Build Settings isolated from .env, with test credentials filled in."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "ENV": "test",
            "UPLOAD_DIR": upload_dir,
            "ZOOM_CLIENT_ID": "client-id",
            "ZOOM_CLIENT_SECRET": "client-secret",
            "ZOOM_ACCOUNT_ID": "account-id",
            "ZOOM_OAUTH_URL": "https://zoom.test/oauth/token",
            "ZOOM_API_BASE_URL": "https://api.zoom.test/v2",
            "ZOOM_WEBHOOK_SECRET_TOKEN": WEBHOOK_SECRET,
            "WEBHOOK_FORWARD_URL": FORWARD_URL,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class OutboundRecorder:
    """Records outbound requests and answers them with `respond` (200 {} by default)."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda _request: httpx.Response(
            200, json={}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


@pytest.fixture
def outbound(app: FastAPI) -> OutboundRecorder:
    """Route the app's outbound HTTP calls through a MockTransport."""
    recorder = OutboundRecorder()

    async def override_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as mock_client:
            yield mock_client

    app.dependency_overrides[get_http_client] = override_http_client
    return recorder
