"""Zoom webhook relay: URL-validation challenge, transcript forwarding, everything else ignored."""

import enum
import hashlib
import hmac
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from opentelemetry import trace

from vtt_relay.config import Settings
from vtt_relay.errors import ConfigurationError, InvalidPayloadError
from vtt_relay.http_client import response_body

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

SIGNATURE_VERSION = "v0"


class EventKind(str, enum.Enum):
    URL_VALIDATION = "url_validation"
    TRANSCRIPT_COMPLETED = "transcript_completed"
    OTHER = "other"


_EVENT_KINDS = {
    "endpoint.url_validation": EventKind.URL_VALIDATION,
    "recording.transcript_completed": EventKind.TRANSCRIPT_COMPLETED,
}


@dataclass(frozen=True)
class WebhookEvent:
    """A classified webhook delivery. payload is the full body as received."""

    kind: EventKind
    name: str | None
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RelayResult:
    """Outcome of relaying one event; body is returned to the webhook caller as-is."""

    kind: EventKind
    ok: bool
    body: dict[str, Any]


def classify_event(body: Mapping[str, Any]) -> WebhookEvent:
    """Classify a webhook body by its "event" field. Never fails: unknown names are OTHER."""
    name = body.get("event")
    if not isinstance(name, str):
        return WebhookEvent(kind=EventKind.OTHER, name=None, payload=body)
    return WebhookEvent(
        kind=_EVENT_KINDS.get(name, EventKind.OTHER),
        name=name,
        payload=body,
    )


def sign_token(plain_token: str, secret: str) -> str:
    """Hex HMAC-SHA256 of plain_token keyed with the webhook secret token."""
    return hmac.new(
        secret.encode("utf-8"), plain_token.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def expected_signature(secret: str, timestamp: str, raw_body: bytes) -> str:
    message = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + raw_body
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_signature(
    secret: str, timestamp: str | None, raw_body: bytes, signature: str | None
) -> bool:
    """Check an x-zm-signature header against the request timestamp and raw body."""
    if not secret or not timestamp or not signature:
        return False
    return hmac.compare_digest(expected_signature(secret, timestamp, raw_body), signature)


def answer_challenge(event: WebhookEvent, secret: str) -> RelayResult:
    """Answer endpoint.url_validation with the plain token and its signed form."""
    if not secret:
        raise ConfigurationError("ZOOM_WEBHOOK_SECRET_TOKEN is not configured")
    inner = event.payload.get("payload")
    plain_token = inner.get("plainToken") if isinstance(inner, Mapping) else None
    if not isinstance(plain_token, str) or not plain_token:
        raise InvalidPayloadError("payload.plainToken is required for endpoint.url_validation")
    return RelayResult(
        kind=event.kind,
        ok=True,
        body={
            "plainToken": plain_token,
            "encryptedToken": sign_token(plain_token, secret),
            "status": "success",
        },
    )


async def forward_event(
    event: WebhookEvent, forward_url: str, client: httpx.AsyncClient
) -> RelayResult:
    """POST the original payload to forward_url. Failures are reported, never raised."""
    if not forward_url:
        logger.error("webhook.forward_url_missing", webhook_event=event.name)
        return RelayResult(
            kind=event.kind,
            ok=False,
            body={"status": "relay_failed", "error": "WEBHOOK_FORWARD_URL is not configured"},
        )

    logger.info("webhook.forward_start", webhook_event=event.name, forward_url=forward_url)
    try:
        response = await client.post(forward_url, json=dict(event.payload))
    except httpx.HTTPError as e:
        logger.error(
            "webhook.forward_failed",
            webhook_event=event.name,
            forward_url=forward_url,
            error=str(e) or type(e).__name__,
        )
        return RelayResult(
            kind=event.kind,
            ok=False,
            body={"status": "relay_failed", "error": str(e) or type(e).__name__},
        )

    downstream_body = response_body(response)
    if not response.is_success:
        logger.error(
            "webhook.forward_rejected",
            webhook_event=event.name,
            forward_url=forward_url,
            downstream_status=response.status_code,
        )
        return RelayResult(
            kind=event.kind,
            ok=False,
            body={
                "status": "relay_failed",
                "error": f"Downstream responded with {response.status_code}",
                "downstreamStatus": response.status_code,
                "downstreamBody": downstream_body,
            },
        )

    logger.info(
        "webhook.forward_success",
        webhook_event=event.name,
        downstream_status=response.status_code,
    )
    return RelayResult(
        kind=event.kind,
        ok=True,
        body={
            "status": "forwarded",
            "downstreamStatus": response.status_code,
            "downstreamBody": downstream_body,
        },
    )


async def relay_event(
    event: WebhookEvent, settings: Settings, client: httpx.AsyncClient
) -> RelayResult:
    """Dispatch a classified event. Only TRANSCRIPT_COMPLETED touches the network."""
    with tracer.start_as_current_span("relay_webhook_event") as span:
        span.set_attribute("webhook.event", event.name or "")
        span.set_attribute("webhook.kind", event.kind.value)

        if event.kind is EventKind.URL_VALIDATION:
            logger.info("webhook.url_validation")
            return answer_challenge(event, settings.ZOOM_WEBHOOK_SECRET_TOKEN)

        if event.kind is EventKind.TRANSCRIPT_COMPLETED:
            result = await forward_event(event, settings.WEBHOOK_FORWARD_URL, client)
            span.set_attribute("webhook.forwarded", result.ok)
            return result

        logger.info("webhook.ignored", webhook_event=event.name)
        return RelayResult(
            kind=event.kind,
            ok=True,
            body={"status": "ignored", "event": event.name},
        )
