"""Tests for webhook classification, challenge signing, and forwarding."""

import hashlib
import hmac
import json

import httpx
import pytest

from vtt_relay.config import Settings
from vtt_relay.errors import ConfigurationError, InvalidPayloadError
from vtt_relay.webhook import (
    EventKind,
    classify_event,
    expected_signature,
    relay_event,
    sign_token,
    verify_signature,
)

from conftest import FORWARD_URL, TRANSCRIPT_COMPLETED, WEBHOOK_SECRET, OutboundRecorder


def _mock_client(recorder: OutboundRecorder) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(recorder))


@pytest.mark.parametrize(
    ("body", "kind"),
    [
        ({"event": "endpoint.url_validation"}, EventKind.URL_VALIDATION),
        ({"event": "recording.transcript_completed"}, EventKind.TRANSCRIPT_COMPLETED),
        ({"event": "meeting.started"}, EventKind.OTHER),
        ({"event": ""}, EventKind.OTHER),
        ({"event": 42}, EventKind.OTHER),
        ({"event": ["endpoint.url_validation"]}, EventKind.OTHER),
        ({}, EventKind.OTHER),
    ],
)
def test_classify_event_is_total(body: dict, kind: EventKind) -> None:
    event = classify_event(body)
    assert event.kind is kind
    assert event.payload is body


def test_sign_token_is_hmac_sha256_hex() -> None:
    expected = hmac.new(b"S", b"abc123", hashlib.sha256).hexdigest()
    assert sign_token("abc123", "S") == expected
    assert sign_token("abc123", "S") == sign_token("abc123", "S")
    assert sign_token("abc123", "other") != expected


def test_verify_signature_accepts_matching_header() -> None:
    body = b'{"event":"meeting.started"}'
    signature = expected_signature(WEBHOOK_SECRET, "1700000000", body)
    assert signature.startswith("v0=")
    assert verify_signature(WEBHOOK_SECRET, "1700000000", body, signature) is True


def test_verify_signature_rejects_tampering_and_missing_parts() -> None:
    body = b'{"event":"meeting.started"}'
    signature = expected_signature(WEBHOOK_SECRET, "1700000000", body)
    assert verify_signature(WEBHOOK_SECRET, "1700000001", body, signature) is False
    assert verify_signature(WEBHOOK_SECRET, "1700000000", body + b" ", signature) is False
    assert verify_signature(WEBHOOK_SECRET, None, body, signature) is False
    assert verify_signature(WEBHOOK_SECRET, "1700000000", body, None) is False
    assert verify_signature("", "1700000000", body, signature) is False


@pytest.mark.asyncio
async def test_url_validation_returns_signed_token(settings: Settings) -> None:
    recorder = OutboundRecorder()
    event = classify_event({"event": "endpoint.url_validation", "payload": {"plainToken": "abc123"}})
    async with _mock_client(recorder) as client:
        result = await relay_event(event, settings, client)

    assert result.ok is True
    assert result.body == {
        "plainToken": "abc123",
        "encryptedToken": hmac.new(
            WEBHOOK_SECRET.encode(), b"abc123", hashlib.sha256
        ).hexdigest(),
        "status": "success",
    }
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_url_validation_without_plain_token_is_invalid(settings: Settings) -> None:
    event = classify_event({"event": "endpoint.url_validation", "payload": {}})
    async with _mock_client(OutboundRecorder()) as client:
        with pytest.raises(InvalidPayloadError):
            await relay_event(event, settings, client)


@pytest.mark.asyncio
async def test_url_validation_without_secret_is_configuration_error(make_settings) -> None:
    settings = make_settings(ZOOM_WEBHOOK_SECRET_TOKEN="")
    event = classify_event({"event": "endpoint.url_validation", "payload": {"plainToken": "x"}})
    async with _mock_client(OutboundRecorder()) as client:
        with pytest.raises(ConfigurationError):
            await relay_event(event, settings, client)


@pytest.mark.asyncio
async def test_transcript_completed_forwards_full_payload_once(settings: Settings) -> None:
    recorder = OutboundRecorder()
    recorder.respond = lambda _request: httpx.Response(200, json={"accepted": True})
    async with _mock_client(recorder) as client:
        result = await relay_event(classify_event(TRANSCRIPT_COMPLETED), settings, client)

    assert len(recorder.requests) == 1
    sent = recorder.requests[0]
    assert sent.method == "POST"
    assert str(sent.url) == FORWARD_URL
    assert json.loads(sent.content) == TRANSCRIPT_COMPLETED
    assert result.ok is True
    assert result.body == {
        "status": "forwarded",
        "downstreamStatus": 200,
        "downstreamBody": {"accepted": True},
    }


@pytest.mark.asyncio
async def test_downstream_503_is_reported_not_raised(settings: Settings) -> None:
    recorder = OutboundRecorder()
    recorder.respond = lambda _request: httpx.Response(503, text="maintenance")
    async with _mock_client(recorder) as client:
        result = await relay_event(classify_event(TRANSCRIPT_COMPLETED), settings, client)

    assert len(recorder.requests) == 1
    assert result.ok is False
    assert result.body["status"] == "relay_failed"
    assert result.body["downstreamStatus"] == 503
    assert result.body["downstreamBody"] == "maintenance"


@pytest.mark.asyncio
async def test_network_error_is_reported_not_raised(settings: Settings) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    recorder = OutboundRecorder()
    recorder.respond = refuse
    async with _mock_client(recorder) as client:
        result = await relay_event(classify_event(TRANSCRIPT_COMPLETED), settings, client)

    assert result.ok is False
    assert result.body == {"status": "relay_failed", "error": "connection refused"}


@pytest.mark.asyncio
async def test_missing_forward_url_is_reported(make_settings) -> None:
    settings = make_settings(WEBHOOK_FORWARD_URL="")
    recorder = OutboundRecorder()
    async with _mock_client(recorder) as client:
        result = await relay_event(classify_event(TRANSCRIPT_COMPLETED), settings, client)

    assert result.ok is False
    assert result.body["status"] == "relay_failed"
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_other_events_are_ignored_without_outbound_call(settings: Settings) -> None:
    recorder = OutboundRecorder()
    async with _mock_client(recorder) as client:
        result = await relay_event(classify_event({"event": "something.else"}), settings, client)

    assert result.kind is EventKind.OTHER
    assert result.ok is True
    assert result.body == {"status": "ignored", "event": "something.else"}
    assert recorder.requests == []
