"""Outbound HTTP client dependency and response helpers."""

from collections.abc import AsyncIterator
from typing import Any

import httpx
from fastapi import Request


async def get_http_client(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    """One AsyncClient per request, bounded by HTTP_TIMEOUT_SECONDS per call."""
    timeout = request.app.state.settings.HTTP_TIMEOUT_SECONDS
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client


def response_body(response: httpx.Response) -> Any:
    """Decoded JSON body, or raw text when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text
