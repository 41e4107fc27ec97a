"""Shared aiohttp session and request helpers."""

import json
import logging
from typing import Any

import aiohttp

from ..exceptions import TransportError
from .types import RequestResult

logger = logging.getLogger(__name__)


async def create_session(timeout: int = 30) -> aiohttp.ClientSession:
    """Create a client session with a total request timeout."""
    return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))


def parse_json_response(text: str) -> Any:
    """Parse a JSON body, returning None when it is not valid JSON."""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


async def send_request(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    data: str | bytes | None = None,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
) -> RequestResult:
    """Send a request and capture status, headers and body.

    Raises:
        TransportError: If the request cannot be completed
    """
    logger.debug("%s %s", method, url)
    try:
        async with session.request(
            method, url, data=data, headers=headers, params=params
        ) as resp:
            body = await resp.read()
            return RequestResult(
                status_code=resp.status,
                headers=dict(resp.headers),
                data=body,
            )
    except (aiohttp.ClientError, TimeoutError) as e:
        raise TransportError(f"Request to {url} failed: {e}") from e
