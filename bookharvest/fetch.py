"""HTTP GET with browser-like headers and bounded exponential retry."""

import asyncio
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from bookharvest.adapters.base import DEFAULT_ACCEPT, DEFAULT_USER_AGENT
from bookharvest.errors import FetchError, TransportError, UpstreamStatusError

log = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": DEFAULT_ACCEPT,
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}


@dataclass
class FetchResult:
    status: int
    text: str
    url: str


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retry ``attempt`` (0-based): exponential plus jitter."""
    if base_delay <= 0:
        return 0.0
    return base_delay * 2**attempt + random.uniform(0, base_delay)


async def fetch(
    url: str,
    headers: Mapping[str, str] | None = None,
    *,
    retries: int = 2,
    base_delay: float = 0.5,
    timeout: float = 10.0,
    client: httpx.AsyncClient | None = None,
) -> FetchResult:
    """GET ``url``, retrying transient failures up to ``retries`` times.

    Args:
        url: Absolute URL to fetch.
        headers: Site headers, layered over the browser defaults.
        retries: Extra attempts after the first one. Use 0 where a miss is cheap.
        base_delay: Seconds before the first retry; doubles each attempt.
        timeout: Per-request timeout in seconds.
        client: Optional client to reuse (tests inject a mock transport here).

    Returns:
        The final 2xx response.

    Raises:
        TransportError: The last attempt failed at the network level.
        UpstreamStatusError: The last attempt got a non-2xx response.
    """
    merged = {**DEFAULT_HEADERS, **(headers or {})}

    if client is None:
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as own:
            return await _fetch_with_retries(own, url, merged, retries, base_delay, timeout)
    return await _fetch_with_retries(client, url, merged, retries, base_delay, timeout)


async def _fetch_once(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str],
    timeout: float,
) -> FetchResult:
    try:
        resp = await client.get(url, headers=headers, timeout=timeout)
    except httpx.HTTPError as e:
        raise TransportError(url, f"{type(e).__name__}: {e}") from e

    if not resp.is_success:
        raise UpstreamStatusError(url, resp.status_code)
    return FetchResult(status=resp.status_code, text=resp.text, url=str(resp.url))


async def _fetch_with_retries(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str],
    retries: int,
    base_delay: float,
    timeout: float,
) -> FetchResult:
    for attempt in range(max(retries, 0)):
        try:
            return await _fetch_once(client, url, headers, timeout)
        except FetchError as e:
            delay = backoff_delay(attempt, base_delay)
            log.debug("Retrying %s in %.2fs (%s)", url, delay, e)
            await asyncio.sleep(delay)

    return await _fetch_once(client, url, headers, timeout)
