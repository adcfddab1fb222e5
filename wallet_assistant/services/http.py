"""Thin httpx wrappers with a hard deadline and bounded retry."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..errors import UpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_BACKOFF_SECONDS = 0.2


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


async def fetch_with_timeout(
    method: str,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    source: str = "http",
    **kwargs: Any,
) -> httpx.Response:
    """Issue one request and give up once ``timeout`` seconds have elapsed.

    The deadline covers the whole exchange, not only the connect/read phases
    httpx times individually. Network failures surface as ``UpstreamError``,
    an expired deadline as ``UpstreamTimeout``.
    """

    async with httpx.AsyncClient(transport=transport) as client:
        try:
            return await asyncio.wait_for(
                client.request(method, url, timeout=timeout, **kwargs),
                timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamTimeout(source, timeout) from exc
        except httpx.TransportError as exc:
            raise UpstreamError(source, str(exc) or type(exc).__name__) from exc


async def fetch_with_retry(
    method: str,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    retries: int = 1,
    backoff_base: float = DEFAULT_BACKOFF_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    source: str = "http",
    **kwargs: Any,
) -> httpx.Response:
    """Like ``fetch_with_timeout`` but retries network errors, 429 and 5xx.

    Backoff doubles from ``backoff_base`` on each attempt. Timeouts and
    cancellation are never retried. Once retries run out on a retryable
    status the last response is returned so the caller can report it.
    """

    attempt = 0
    while True:
        try:
            response = await fetch_with_timeout(
                method, url, timeout=timeout, transport=transport, source=source, **kwargs
            )
        except UpstreamTimeout:
            raise
        except UpstreamError as exc:
            if attempt >= retries:
                raise
            attempt += 1
            delay = backoff_base * 2 ** (attempt - 1)
            logger.warning("%s network error, retry %s in %.2fs: %s", source, attempt, delay, exc)
            await asyncio.sleep(delay)
            continue

        if is_retryable_status(response.status_code) and attempt < retries:
            attempt += 1
            delay = backoff_base * 2 ** (attempt - 1)
            logger.warning(
                "%s returned %s, retry %s in %.2fs", source, response.status_code, attempt, delay
            )
            await asyncio.sleep(delay)
            continue

        return response


__all__ = ["fetch_with_timeout", "fetch_with_retry", "is_retryable_status"]
