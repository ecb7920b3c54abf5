"""Shared async HTTP client utilities for git host adapters.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts, user-agent headers, and error handling. Every remote adapter
uses this module so that HTTP behaviour is consistent and testable.

Raises ``PackageSourceUnavailableError`` (a subclass of ``LangpackError``)
on unrecoverable HTTP failures.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from langpack.exceptions import PackageSourceUnavailableError

logger = logging.getLogger(__name__)

# Timeout for all remote HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = "langpack-resolver/0.1"


async def fetch_json(
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:  # noqa: ANN401
    """Fetch a URL and parse the response as JSON.

    Args:
        url: The URL to fetch.
        params: Optional query parameters.
        headers: Extra request headers, merged over the defaults.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, used by tests.

    Returns:
        Parsed JSON response (dict or list).

    Raises:
        PackageSourceUnavailableError: On HTTP errors, timeouts, or invalid JSON.
    """
    request_headers = {"User-Agent": USER_AGENT}
    if headers:
        request_headers.update(headers)
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers=request_headers,
            follow_redirects=True,
            transport=transport,
        ) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise PackageSourceUnavailableError(
            f"Timeout fetching {url}", {"url": url}
        ) from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.warning("HTTP %d from %s", status, url)
        raise PackageSourceUnavailableError(
            f"HTTP {status} from {url}", {"url": url, "status": status}
        ) from exc
    except (httpx.RequestError, ValueError) as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise PackageSourceUnavailableError(
            f"Request error for {url}: {exc}", {"url": url}
        ) from exc
