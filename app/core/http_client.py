"""
HTTP Client Module

Provides a globally shared httpx.AsyncClient with:
- Connection pooling for efficient reuse
- Bounded retries with exponential backoff
- Configurable timeouts

The only outbound dependency today is the payment provider, so the
defaults are tuned for a small number of short POST requests.
"""

import asyncio
import logging
from typing import Optional, Any

import httpx


logger = logging.getLogger(__name__)


# ============== Configuration ==============

# Connection pool limits
MAX_CONNECTIONS = 50
MAX_KEEPALIVE_CONNECTIONS = 10
KEEPALIVE_EXPIRY = 30  # seconds

# Timeout configuration
DEFAULT_TIMEOUT = 10.0  # seconds

# Retry configuration
MAX_RETRIES = 1
RETRY_BACKOFF_BASE = 0.5  # seconds

TRANSPORT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.RemoteProtocolError,
)


# ============== Global Client Instance ==============

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """
    Get or create the global async HTTP client.

    Returns:
        httpx.AsyncClient: Shared client instance.
    """
    global _http_client
    if _http_client is None:
        limits = httpx.Limits(
            max_connections=MAX_CONNECTIONS,
            max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
            keepalive_expiry=KEEPALIVE_EXPIRY,
        )
        timeout = httpx.Timeout(DEFAULT_TIMEOUT)

        _http_client = httpx.AsyncClient(
            limits=limits,
            timeout=timeout,
            http2=True,
        )
    return _http_client


async def close_http_client() -> None:
    """
    Close the global HTTP client.

    Should be called during application shutdown.
    """
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


# ============== Request Helpers with Retry ==============

async def request_with_retry(
    method: str,
    url: str,
    max_retries: int = MAX_RETRIES,
    timeout: Optional[float] = None,
    retry_on_server_error: bool = True,
    **kwargs: Any,
) -> httpx.Response:
    """
    Make an HTTP request with automatic retry on failure.

    Transport failures (connect errors and timeouts) are always retried.
    5xx responses are retried only when ``retry_on_server_error`` is set;
    non-idempotent calls should turn it off.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request URL
        max_retries: Maximum number of retry attempts
        timeout: Per-attempt timeout in seconds, overrides the client default
        retry_on_server_error: Whether a 5xx response triggers a retry
        **kwargs: Additional arguments passed to httpx request

    Returns:
        httpx.Response: The response object

    Raises:
        httpx.HTTPError: If all retries fail
    """
    client = get_http_client()
    if timeout is not None:
        kwargs["timeout"] = httpx.Timeout(timeout)

    for attempt in range(max_retries + 1):
        try:
            response = await client.request(method, url, **kwargs)

            if retry_on_server_error and response.status_code >= 500 and attempt < max_retries:
                wait_time = RETRY_BACKOFF_BASE * (2 ** attempt)
                logger.warning(
                    "Server error %s from %s %s, retrying in %ss",
                    response.status_code, method, url, wait_time,
                )
                await asyncio.sleep(wait_time)
                continue

            return response

        except TRANSPORT_ERRORS as e:
            if attempt >= max_retries:
                logger.error("%s %s failed after %d attempts: %s", method, url, attempt + 1, e)
                raise
            wait_time = RETRY_BACKOFF_BASE * (2 ** attempt)
            logger.warning("Transport error on %s %s, retrying in %ss: %s", method, url, wait_time, e)
            await asyncio.sleep(wait_time)

    raise httpx.HTTPError(f"Request to {url} failed after {max_retries} retries")


async def post_with_retry(url: str, **kwargs: Any) -> httpx.Response:
    """Convenience wrapper for POST requests with retry."""
    return await request_with_retry("POST", url, **kwargs)
