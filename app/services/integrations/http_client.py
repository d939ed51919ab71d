"""
HTTP client helper with standardized timeout configuration.

Ensures all outbound webhook calls have explicit timeouts so a slow or
hanging receiver can never keep a submission request from returning.
"""

import asyncio

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0


def get_httpx_timeout(total_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> httpx.Timeout:
    """
    Get timeout configuration for an outbound webhook call.

    Args:
        total_seconds: Upper bound for reading the response (spreadsheet 10s, CRM 15s)

    Returns:
        httpx.Timeout with connect/write/pool capped at 5s
    """
    # httpx.Timeout API: first arg is default timeout, then keyword args for specific timeouts
    short = min(5.0, total_seconds)
    return httpx.Timeout(
        total_seconds,
        connect=short,  # Time to establish connection
        read=total_seconds,  # Time to read response
        write=short,  # Time to write request
        pool=short,  # Time to get connection from pool
    )


def create_httpx_client(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient with standardized timeout configuration.

    Args:
        timeout_seconds: Read timeout for the call
        transport: Optional transport (tests pass httpx.MockTransport)

    Returns:
        httpx.AsyncClient configured with appropriate timeouts
    """
    return httpx.AsyncClient(timeout=get_httpx_timeout(timeout_seconds), transport=transport)


async def post_with_deadline(
    client: httpx.AsyncClient, url: str, deadline_seconds: float, **kwargs
) -> httpx.Response:
    """
    POST with a hard deadline on the whole call.

    httpx timeouts bound each connect/read/write separately, so a receiver that
    trickles its response could exceed them in total. asyncio.wait_for caps it.

    Raises:
        TimeoutError: The call did not finish within deadline_seconds
        httpx.HTTPError: Transport or timeout errors raised by httpx itself
    """
    return await asyncio.wait_for(client.post(url, **kwargs), timeout=deadline_seconds)
