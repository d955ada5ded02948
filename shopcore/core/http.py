"""HTTP client factory for outbound API calls.

Provides per-service HTTP clients with connection pooling, timeouts,
and proper resource management.
"""

import httpx

from shopcore.core.settings import get_settings

# Default timeout configuration (seconds)
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 5.0

# Module-level client storage for singleton pattern
_email_client: httpx.AsyncClient | None = None


def create_http_client(
    base_url: str = "",
    max_connections: int = 20,
    max_keepalive_connections: int = 10,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    pool_timeout: float = DEFAULT_POOL_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create a configured async HTTP client.

    Args:
        base_url: Base URL for all requests (empty string for none)
        max_connections: Maximum number of concurrent connections
        max_keepalive_connections: Maximum idle connections to keep alive
        connect_timeout: Timeout for establishing connection
        read_timeout: Timeout for reading response
        write_timeout: Timeout for sending request
        pool_timeout: Timeout for acquiring connection from pool
        transport: Optional custom transport (tests use httpx.MockTransport)

    Returns:
        Configured httpx.AsyncClient instance
    """
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=pool_timeout,
        ),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        ),
        transport=transport,
    )


def get_email_client() -> httpx.AsyncClient:
    """Get the singleton HTTP client for the email provider.

    Connect and socket timeouts both follow EMAIL_TIMEOUT_SECONDS so a
    stalled provider turns into a typed failure instead of a hung request.
    The client is closed via close_email_client() during shutdown.
    """
    global _email_client
    if _email_client is None:
        settings = get_settings()
        _email_client = create_http_client(
            base_url=settings.resend_base_url,
            max_connections=10,
            max_keepalive_connections=5,
            connect_timeout=settings.email_timeout_seconds,
            read_timeout=settings.email_timeout_seconds,
            write_timeout=settings.email_timeout_seconds,
        )
    return _email_client


async def close_email_client() -> None:
    """Close the email HTTP client and release resources."""
    global _email_client
    if _email_client is not None:
        await _email_client.aclose()
        _email_client = None
