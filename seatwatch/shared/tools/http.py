"""
HTTP Tools

Shared httpx plumbing for the vendor and chat clients: client creation
and mapping of transport failures and status codes onto the
AuthError / NotFoundError / TransportError taxonomy.

Each call is attempted exactly once; the next scheduled run is the retry.
"""

from typing import Any

import httpx
import structlog

from seatwatch.shared.exceptions import AuthError, NotFoundError, TransportError

log = structlog.get_logger()


def create_client(
    base_url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    auth: httpx.Auth | tuple[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an async HTTP client bound to one API."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
        headers=headers,
        auth=auth,
        transport=transport,
    )


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    service: str,
    operation: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one request and return the response if it succeeded.

    Raises:
        TransportError: On network errors and non-2xx responses not covered below
        AuthError: On 401 and 403
        NotFoundError: On 404
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.RequestError as e:
        log.warning(
            "http_request_failed",
            service=service,
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise TransportError(service, operation, error_message=str(e)) from e

    raise_for_status(response, service=service, operation=operation)
    return response


def raise_for_status(response: httpx.Response, *, service: str, operation: str) -> None:
    """Translate an unsuccessful response into the shared error taxonomy."""
    if response.is_success:
        return

    status = response.status_code
    log.warning(
        "http_error_response",
        service=service,
        operation=operation,
        status_code=status,
        body=response.text[:500],
    )

    if status in (401, 403):
        raise AuthError(
            service,
            operation,
            error_message="Invalid credentials or insufficient permissions",
            status_code=status,
        )
    if status == 404:
        raise NotFoundError(service, operation, error_message="Resource not found", status_code=status)
    raise TransportError(
        service,
        operation,
        error_message=f"Unexpected status {status}",
        status_code=status,
    )


def parse_json(response: httpx.Response, *, service: str, operation: str) -> Any:
    """Decode a JSON body, treating garbage as a transport failure."""
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(service, operation, error_message=f"Invalid JSON body: {e}") from e
