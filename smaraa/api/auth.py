"""
API authentication: shared secret in X-API-KEY plus an optional IP allowlist.
"""

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from smaraa.config.settings import get_settings

# API key header scheme
api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def _check_client_ip(request: Request) -> None:
    allowed = get_settings().allowed_ip_list
    if not allowed:
        return
    client_ip = request.client.host if request.client else None
    if client_ip not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Client address not allowed",
        )


async def verify_api_key(
    request: Request,
    api_key: str | None = Security(api_key_header),
) -> str:
    """
    Verify the caller's address and API key.

    Returns:
        The validated API key

    Raises:
        HTTPException: 403 for a disallowed address, 401 for a missing or invalid key
    """
    _check_client_ip(request)

    valid_keys = get_settings().api_key_list
    # If no API keys configured, allow all requests (dev mode)
    if not valid_keys:
        return "dev-mode"

    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-KEY header.",
        )

    if api_key not in valid_keys:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )

    return api_key
