"""Admin authentication dependency for the editorial endpoints."""

import hmac
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from gojipedia.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Optional bearer token scheme - won't reject missing tokens,
# allowing the dependency to return a clear 401 instead of 403.
_bearer_scheme = HTTPBearer(auto_error=False)


def _key_matches(token: str) -> bool:
    # Constant-time comparison
    return hmac.compare_digest(
        token.encode("utf-8"),
        settings.admin_api_key.encode("utf-8"),
    )


async def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """
    Dependency that enforces admin API key authentication.

    The client must send:
        Authorization: Bearer <ADMIN_API_KEY>

    Returns the validated API key on success.
    """
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin authentication not configured",
        )

    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin API key required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not _key_matches(credentials.credentials):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning("Failed admin auth attempt from %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return credentials.credentials
