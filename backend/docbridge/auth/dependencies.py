"""FastAPI dependencies for auth."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docbridge.auth.crypt import Crypt
from docbridge.auth.jwt import get_subject_from_access
from docbridge.config import get_settings

security = HTTPBearer(auto_error=False)
log = logging.getLogger(__name__)


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> str:
    """Resolve Bearer token to the acting user id; raise 401 if invalid or missing."""
    if not credentials:
        log.debug("Request missing Bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = get_subject_from_access(credentials.credentials)
    if not user_id:
        log.debug("Invalid or expired access token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def get_crypt() -> Crypt:
    """Keyed hash service built from current settings; 503 when no secret is set."""
    try:
        return Crypt.from_settings(get_settings())
    except ValueError as e:
        log.error("Keyed hash service unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not configured",
        )
