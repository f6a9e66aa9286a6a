"""
FastAPI Authentication Dependencies for Microservices

Session-token dependencies shared by the marketing endpoints.
"""

from fastapi import Depends, Header, HTTPException, status, Request
from typing import Optional
import logging

from .jwt_manager import SessionClaims, get_jwt_manager

logger = logging.getLogger(__name__)


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> SessionClaims:
    """
    Authentication dependency: a valid session token is required.

    Returns:
        SessionClaims of the logged-in user

    Raises:
        HTTPException 401: missing or invalid token
    """
    token = _extract_bearer(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = get_jwt_manager().verify_token(token)
    if not result.get("valid"):
        logger.info(f"Rejected session token for {request.url.path}: {result.get('error')}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.get("error", "Invalid session"),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return result["claims"]


async def require_admin(
    claims: SessionClaims = Depends(require_user),
) -> SessionClaims:
    """
    Authorization dependency: the session must belong to an Admin.

    Raises:
        HTTPException 403: logged in but not an Admin
    """
    if not claims.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return claims


__all__ = [
    "require_user",
    "require_admin",
]
