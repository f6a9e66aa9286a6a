"""
Session Token Manager for the Marketing Platform

Issues and verifies the signed session tokens handed out after a
successful login.
"""

import jwt
import uuid
import secrets
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from enum import Enum
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class SessionRole(Enum):
    """Roles carried in a session token"""
    ADMIN = "Admin"
    STAFF = "Staff"


@dataclass
class SessionClaims:
    """Claims stored in a session token"""
    user_id: str
    username: str
    name: str
    role: SessionRole = SessionRole.STAFF

    @property
    def is_admin(self) -> bool:
        return self.role == SessionRole.ADMIN


class JWTManager:
    """
    Session JWT manager

    Features:
    - Self-issued HS256 session tokens
    - Role claim used for admin-only endpoints
    - Verification returns a result dict instead of raising
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: str = "HS256",
        issuer: str = "marketing_platform",
        access_token_expiry: int = 28800,  # 8 hours
    ):
        """
        Initialize JWT Manager

        Args:
            secret_key: Secret key for signing tokens (will auto-generate if not provided)
            algorithm: JWT algorithm (default: HS256)
            issuer: Token issuer identifier
            access_token_expiry: Session token expiry in seconds
        """
        import os

        # Get secret from environment or generate one
        self.secret_key = secret_key or os.getenv("JWT_SECRET") or self._generate_secret()
        self.algorithm = algorithm
        self.issuer = issuer
        self.access_token_expiry = access_token_expiry

        # Warn if using default secret
        if not secret_key and not os.getenv("JWT_SECRET"):
            logger.warning(
                "No JWT_SECRET provided - using generated secret. "
                "Sessions will not survive a restart!"
            )

    def _generate_secret(self) -> str:
        """Generate a secure random secret"""
        return secrets.token_urlsafe(64)

    def create_access_token(
        self,
        claims: SessionClaims,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a session token

        Args:
            claims: Session claims
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT token string
        """
        now = datetime.now(tz=timezone.utc)
        expires = now + (expires_delta or timedelta(seconds=self.access_token_expiry))

        payload = {
            "iss": self.issuer,
            "sub": claims.user_id,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
            "jti": str(uuid.uuid4()),
            "username": claims.username,
            "name": claims.name,
            "role": claims.role.value,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        logger.debug(f"Created session token for user: {claims.username}, expires: {expires}")
        return token

    def verify_token(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """
        Verify and decode a session token

        Args:
            token: JWT token string
            verify_exp: Verify expiration (default: True)

        Returns:
            Dictionary with verification result and claims
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"verify_exp": verify_exp}
            )
        except jwt.ExpiredSignatureError:
            return {
                "valid": False,
                "error": "Token has expired"
            }
        except jwt.InvalidIssuerError:
            return {
                "valid": False,
                "error": "Invalid token issuer"
            }
        except jwt.InvalidTokenError as e:
            return {
                "valid": False,
                "error": f"Invalid token: {str(e)}"
            }

        try:
            role = SessionRole(payload.get("role", SessionRole.STAFF.value))
        except ValueError:
            return {
                "valid": False,
                "error": f"Unknown role: {payload.get('role')}"
            }

        return {
            "valid": True,
            "claims": SessionClaims(
                user_id=payload.get("sub"),
                username=payload.get("username", ""),
                name=payload.get("name", ""),
                role=role,
            ),
            "expires_at": datetime.fromtimestamp(payload.get("exp", 0), tz=timezone.utc),
            "jti": payload.get("jti"),
        }


# Singleton instance for application-wide use
_jwt_manager_instance: Optional[JWTManager] = None


def get_jwt_manager(
    secret_key: Optional[str] = None,
    algorithm: str = "HS256",
    issuer: str = "marketing_platform",
    access_token_expiry: int = 28800,
) -> JWTManager:
    """
    Get or create JWT manager singleton instance

    Args:
        secret_key: Secret key for signing tokens
        algorithm: JWT algorithm
        issuer: Token issuer
        access_token_expiry: Session token expiry in seconds

    Returns:
        JWTManager instance
    """
    global _jwt_manager_instance

    if _jwt_manager_instance is None:
        _jwt_manager_instance = JWTManager(
            secret_key=secret_key,
            algorithm=algorithm,
            issuer=issuer,
            access_token_expiry=access_token_expiry,
        )

    return _jwt_manager_instance
