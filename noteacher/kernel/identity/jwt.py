"""
Access-token verification for the external identity provider.

The provider signs HS256 JWTs with a shared secret. This service only needs
to read the subject and role; minting is kept for local tooling and tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from noteacher.config import get_settings


class UserRole(str, Enum):
    """Roles carried in the provider's `role` claim."""
    USER = "user"
    ADMIN = "admin"


class AccessTokenPayload(BaseModel):
    """Decoded access token claims."""

    sub: uuid.UUID
    email: Optional[str] = None
    role: UserRole = UserRole.USER
    exp: datetime
    iat: Optional[datetime] = None


class AuthenticatedUser(BaseModel):
    """The acting user of a request."""

    id: uuid.UUID
    email: Optional[str] = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class JWTManager:
    """
    JWT creation and verification against the provider's shared secret.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.identity_jwt_secret
        self.algorithm = algorithm or settings.identity_jwt_algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        user_id: uuid.UUID,
        email: Optional[str] = None,
        role: UserRole = UserRole.USER,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """
        Create a signed access token.

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))
        payload = {
            "sub": str(user_id),
            "role": UserRole(role).value,
            "exp": expire,
            "iat": now,
            "type": "access",
        }
        if email:
            payload["email"] = email
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return token, expire

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """
        Verify and decode an access token.

        Returns:
            AccessTokenPayload if valid, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        # Refresh tokens from the provider are not accepted here
        if payload.get("type", "access") != "access":
            return None

        try:
            return AccessTokenPayload(
                sub=payload["sub"],
                email=payload.get("email"),
                role=payload.get("role", UserRole.USER.value),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=(
                    datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
                    if "iat" in payload
                    else None
                ),
            )
        except (KeyError, ValidationError):
            return None


@lru_cache
def get_jwt_manager() -> JWTManager:
    """Get the default JWT manager."""
    return JWTManager()


def verify_access_token(token: str) -> Optional[AccessTokenPayload]:
    """Verify an access token with the default manager."""
    return get_jwt_manager().verify_access_token(token)
