"""
Identity - verification of tokens issued by the external identity provider.
"""

from noteacher.kernel.identity.jwt import (
    AccessTokenPayload,
    AuthenticatedUser,
    JWTManager,
    UserRole,
    get_jwt_manager,
    verify_access_token,
)

__all__ = [
    "AccessTokenPayload",
    "AuthenticatedUser",
    "JWTManager",
    "UserRole",
    "get_jwt_manager",
    "verify_access_token",
]
