"""Authentication module: bearer token validation."""

from tubely.modules.auth.dependencies import get_current_user_id
from tubely.modules.auth.jwt import (
    AuthenticationError,
    TokenPayload,
    create_access_token,
    decode_token,
    get_bearer_token,
    validate_token,
)

__all__ = [
    "AuthenticationError",
    "TokenPayload",
    "create_access_token",
    "decode_token",
    "get_bearer_token",
    "validate_token",
    "get_current_user_id",
]
