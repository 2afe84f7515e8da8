"""JWT bearer token handling.

Tokens are HS256 signed with the application's secret key; the subject is the
caller's user UUID.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from jose import JWTError, jwt
from pydantic import BaseModel

ALGORITHM = "HS256"
TOKEN_ISSUER = "tubely-access"


class AuthenticationError(Exception):
    """Raised when a request carries no usable bearer credential."""


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # User ID
    exp: datetime
    iat: datetime
    iss: str


def create_access_token(
    user_id: uuid.UUID,
    secret_key: str,
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """Create a signed access token for ``user_id``.

    Args:
        user_id: User UUID
        secret_key: Signing secret
        expires_delta: Token lifetime

    Returns:
        str: Encoded token
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iss": TOKEN_ISSUER,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> Optional[TokenPayload]:
    """Decode a token, verifying signature, expiry and issuer.

    Returns:
        TokenPayload | None: Decoded payload if valid, None otherwise
    """
    if not secret_key:
        return None
    try:
        payload = jwt.decode(
            token,
            secret_key,
            algorithms=[ALGORITHM],
            issuer=TOKEN_ISSUER,
        )
        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            iss=payload["iss"],
        )
    except (JWTError, KeyError):
        return None


def validate_token(token: str, secret_key: str) -> uuid.UUID:
    """Return the user ID a token was issued to.

    Raises:
        AuthenticationError: The token is invalid, expired or has no user ID
    """
    payload = decode_token(token, secret_key)
    if payload is None:
        raise AuthenticationError("invalid or expired token")
    try:
        return uuid.UUID(payload.sub)
    except ValueError as e:
        raise AuthenticationError("token subject is not a user ID") from e


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: The header is missing or malformed
    """
    auth_header = headers.get("Authorization") or headers.get("authorization")
    if not auth_header:
        raise AuthenticationError("no auth header included in request")

    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("malformed authorization header")
    return token
