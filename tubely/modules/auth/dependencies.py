"""FastAPI dependencies for authenticated endpoints."""

import logging
import uuid

from fastapi import HTTPException, Request, status

from tubely.modules.auth.jwt import AuthenticationError, get_bearer_token, validate_token

logger = logging.getLogger(__name__)


async def get_current_user_id(request: Request) -> uuid.UUID:
    """Authenticated caller's user ID from the bearer token."""
    settings = request.app.state.settings
    try:
        token = get_bearer_token(request.headers)
        return validate_token(token, settings.SECRET_KEY)
    except AuthenticationError as e:
        logger.info("Rejected credentials: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Couldn't validate JWT",
            headers={"WWW-Authenticate": "Bearer"},
        )
