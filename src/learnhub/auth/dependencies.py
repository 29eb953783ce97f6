"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.auth.jwt import verify_token
from learnhub.database import get_session
from learnhub.db.enums import UserRole
from learnhub.db.models import User
from learnhub.errors import ForbiddenError, UnauthorizedError

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer JWT, return the User model.

    Raises UnauthorizedError (401) when the header is missing, the token is
    invalid, or the user no longer exists.
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        raise UnauthorizedError(str(e) or "Invalid token") from e

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user but additionally requires the ADMIN role."""
    if user.role != UserRole.ADMIN.value:
        raise ForbiddenError("Admin access required")
    return user
