"""
ParkShare Backend — FastAPI Dependencies
==========================================

What:  Store access and caller identity for route handlers.

    get_database      the Database handle owned by the application
    get_db_session    one committed-or-rolled-back session per request
    get_current_user  bearer token → User (401 otherwise)
    require_roles     role gate (403 otherwise)

Example:
    @router.post("", dependencies=[Depends(require_roles("owner", "admin"))])
    async def create(..., user: User = Depends(get_current_user)): ...
"""

import logging
from typing import AsyncIterator, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.database import Database
from parkshare.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
)
from parkshare.models.user import User
from parkshare.security import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must produce our 401 body, not
# FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    """Return the store handle created at startup (or injected by tests)."""
    return request.app.state.database


async def get_db_session(
    database: Database = Depends(get_database),
) -> AsyncIterator[AsyncSession]:
    """
    Provide a database session per request.

    Commits when the handler returns, rolls back when it raises.
    """
    async with database.session() as session:
        yield session


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Resolve the caller from the `Authorization: Bearer <token>` header.

    Raises:
        AuthenticationError: no token, invalid/expired token, or the user
                             the token names no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided, authorization denied")

    claims = decode_access_token(credentials.credentials)

    try:
        result = await db.execute(select(User).where(User.id == claims["sub"]))
        user = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("Database error resolving token subject: %s", str(e))
        raise DatabaseError(context={"error_type": type(e).__name__})

    if user is None:
        raise AuthenticationError("User for this token no longer exists")
    return user


def require_roles(*roles: str) -> Callable:
    """Dependency factory: reject callers whose role is not in `roles`."""

    async def check_role(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError(
                f"Access denied. Required role: {' or '.join(roles)}",
                context={"role": user.role},
            )
        return user

    return check_role
