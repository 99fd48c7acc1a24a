"""
Payroll CTC Engine - FastAPI Dependencies

Shared dependencies for database sessions and actor identity.

Identity extraction itself (tokens, sessions) happens upstream; the
authenticated user's id reaches this service in the X-Actor-Id header
and is passed explicitly to every lifecycle call.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.user import User
from app.utils.error_handling import AuthenticationException


ACTOR_HEADER = "X-Actor-Id"


async def get_actor_id(
    x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER),
    db: AsyncSession = Depends(get_async_session),
) -> int:
    """
    Resolve the acting user's id from the X-Actor-Id header.

    Raises:
        AuthenticationException: header missing, not an integer, or not
            an active user
    """
    if not x_actor_id:
        raise AuthenticationException(f"Missing {ACTOR_HEADER} header")

    try:
        actor_id = int(x_actor_id)
    except ValueError:
        raise AuthenticationException(f"Invalid {ACTOR_HEADER} header")

    actor = await db.get(User, actor_id)
    if actor is None or not actor.is_active:
        raise AuthenticationException("Unknown or inactive actor")

    return actor_id
