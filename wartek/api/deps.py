from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from wartek.core.db import get_db
from wartek.core.errors import Unauthorized
from wartek.core.security import verify_token
from wartek.models import User

async def get_current_user(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> User:
    if not authorization:
        raise Unauthorized("Invalid token")

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token:
        raise Unauthorized("Invalid token")

    payload = verify_token(token)
    user = await session.get(User, payload["id"])
    if not user:
        raise Unauthorized("Invalid token")
    return user
