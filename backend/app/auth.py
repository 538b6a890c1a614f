"""
Session resolution.

Sessions are issued by the auth service and stored in user_sessions; this
module only maps a bearer token (or session cookie) to the signed-in user.
No session resolves to None. Callers treat that as anonymous, never as an
error.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User, UserSession

logger = logging.getLogger(__name__)

SESSION_COOKIE = "signalist_session"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    name: str = ""


def _extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(SESSION_COOKIE) or None


async def resolve_session(db: AsyncSession, token: Optional[str]) -> Optional[CurrentUser]:
    """Look up a live session token. Returns None for unknown or expired tokens."""
    if not token:
        return None
    try:
        result = await db.execute(
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(
                UserSession.token == token,
                UserSession.expires_at > datetime.now(timezone.utc),
            )
        )
        user = result.scalars().first()
    except SQLAlchemyError as e:
        logger.error(f"Session lookup failed: {e}")
        return None
    if user is None:
        return None
    return CurrentUser(id=user.id, email=user.email, name=user.name or "")


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    """FastAPI dependency — the signed-in user, or None for anonymous callers."""
    return await resolve_session(db, _extract_token(request))
