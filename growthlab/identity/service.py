"""Session resolution and issuance.

Tokens are opaque strings handed out by the identity provider (or by the
``growthlab issue-session`` command). The application never caches the
resolved user: every request resolves its token again and passes the
resulting ``CurrentUser`` down explicitly.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.storage.models import User
from growthlab.storage.repository import IdentityRepo


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """Identity resolved for one request."""

    user_id: str
    email: str


def _generate_token() -> str:
    return secrets.token_urlsafe(32)


class SessionService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = IdentityRepo(session)

    async def resolve(self, token: str | None, now: datetime | None = None) -> CurrentUser | None:
        """Resolve a session token. Unknown or expired tokens give None."""
        if not token:
            return None
        t = now if now is not None else datetime.now(tz=UTC)
        user = await self._repo.resolve_session(token, t)
        if user is None:
            return None
        return CurrentUser(user_id=user.id, email=user.email)

    async def ensure_user(self, email: str, display_name: str = "") -> User:
        """Get or create the user with this email."""
        existing = await self._repo.get_user_by_email(email)
        if existing is not None:
            return existing
        return await self._repo.create_user(email=email, display_name=display_name)

    async def issue(self, user_id: str, ttl_hours: int | None = None) -> str:
        """Store a fresh token for the user and return it."""
        expires_at = None
        if ttl_hours:
            expires_at = datetime.now(tz=UTC) + timedelta(hours=ttl_hours)
        token = _generate_token()
        await self._repo.add_session(token, user_id, expires_at)
        return token
