"""Session resolution and page protection."""

from growthlab.identity.service import CurrentUser, SessionService

__all__ = ["CurrentUser", "SessionService"]
