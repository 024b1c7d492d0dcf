"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``growthlab.api.app`` renders every one of them as
``{"error": message}`` with the class' status code.
"""

from __future__ import annotations


class GrowthLabError(RuntimeError):
    """Base class for all expected failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(GrowthLabError):
    """Missing or malformed input."""

    status_code = 400


class AuthenticationError(GrowthLabError):
    """No resolved session for the caller."""

    status_code = 401


class NotFoundError(GrowthLabError):
    """A referenced row does not exist (or belongs to someone else)."""

    status_code = 404


class ConfigurationError(GrowthLabError):
    """Database or model credentials are not configured."""

    status_code = 500


class UpstreamError(GrowthLabError):
    """The language model or the database failed.

    Model 400-class errors are surfaced as 400 with a prefixed message;
    everything else stays a 500 with the upstream message.
    """

    status_code = 500
