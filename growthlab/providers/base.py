"""Base LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from growthlab.errors import ConfigurationError


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str | None
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Implementations should raise ``growthlab.errors.UpstreamError`` when the
    upstream call fails, carrying the upstream status code when there is one.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model identifier (provider-specific).
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.
            json_mode: Ask the model for a single JSON object.

        Returns:
            LLMResponse with the completion text.
        """

    @abstractmethod
    def get_default_model(self) -> str:
        """Get the default model for this provider."""


def require_provider(provider: LLMProvider | None) -> LLMProvider:
    """Return the provider, or fail with a configuration error when credentials are missing."""
    if provider is None:
        raise ConfigurationError("Chave da API do modelo não configurada.")
    return provider
