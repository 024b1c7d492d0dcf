"""LLM provider abstraction module."""

from growthlab.providers.base import LLMProvider, LLMResponse, require_provider
from growthlab.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LiteLLMProvider", "require_provider"]
