"""LiteLLM provider implementation for multi-provider support."""

from __future__ import annotations

from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from growthlab.errors import UpstreamError
from growthlab.providers.base import LLMProvider, LLMResponse

BAD_REQUEST_PREFIX = "Erro na requisição ao modelo: "


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM.

    The model name is passed through unchanged (``gpt-4o``,
    ``anthropic/claude-...``, ``openrouter/...``); credentials come from
    settings and are sent per call rather than through global state.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "gpt-4o",
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop unsupported parameters for providers (e.g. response_format)
        litellm.drop_params = True

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        model = model or self.default_model
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        # Credentials travel with each call
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            logger.error(f"LLM call failed ({model}): {e}")
            raise self._to_upstream_error(e) from e
        return self._parse_response(response, resolved_model=model)

    @staticmethod
    def _to_upstream_error(exc: Exception) -> UpstreamError:
        """Map provider exceptions onto the error taxonomy.

        A 400 from the model API is the caller's fault (bad prompt/params) and
        stays a 400 with a prefixed message; everything else is a 500.
        """
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        status = getattr(exc, "status_code", None)
        if status == 400:
            return UpstreamError(f"{BAD_REQUEST_PREFIX}{message}", status_code=400)
        return UpstreamError(message)

    def _parse_response(self, response: Any, *, resolved_model: str = "") -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0]
        message = choice.message

        usage = {}
        if hasattr(response, "usage") and response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        logger.debug(f"LLM call ok ({resolved_model}): {usage}")

        return LLMResponse(
            content=message.content,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
            model=resolved_model or getattr(response, "model", ""),
        )

    def get_default_model(self) -> str:
        """Get the default model."""
        return self.default_model
