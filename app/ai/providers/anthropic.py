"""
Anthropic (Claude) provider implementation.

Implements the BaseProvider protocol for the Anthropic messages API.

Configuration:
    Requires ANTHROPIC_API_KEY setting or api_key parameter.

Note:
    Anthropic takes the system prompt as a separate argument, not as a
    message, and caps temperature at 1.0.
"""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from ai.exceptions import GenerationError

from .base import BaseProviderImpl

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseProviderImpl):
    """
    Anthropic (Claude) API provider.

    Attributes:
        api_key: Anthropic API key
        default_model: Default model (claude-3-haiku)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "claude-3-haiku-20240307",
        timeout: float | None = None,
    ):
        super().__init__(
            api_key=api_key,
            base_url=base_url,
            default_model=default_model,
            timeout=timeout,
        )

    def _get_client(self):
        """Get configured async Anthropic client."""
        client_kwargs = {"api_key": self.api_key}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        if self.timeout:
            client_kwargs["timeout"] = self.timeout
        return anthropic.AsyncAnthropic(**client_kwargs)

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> dict:
        """
        Generate Anthropic completion.

        Raises:
            GenerationError: On any API error
        """
        model = self._get_model(model)
        temperature = min(temperature, 1.0)

        request = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            **kwargs,
        }
        if system_prompt:
            request["system"] = system_prompt

        try:
            response = await self.client.messages.create(**request)
        except anthropic.AnthropicError as e:
            logger.warning(f"Anthropic completion failed: {e}")
            raise GenerationError(
                "Anthropic completion failed",
                details={"provider": "anthropic", "model": model},
            ) from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return {
            "content": content,
            "model": response.model,
            "usage": {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
            },
            "finish_reason": response.stop_reason,
        }
