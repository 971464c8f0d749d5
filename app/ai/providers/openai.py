"""
OpenAI provider implementation.

Implements the BaseProvider protocol for the OpenAI chat completions API.

Configuration:
    Requires OPENAI_API_KEY setting or api_key parameter.

Usage:
    from ai.providers.openai import OpenAIProvider

    provider = OpenAIProvider()
    response = await provider.complete(
        prompt="Tell me a joke",
        model="gpt-3.5-turbo",
    )
"""

from __future__ import annotations

import logging
from typing import Any

import openai

from ai.exceptions import GenerationError

from .base import BaseProviderImpl

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProviderImpl):
    """
    OpenAI API provider.

    Attributes:
        api_key: OpenAI API key
        base_url: Optional custom endpoint (for Azure or a proxy)
        default_model: Default model (gpt-3.5-turbo)
        organization: Optional organization ID
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "gpt-3.5-turbo",
        organization: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(
            api_key=api_key,
            base_url=base_url,
            default_model=default_model,
            timeout=timeout,
        )
        self.organization = organization

    def _get_client(self):
        """Get configured async OpenAI client."""
        client_kwargs = {"api_key": self.api_key}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        if self.organization:
            client_kwargs["organization"] = self.organization
        if self.timeout:
            client_kwargs["timeout"] = self.timeout
        return openai.AsyncOpenAI(**client_kwargs)

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
        Generate OpenAI completion.

        Raises:
            GenerationError: On any API error
        """
        model = self._get_model(model)
        messages = self._build_messages(prompt, system_prompt)

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.OpenAIError as e:
            logger.warning(f"OpenAI completion failed: {e}")
            raise GenerationError(
                "OpenAI completion failed",
                details={"provider": "openai", "model": model},
            ) from e

        choice = response.choices[0]
        usage = response.usage
        return {
            "content": choice.message.content or "",
            "model": response.model,
            "usage": {
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
            },
            "finish_reason": choice.finish_reason,
        }
