"""
Provider interface for bot reply generation.

ReplyService only needs one async call, complete(), returning the reply
text plus model and usage metadata. Providers wrap an async vendor SDK
client that is created lazily, so importing a provider never needs an
API key.

Usage:
    from ai.providers.base import BaseProviderImpl

    class EchoProvider(BaseProviderImpl):
        async def complete(self, prompt, system_prompt=None, **kwargs):
            return {"content": prompt, "model": "echo", "usage": {}}
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BaseProvider(Protocol):
    """
    Protocol for AI provider implementations.

    Response Format:
        complete() should return:
        {
            "content": str,  # Response text
            "model": str,  # Model used
            "usage": {
                "prompt_tokens": int,
                "completion_tokens": int,
            },
            "finish_reason": str,  # "stop", "length", etc.
        }
    """

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
        Generate AI completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system message
            model: Model to use
            temperature: Sampling temperature
            max_tokens: Maximum response tokens
            **kwargs: Provider-specific options

        Returns:
            Response dict with content, model, usage
        """
        ...


class BaseProviderImpl:
    """
    Base implementation with shared functionality.

    Attributes:
        api_key: API key for authentication
        base_url: Optional custom API endpoint
        default_model: Default model if not specified
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.default_model = default_model
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        """SDK client, created on first use."""
        if self._client is None:
            self._client = self._get_client()
        return self._client

    def _get_client(self):
        raise NotImplementedError

    def _get_model(self, model: str | None) -> str:
        """Get model, using default if not specified."""
        return model or self.default_model or ""

    def _build_messages(
        self,
        prompt: str,
        system_prompt: str | None,
    ) -> list[dict]:
        """Build message list for chat completion."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages
