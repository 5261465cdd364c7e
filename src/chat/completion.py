"""Claude-backed text completion for chat turns."""

from __future__ import annotations

from typing import Protocol

from anthropic import AnthropicError, AsyncAnthropic
from anthropic.types import TextBlock


class CompletionError(Exception):
    """The language-model service failed or returned unusable output."""


class CompletionService(Protocol):
    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str: ...


class AnthropicCompletionService:
    """Completion service backed by the Anthropic Messages API.

    Args:
        api_key: Anthropic API key.
        model: Model name passed to ``messages.create``.
        client: Optional pre-built client (tests inject a mock here).
    """

    def __init__(self, api_key: str, model: str, client: AsyncAnthropic | None = None) -> None:
        self._client = client or AsyncAnthropic(api_key=api_key)
        self._model = model

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the model's text reply to a single user prompt.

        Raises:
            CompletionError: The API call failed or the reply contained no text.
        """
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except AnthropicError as exc:
            raise CompletionError(f"Completion request failed: {exc}") from exc

        # We only request text; ignore any other block types but require at least one text block.
        texts = [block.text for block in response.content if isinstance(block, TextBlock)]
        if not texts:
            kinds = ", ".join(type(b).__name__ for b in response.content) or "nothing"
            raise CompletionError(f"Expected text from Claude, got {kinds}")
        return "".join(texts)
