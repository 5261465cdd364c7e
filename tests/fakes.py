"""Test doubles shared across test modules."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.chat.completion import CompletionError


@dataclass
class FakeCompletion:
    """Completion service that returns a canned reply and records each call."""

    reply: str = "Here you go."
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {"system": system, "prompt": prompt, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error is not None:
            raise self.error
        return self.reply

    def fail_with(self, message: str = "upstream unavailable") -> None:
        self.error = CompletionError(message)
