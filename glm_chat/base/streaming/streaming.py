"""Streaming primitives: the chunk record and its accumulator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import ErrorCode, ProviderError


@dataclass(frozen=True)
class StreamChunk:
    """One decoded streaming delta.

    Fields:
      content: answer text delta (``None`` when the chunk carries none)
      reasoning: "thinking" channel delta
      finish_reason: provider finish reason on the last chunk of a choice
    """

    content: Optional[str] = None
    reasoning: Optional[str] = None
    finish_reason: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    @property
    def has_reasoning(self) -> bool:
        return bool(self.reasoning and self.reasoning.strip())


class StreamAccumulator:
    """Fold chunks into running answer/reasoning text.

    Reasoning deltas are appended only when they are not blank; the exposed
    ``reasoning`` is trimmed and ``None`` while empty.
    """

    def __init__(self) -> None:
        self._text: list[str] = []
        self._reasoning: list[str] = []
        self.content_deltas = 0
        self.reasoning_deltas = 0
        self.finish_reason: Optional[str] = None

    def add(self, chunk: StreamChunk) -> None:
        if chunk.has_reasoning:
            self._reasoning.append(chunk.reasoning or "")
            self.reasoning_deltas += 1
        if chunk.has_content:
            self._text.append(chunk.content or "")
            self.content_deltas += 1
        if chunk.finish_reason is not None:
            self.finish_reason = chunk.finish_reason

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def reasoning(self) -> Optional[str]:
        joined = "".join(self._reasoning).strip()
        return joined or None

    def require_content(self, *, model: Optional[str] = None) -> str:
        """Return the text, or raise ``NO_CONTENT`` when no content delta arrived."""
        if self.content_deltas == 0:
            raise ProviderError(
                code=ErrorCode.NO_CONTENT,
                message="stream completed without any content delta",
                model=model,
            )
        return self.text


__all__ = ["StreamChunk", "StreamAccumulator"]
