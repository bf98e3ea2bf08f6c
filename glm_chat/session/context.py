"""Attachment context: describing images and summarizing files for the prompt.

The chat model only receives text, so an attached image is reduced to a short
description of its dimensions and an attached file to a trimmed text snippet.
An optional :class:`EditorContextProvider` supplies the file currently open in
an external editor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Protocol, runtime_checkable

from PIL import Image, UnidentifiedImageError

from ..base.models import Attachments
from ..config.defaults import FILE_SNIPPET_MAX_CHARS
from ..config.messages import EN_MESSAGES, Messages


@dataclass(frozen=True)
class EditorFileContext:
    file_name: str
    text_snippet: str
    path: Optional[str] = None

    def to_attachments(self, image_data: Optional[bytes] = None) -> Attachments:
        return Attachments(
            image_data=image_data,
            file_summary=self.text_snippet,
            file_name=self.file_name,
            file_path=self.path,
        )


@runtime_checkable
class EditorContextProvider(Protocol):
    """Source of "the file the user is looking at" (None when unavailable)."""

    def current_file(self) -> Optional[EditorFileContext]: ...


def describe_image(data: bytes, messages: Messages = EN_MESSAGES) -> str:
    """Describe ``data`` by its pixel dimensions, or say they could not be parsed."""
    try:
        with Image.open(BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError):
        return messages.image_unparseable
    return messages.image_with_size.format(width=width, height=height)


def snippet(text: str, max_chars: int = FILE_SNIPPET_MAX_CHARS) -> str:
    """Trim ``text`` and cut it to ``max_chars`` characters plus an ellipsis."""
    trimmed = text.strip()
    if len(trimmed) > max_chars:
        return trimmed[:max_chars] + "…"
    return trimmed


def load_file_context(
    path: str,
    messages: Messages = EN_MESSAGES,
    *,
    max_chars: int = FILE_SNIPPET_MAX_CHARS,
) -> EditorFileContext:
    """Read ``path`` into an :class:`EditorFileContext`.

    UTF-8 text becomes a trimmed snippet; anything else is summarized by size.
    A read failure is reported in the summary rather than raised.
    """
    name = os.path.basename(path) or messages.default_file_name
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        return EditorFileContext(name, messages.file_read_failed.format(error=exc.strerror or exc), path)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        kb = max(1, len(data) // 1024)
        return EditorFileContext(name, messages.non_text_file.format(kb=kb), path)
    return EditorFileContext(name, snippet(text, max_chars), path)


def compose_content(text: str, attachments: Attachments, messages: Messages = EN_MESSAGES) -> str:
    """Build the final user message: text, then image description, then file summary."""
    content = text
    if attachments.image_data is not None:
        description = describe_image(attachments.image_data, messages)
        content += "\n\n" + messages.attached_image.format(description=description)
    if attachments.file_summary is not None:
        name = attachments.file_name or messages.default_file_name
        content += "\n\n" + messages.attached_file.format(name=name, summary=attachments.file_summary)
        if attachments.file_path:
            content += "\n" + messages.attached_file_path.format(path=attachments.file_path)
    return content


__all__ = [
    "EditorFileContext",
    "EditorContextProvider",
    "describe_image",
    "snippet",
    "load_file_context",
    "compose_content",
]
