"""Attachments selected for the next submitted turn."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Attachments:
    """Image bytes and/or a file summary that accompany user text.

    ``file_summary`` is the text snippet produced by a file loader or an editor
    context provider; ``file_path`` is optional and only used in the composed
    prompt.
    """

    image_data: Optional[bytes] = None
    file_summary: Optional[str] = None
    file_name: Optional[str] = None
    file_path: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.image_data is None and self.file_summary is None


NO_ATTACHMENTS = Attachments()

__all__ = ["Attachments", "NO_ATTACHMENTS"]
