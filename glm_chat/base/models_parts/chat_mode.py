"""Session modes and turn senders."""
from __future__ import annotations

from enum import Enum


class ChatMode(str, Enum):
    """Which provider operation a submitted turn is routed to."""

    CHAT = "chat"
    IMAGE = "image"
    VIDEO = "video"


class Sender(str, Enum):
    """Author of a transcript turn."""

    USER = "user"
    ASSISTANT = "assistant"


__all__ = ["ChatMode", "Sender"]
