"""
Core data model facade.

Re-exports the transcript and session DTOs from ``models_parts`` so callers
use one import path.
"""

from .models_parts.attachments import Attachments, NO_ATTACHMENTS
from .models_parts.chat_mode import ChatMode, Sender
from .models_parts.turn import Turn, new_turn_id, utcnow

__all__ = [
    "Attachments",
    "NO_ATTACHMENTS",
    "ChatMode",
    "Sender",
    "Turn",
    "new_turn_id",
    "utcnow",
]
