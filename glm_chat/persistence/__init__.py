"""Persistence layer: conversation/settings protocols and SQLite adapters."""

from .interfaces import ConversationSummary, IConversationStore, ISettingsRepo, MessageRecord
from .mapping import record_to_turn, turn_to_record

__all__ = [
    "ConversationSummary",
    "IConversationStore",
    "ISettingsRepo",
    "MessageRecord",
    "record_to_turn",
    "turn_to_record",
]
