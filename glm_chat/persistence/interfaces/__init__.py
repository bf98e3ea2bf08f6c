from .repos import ConversationSummary, IConversationStore, ISettingsRepo, MessageRecord

__all__ = ["ConversationSummary", "IConversationStore", "ISettingsRepo", "MessageRecord"]
