"""Core building blocks: data model, transcript, cancellation, errors, logging,
streaming and polling primitives shared by the provider client and the session.
"""

from .cancellation import CancellationToken, CancelledError, is_cancellation
from .errors import ErrorCode, ProviderError, classify_exception, to_provider_error
from .models import NO_ATTACHMENTS, Attachments, ChatMode, Sender, Turn
from .transcript import Transcript

__all__ = [
    "CancellationToken",
    "CancelledError",
    "is_cancellation",
    "ErrorCode",
    "ProviderError",
    "classify_exception",
    "to_provider_error",
    "NO_ATTACHMENTS",
    "Attachments",
    "ChatMode",
    "Sender",
    "Turn",
    "Transcript",
]
