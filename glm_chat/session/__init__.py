"""Session layer: the request controller and its helpers."""

from .context import (
    EditorContextProvider,
    EditorFileContext,
    compose_content,
    describe_image,
    load_file_context,
)
from .controller import ChatSession, SendingListener
from .error_messages import friendly_error_message
from .typewriter import animate

__all__ = [
    "ChatSession",
    "SendingListener",
    "EditorContextProvider",
    "EditorFileContext",
    "compose_content",
    "describe_image",
    "load_file_context",
    "friendly_error_message",
    "animate",
]
