"""glm_chat: request orchestration and streaming reconciliation for a Zhipu
GLM multimodal chat client.

Typical use::

    client = ZhipuClient(KeysRepository().get_api_key)
    session = ChatSession(client)
    task = session.submit("hello")      # inside a running event loop
    await task
    print(session.transcript.last.text)
"""

from .base.models import NO_ATTACHMENTS, Attachments, ChatMode, Sender, Turn
from .base.repositories import KeysRepository
from .base.transcript import Transcript
from .config import SessionConfig, get_session_config
from .session import ChatSession
from .zhipu import ZhipuClient

__version__ = "0.1.0"

__all__ = [
    "NO_ATTACHMENTS",
    "Attachments",
    "ChatMode",
    "Sender",
    "Turn",
    "KeysRepository",
    "Transcript",
    "SessionConfig",
    "get_session_config",
    "ChatSession",
    "ZhipuClient",
    "__version__",
]
