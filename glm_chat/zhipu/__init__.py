"""Zhipu provider package: HTTP/SSE client and wire DTOs."""

from .client import ApiKeyProvider, ZhipuClient
from .models import (
    AsyncChatRequest,
    AsyncResultResponse,
    AsyncTaskResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
    StreamChatRequest,
    VideoGenerationRequest,
    ZhipuChatMessage,
)

__all__ = [
    "ApiKeyProvider",
    "ZhipuClient",
    "AsyncChatRequest",
    "AsyncResultResponse",
    "AsyncTaskResponse",
    "ImageGenerationRequest",
    "ImageGenerationResponse",
    "StreamChatRequest",
    "VideoGenerationRequest",
    "ZhipuChatMessage",
]
