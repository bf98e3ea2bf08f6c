"""
Pydantic DTOs for the Zhipu open platform HTTP surface.

Purpose
-------
Typed request bodies and response shapes for the endpoints the session uses:
streaming chat, async chat submission, video/image generation submission and
async-result polling.

Design
------
- Requests serialize with ``model_dump(exclude_none=True)`` so optional
  parameters are omitted from the JSON body rather than sent as ``null``.
- Responses ignore unknown fields; the provider adds keys over time.
- Convenience accessors (``first_content`` ...) keep the session free of
  index juggling over optional lists.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ZhipuChatMessage(BaseModel):
    """One ``{role, content}`` entry of a chat request."""

    role: Literal["system", "user", "assistant"]
    content: str


class AsyncChatRequest(BaseModel):
    model: str
    messages: List[ZhipuChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class StreamChatRequest(AsyncChatRequest):
    """Same body as the async chat request plus ``stream: true``."""

    stream: bool = True


class VideoGenerationRequest(BaseModel):
    model: str
    prompt: str
    quality: Optional[str] = None
    with_audio: Optional[bool] = None
    size: Optional[str] = None
    fps: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ImageGenerationRequest(BaseModel):
    model: str
    prompt: str
    size: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ContentFilter(_Response):
    role: Optional[str] = None
    level: Optional[int] = None


class AsyncTaskResponse(_Response):
    """Submission acknowledgement for async chat and video generation."""

    id: str
    task_status: Optional[str] = None
    model: Optional[str] = None
    request_id: Optional[str] = None


class ImageData(_Response):
    url: str


class ImageGenerationResponse(_Response):
    created: Optional[int] = None
    data: List[ImageData] = []
    content_filter: Optional[List[ContentFilter]] = None

    @property
    def urls(self) -> List[str]:
        return [d.url for d in self.data if d.url]


class ResultMessage(_Response):
    role: Optional[str] = None
    content: Optional[str] = None
    reasoning_content: Optional[str] = None


class ResultChoice(_Response):
    index: Optional[int] = None
    message: Optional[ResultMessage] = None
    finish_reason: Optional[str] = None


class VideoResult(_Response):
    url: str
    cover_image_url: Optional[str] = None


class AsyncResultResponse(_Response):
    """Status (and, once terminal, payload) of an async task."""

    id: Optional[str] = None
    task_status: Optional[str] = None
    request_id: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: Optional[List[ResultChoice]] = None
    video_result: Optional[List[VideoResult]] = None
    content_filter: Optional[List[ContentFilter]] = None

    def _first_message(self) -> Optional[ResultMessage]:
        if not self.choices:
            return None
        return self.choices[0].message

    @property
    def first_content(self) -> Optional[str]:
        msg = self._first_message()
        return msg.content if msg else None

    @property
    def first_reasoning(self) -> Optional[str]:
        msg = self._first_message()
        return msg.reasoning_content if msg else None

    @property
    def first_video_url(self) -> Optional[str]:
        if not self.video_result:
            return None
        url = self.video_result[0].url
        return url or None


__all__ = [
    "ZhipuChatMessage",
    "AsyncChatRequest",
    "StreamChatRequest",
    "VideoGenerationRequest",
    "ImageGenerationRequest",
    "ContentFilter",
    "AsyncTaskResponse",
    "ImageData",
    "ImageGenerationResponse",
    "ResultMessage",
    "ResultChoice",
    "VideoResult",
    "AsyncResultResponse",
]
