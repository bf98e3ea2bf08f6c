"""Chat session controller.

Purpose:
    Drive one user turn at a time through the provider's three completion
    styles and reconcile the outcome into a shared :class:`Transcript`:

    - chat: SSE stream first, falling back to async submit + poll + typewriter
    - image: one synchronous generation call
    - video: async submit + poll for the media result

Invariants:
    - ``submit`` appends the user turn and an assistant placeholder before any
      network call starts.
    - At most one request is in flight. A new ``submit`` cancels the previous
      one (last submit wins, no queue); the previous placeholder is put into
      its "cancelled" state before the new pair is appended.
    - Every exit path (success, error, cancellation) leaves the placeholder
      with ``is_streaming`` and ``is_loading_pending`` cleared, and clears
      ``sending``.
    - Cancellation is raised by a handler to the dispatcher only, which ends
      the task quietly. It never escapes the session.

Concurrency:
    Single event loop. ``submit`` must be called with a running loop; the
    request runs as an ``asyncio.Task``. Cancelling cancels both the request's
    :class:`CancellationToken` and its task, so a pending HTTP read or sleep
    is interrupted, not only the next checkpoint.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from ..base.cancellation import CancellationToken, CancelledError
from ..base.errors import to_provider_error
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import NO_ATTACHMENTS, Attachments, ChatMode, Sender, Turn
from ..base.resilience import poll_async_result
from ..base.streaming import StreamAccumulator
from ..base.transcript import Transcript, TranscriptListener
from ..config import SessionConfig, get_session_config
from ..persistence.interfaces import IConversationStore
from ..zhipu import (
    AsyncChatRequest,
    ImageGenerationRequest,
    StreamChatRequest,
    VideoGenerationRequest,
    ZhipuChatMessage,
    ZhipuClient,
)
from .context import EditorContextProvider, compose_content, load_file_context
from .error_messages import friendly_error_message
from .typewriter import animate

SendingListener = Callable[[bool], None]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class _Operation:
    """The single in-flight request."""

    mode: ChatMode
    placeholder_id: str
    token: CancellationToken
    task: Optional["asyncio.Task[None]"] = None


class ChatSession:
    """Owns the transcript, the in-flight request and its cancellation.

    Parameters
    ----------
    client:
        Provider client used for every call.
    config:
        Resolved :class:`SessionConfig` (``get_session_config()`` when omitted).
    store:
        Optional conversation store; the transcript is saved whenever the
        number of turns changes and once when a request settles.
    conversation_id:
        Conversation to persist into; created lazily in ``store`` when omitted.
    editor_context:
        Optional provider of the file open in an external editor.
    sleep, clock:
        Injectable timing for the poller and typewriter.
    """

    def __init__(
        self,
        client: ZhipuClient,
        *,
        config: SessionConfig | None = None,
        store: IConversationStore | None = None,
        conversation_id: str | None = None,
        editor_context: EditorContextProvider | None = None,
        sleep: Sleep | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.config = config or get_session_config()
        self.transcript = Transcript()
        self.mode = ChatMode.CHAT
        self.attachments: Attachments = NO_ATTACHMENTS
        self.conversation_id = conversation_id
        self._store = store
        self._editor_context = editor_context
        self._sleep = sleep
        self._clock = clock
        self._sending = False
        self._sending_listeners: List[SendingListener] = []
        self._current: Optional[_Operation] = None
        self._persisted_count = 0
        self._logger = get_logger("glm_chat.session")
        if store is not None and conversation_id is not None:
            self.transcript.reset(store.load(conversation_id))
            self._persisted_count = len(self.transcript)
        self.transcript.subscribe(self._on_transcript_change)

    # ---- observable state ----
    @property
    def sending(self) -> bool:
        return self._sending

    @property
    def turns(self) -> Sequence[Turn]:
        return self.transcript.snapshot()

    def subscribe(self, listener: TranscriptListener) -> Callable[[], None]:
        """Register a transcript listener (renderer hook)."""
        return self.transcript.subscribe(listener)

    def add_sending_listener(self, listener: SendingListener) -> Callable[[], None]:
        self._sending_listeners.append(listener)

        def _remove() -> None:
            if listener in self._sending_listeners:
                self._sending_listeners.remove(listener)

        return _remove

    def _set_sending(self, value: bool) -> None:
        if self._sending == value:
            return
        self._sending = value
        for listener in list(self._sending_listeners):
            try:
                listener(value)
            except Exception:
                self._logger.exception("sending listener failed")

    # ---- attachments ----
    def attach_image(self, data: bytes) -> None:
        self.attachments = Attachments(
            image_data=data,
            file_summary=self.attachments.file_summary,
            file_name=self.attachments.file_name,
            file_path=self.attachments.file_path,
        )

    def attach_file(self, path: str) -> None:
        ctx = load_file_context(path, self.config.messages, max_chars=self.config.file_snippet_max_chars)
        self.attachments = ctx.to_attachments(self.attachments.image_data)

    def attach_editor_file(self) -> bool:
        """Attach the editor's current file; False when no provider or no file."""
        if self._editor_context is None:
            return False
        ctx = self._editor_context.current_file()
        if ctx is None:
            return False
        self.attachments = ctx.to_attachments(self.attachments.image_data)
        return True

    def clear_attachments(self) -> None:
        self.attachments = NO_ATTACHMENTS

    # ---- submit / cancel ----
    def submit(
        self,
        text: str,
        attachments: Attachments | None = None,
        *,
        mode: ChatMode | None = None,
    ) -> Optional["asyncio.Task[None]"]:
        """Start handling a user turn; returns the request task (None when ignored).

        ``attachments`` defaults to the currently selected ones, which are
        consumed. Empty text without attachments is a no-op.
        """
        text = (text or "").strip()
        if attachments is None:
            attachments = self.attachments
        if not text and attachments.is_empty:
            return None
        mode = mode or self.mode
        loop = asyncio.get_running_loop()

        self._cancel_current("superseded by a new request")
        history = self.transcript.snapshot()
        user = Turn.user(
            text,
            attached_image_data=attachments.image_data,
            attached_file_name=attachments.file_name,
        )
        placeholder = Turn.placeholder()
        self.transcript.append(user)
        self.transcript.append(placeholder)
        self.attachments = NO_ATTACHMENTS

        op = _Operation(mode=mode, placeholder_id=placeholder.id, token=CancellationToken())
        self._current = op
        self._set_sending(True)
        normalized_log_event(
            self._logger,
            "session.submit",
            LogContext(mode=mode.value, turn_id=placeholder.id),
            phase="start",
            has_image=attachments.image_data is not None,
            has_file=attachments.file_summary is not None,
        )
        op.task = loop.create_task(self._dispatch(op, user, history, attachments))
        op.token.on_cancel(op.task.cancel)
        return op.task

    def cancel(self) -> None:
        """Cancel the in-flight request; no-op when idle."""
        if self._current is None:
            return
        self._cancel_current("cancelled by user")
        self._set_sending(False)

    def _cancel_current(self, reason: str) -> None:
        op = self._current
        if op is None:
            return
        self._current = None
        normalized_log_event(
            self._logger,
            "session.cancel",
            LogContext(mode=op.mode.value, turn_id=op.placeholder_id),
            phase="cancel",
            reason=reason,
        )
        turn = self.transcript.get(op.placeholder_id)
        if turn is not None and not turn.is_terminal:
            self._finish(op.placeholder_id, self._cancelled_text(op.mode))
        op.token.cancel(reason)

    async def wait(self) -> None:
        """Wait for the in-flight request (if any) to settle."""
        op = self._current
        if op is not None and op.task is not None:
            await asyncio.shield(op.task)

    # ---- conversations ----
    def _settle_for_switch(self) -> None:
        if self._current is not None:
            self.cancel()
            self._persist()

    def load_conversation(self, conversation_id: str) -> None:
        """Cancel any request and replace the transcript with a stored conversation."""
        self._settle_for_switch()
        turns = self._store.load(conversation_id) if self._store is not None else []
        self.conversation_id = conversation_id
        self._persisted_count = len(turns)
        self.transcript.reset(turns)

    def new_conversation(self) -> Optional[str]:
        """Cancel any request and start an empty conversation; returns its id."""
        self._settle_for_switch()
        self.conversation_id = self._store.create().id if self._store is not None else None
        self._persisted_count = 0
        self.transcript.reset()
        return self.conversation_id

    def _on_transcript_change(self, transcript: Transcript, turn_id: Optional[str]) -> None:
        if turn_id is not None and len(transcript) != self._persisted_count:
            self._persist()

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            if self.conversation_id is None:
                self.conversation_id = self._store.create().id
            turns = self.transcript.snapshot()
            self._store.save(self.conversation_id, turns)
            self._persisted_count = len(turns)
        except Exception:
            self._logger.exception("conversation save failed")

    # ---- dispatch ----
    async def _dispatch(
        self,
        op: _Operation,
        user: Turn,
        history: Sequence[Turn],
        attachments: Attachments,
    ) -> None:
        outcome = "success"
        try:
            if op.mode is ChatMode.IMAGE:
                await self.handle_image(op, user)
            elif op.mode is ChatMode.VIDEO:
                await self.handle_video(op, user)
            else:
                await self.handle_chat(op, user, history, attachments)
        except (CancelledError, asyncio.CancelledError):
            outcome = "cancelled"
        finally:
            if self._current is op:
                self._current = None
                self._set_sending(False)
            turn = self.transcript.get(op.placeholder_id)
            normalized_log_event(
                self._logger,
                "session.finalize",
                LogContext(mode=op.mode.value, turn_id=op.placeholder_id),
                phase="finalize",
                emitted=bool(turn and (turn.text or turn.image_urls or turn.video_url)),
                outcome=outcome,
            )
            self._persist()

    # ---- helpers ----
    def _finish(self, turn_id: str, text: str, **changes) -> None:
        self.transcript.update(turn_id, text=text, is_streaming=False, is_loading_pending=False, **changes)

    def _cancelled_text(self, mode: ChatMode) -> str:
        msgs = self.config.messages
        if mode is ChatMode.IMAGE:
            return msgs.image_cancelled
        if mode is ChatMode.VIDEO:
            return msgs.video_cancelled
        return msgs.request_cancelled

    def _fail(self, op: _Operation, exc: Exception, prefix: str, ctx: LogContext) -> None:
        err = to_provider_error(exc)
        normalized_log_event(
            self._logger,
            "session.error",
            ctx,
            phase="finalize",
            error_code=err.code.value,
            level=logging.WARNING,
            status_code=err.status_code,
            error=err.message,
        )
        self._finish(op.placeholder_id, friendly_error_message(exc, prefix, self.config.messages))

    def _cancelled(self, op: _Operation, exc: BaseException) -> CancelledError:
        self._finish(op.placeholder_id, self._cancelled_text(op.mode))
        if isinstance(exc, CancelledError):
            return exc
        return CancelledError(op.token.reason or "operation cancelled")

    @staticmethod
    def _history_messages(history: Sequence[Turn], content: str) -> List[ZhipuChatMessage]:
        out = [
            ZhipuChatMessage(role="user" if t.sender is Sender.USER else "assistant", content=t.text)
            for t in history
            if t.text.strip()
        ]
        out.append(ZhipuChatMessage(role="user", content=content))
        return out

    # ---- chat ----
    async def handle_chat(
        self,
        op: _Operation,
        user: Turn,
        history: Sequence[Turn],
        attachments: Attachments = NO_ATTACHMENTS,
    ) -> None:
        cfg = self.config
        msgs = cfg.messages
        ctx = LogContext(mode=ChatMode.CHAT.value, model=cfg.chat_model, turn_id=op.placeholder_id)
        content = compose_content(user.text, attachments, msgs)
        messages = self._history_messages(history, content)
        try:
            if cfg.stream_first:
                try:
                    await self._stream_chat(op, messages, ctx)
                    return
                except (CancelledError, asyncio.CancelledError):
                    raise
                except Exception as exc:
                    normalized_log_event(
                        self._logger,
                        "stream.fallback",
                        ctx,
                        phase="fallback",
                        error_code=to_provider_error(exc).code.value,
                        level=logging.WARNING,
                    )
                    self.transcript.update(
                        op.placeholder_id,
                        text="",
                        reasoning=None,
                        is_streaming=True,
                        is_loading_pending=True,
                    )
            await self._poll_chat(op, messages, ctx)
        except (CancelledError, asyncio.CancelledError) as exc:
            raise self._cancelled(op, exc) from None
        except Exception as exc:
            self._fail(op, exc, msgs.request_failed, ctx)

    async def _stream_chat(self, op: _Operation, messages: List[ZhipuChatMessage], ctx: LogContext) -> None:
        cfg = self.config
        request = StreamChatRequest(
            model=cfg.chat_model,
            messages=messages,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
        )
        acc = StreamAccumulator()
        stream = await self.client.stream_chat(request, token=op.token, ctx=ctx)
        async with stream:
            async for chunk in stream:
                op.token.raise_if_cancelled()
                seen_content, seen_reasoning = acc.content_deltas, acc.reasoning_deltas
                acc.add(chunk)
                changes = {}
                if acc.reasoning_deltas != seen_reasoning:
                    changes.update(reasoning=acc.reasoning, is_loading_pending=False)
                if acc.content_deltas != seen_content:
                    changes.update(text=acc.text, is_streaming=True, is_loading_pending=False)
                if changes:
                    self.transcript.update(op.placeholder_id, **changes)
        text = acc.require_content(model=cfg.chat_model)
        self._finish(op.placeholder_id, text, reasoning=acc.reasoning)

    async def _poll_chat(self, op: _Operation, messages: List[ZhipuChatMessage], ctx: LogContext) -> None:
        cfg = self.config
        request = AsyncChatRequest(
            model=cfg.chat_model,
            messages=messages,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
        )
        task = await self.client.submit_async_chat(request, ctx=ctx)
        ctx.task_id = task.id
        result = await poll_async_result(
            self.client.fetch_async_result,
            task.id,
            expect_media=False,
            timeout=cfg.poll_timeout_seconds,
            interval=cfg.poll_interval_seconds,
            token=op.token,
            clock=self._clock,
            sleep=self._sleep,
            ctx=ctx,
        )
        reasoning = (result.first_reasoning or "").strip()
        if reasoning:
            self.transcript.update(op.placeholder_id, reasoning=reasoning)
        await animate(
            self.transcript,
            op.placeholder_id,
            result.first_content or "",
            interval=cfg.typewriter_interval_seconds,
            token=op.token,
            sleep=self._sleep,
        )

    # ---- image ----
    async def handle_image(self, op: _Operation, user: Turn) -> None:
        cfg = self.config
        msgs = cfg.messages
        ctx = LogContext(mode=ChatMode.IMAGE.value, model=cfg.image_model, turn_id=op.placeholder_id)
        request = ImageGenerationRequest(model=cfg.image_model, prompt=user.text, size=cfg.image_size)
        try:
            op.token.raise_if_cancelled()
            response = await self.client.submit_image_generation(request, ctx=ctx)
            op.token.raise_if_cancelled()
            urls = response.urls
            if urls:
                self._finish(op.placeholder_id, msgs.image_generated, image_urls=urls)
            else:
                self._finish(op.placeholder_id, msgs.image_no_link)
        except (CancelledError, asyncio.CancelledError) as exc:
            raise self._cancelled(op, exc) from None
        except Exception as exc:
            self._fail(op, exc, msgs.image_failed, ctx)

    # ---- video ----
    async def handle_video(self, op: _Operation, user: Turn) -> None:
        cfg = self.config
        msgs = cfg.messages
        ctx = LogContext(mode=ChatMode.VIDEO.value, model=cfg.video_model, turn_id=op.placeholder_id)
        request = VideoGenerationRequest(
            model=cfg.video_model,
            prompt=user.text,
            quality=cfg.video_quality,
            with_audio=cfg.video_with_audio,
            size=cfg.video_size,
            fps=cfg.video_fps,
        )
        try:
            op.token.raise_if_cancelled()
            task = await self.client.submit_video_generation(request, ctx=ctx)
            ctx.task_id = task.id
            result = await poll_async_result(
                self.client.fetch_async_result,
                task.id,
                expect_media=True,
                timeout=cfg.poll_timeout_seconds,
                interval=cfg.poll_interval_seconds,
                token=op.token,
                clock=self._clock,
                sleep=self._sleep,
                ctx=ctx,
            )
            url = result.first_video_url
            if url:
                self._finish(op.placeholder_id, "", video_url=url)
            else:
                self._finish(op.placeholder_id, msgs.video_no_link)
        except (CancelledError, asyncio.CancelledError) as exc:
            raise self._cancelled(op, exc) from None
        except Exception as exc:
            self._fail(op, exc, msgs.video_failed, ctx)


__all__ = ["ChatSession", "SendingListener"]
