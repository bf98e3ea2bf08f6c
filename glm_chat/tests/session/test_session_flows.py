"""End-to-end session behaviour against a scripted provider.

Each test drives a :class:`ChatSession` inside ``asyncio.run`` with the HTTP
layer replaced by ``httpx.MockTransport`` (see ``FakeZhipu``).
"""
from __future__ import annotations

import asyncio
from io import BytesIO

from PIL import Image

from glm_chat.base.models import ChatMode, Sender
from glm_chat.config import SessionConfig
from glm_chat.config.messages import EN_MESSAGES
from glm_chat.persistence.sqlite import MEMORY_DB, ConversationStoreSqlite, open_database
from glm_chat.session import ChatSession
from glm_chat.session.context import EditorFileContext
from glm_chat.tests.helpers import (
    BrokenStream,
    DONE_LINE,
    FakeClock,
    FakeZhipu,
    HangingStream,
    content_line,
    fast_sleep,
    make_client,
    mock_http,
    reasoning_line,
)
from glm_chat.zhipu import ZhipuClient

SUCCESS_RESULT = {
    "task_status": "SUCCESS",
    "choices": [{"message": {"role": "assistant", "content": "Hi there", "reasoning_content": " because "}}],
}


def _session(fake, http, *, key="test-key", store=None, clock=None, **config):
    cfg = SessionConfig(typewriter_interval_seconds=0, **config)
    kwargs = {"config": cfg, "store": store, "sleep": fast_sleep}
    if clock is not None:
        kwargs.update(clock=clock, sleep=clock.sleep)
    return ChatSession(make_client(fake, http, key=key), **kwargs)


async def _until(predicate, attempts=500):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.005)
    raise AssertionError("condition not reached")


def _run(fake, scenario, **session_kwargs):
    """Run ``scenario(session)`` against ``fake``; returns (session, scenario result)."""

    async def main():
        async with mock_http(fake) as http:
            session = _session(fake, http, **session_kwargs)
            result = await scenario(session)
            return session, result

    return asyncio.run(main())


async def _submit_and_wait(session, text="hi", **kwargs):
    task = session.submit(text, **kwargs)
    await task
    return task


# ---- chat ----


def test_streamed_chat_end_to_end():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("Hel"), content_line("lo"), DONE_LINE]
    session, _ = _run(fake, _submit_and_wait)

    user, reply = session.turns
    assert user.sender is Sender.USER and user.text == "hi"  # nosec B101
    assert reply.sender is Sender.ASSISTANT and reply.text == "Hello"  # nosec B101
    assert reply.is_terminal and reply.reasoning is None  # nosec B101
    assert not session.sending  # nosec B101
    assert fake.paths() == ["/api/paas/v4/chat/completions"]  # nosec B101


def test_streamed_reasoning_is_kept_separately():
    fake = FakeZhipu()
    fake.stream_lines = [reasoning_line("let me "), reasoning_line("think "), content_line("42"), DONE_LINE]
    session, _ = _run(fake, _submit_and_wait)
    reply = session.turns[1]
    assert reply.text == "42" and reply.reasoning == "let me think"  # nosec B101


def test_submit_appends_user_turn_and_placeholder_synchronously():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("ok"), DONE_LINE]

    async def scenario(session):
        task = session.submit("  hi  ")
        observed = session.turns
        sending = session.sending
        await task
        return observed, sending

    _, (observed, sending) = _run(fake, scenario)
    assert len(observed) == 2 and sending  # nosec B101
    assert observed[0].text == "hi"  # nosec B101
    assert observed[1].is_streaming and observed[1].is_loading_pending and observed[1].text == ""  # nosec B101


def test_blank_submit_is_ignored():
    fake = FakeZhipu()

    async def scenario(session):
        return session.submit("   ")

    session, task = _run(fake, scenario)
    assert task is None and session.turns == ()  # nosec B101
    assert fake.requests == []  # nosec B101


def test_history_is_sent_with_follow_up_turns():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("Hello"), DONE_LINE]

    async def scenario(session):
        await _submit_and_wait(session, "hi")
        await _submit_and_wait(session, "again")

    _run(fake, scenario)
    second = fake.json_bodies()[1]
    assert second["messages"] == [  # nosec B101
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "Hello"},
        {"role": "user", "content": "again"},
    ]
    assert second["stream"] is True and second["model"] == "glm-4.5-flash"  # nosec B101


def test_empty_stream_falls_back_to_polling_with_typewriter():
    fake = FakeZhipu()
    fake.stream_lines = [DONE_LINE]
    fake.results = [{"task_status": "PROCESSING"}, SUCCESS_RESULT]
    session, _ = _run(fake, _submit_and_wait)

    reply = session.turns[1]
    assert reply.text == "Hi there" and reply.is_terminal  # nosec B101
    assert reply.reasoning == "because"  # nosec B101
    assert fake.paths() == [  # nosec B101
        "/api/paas/v4/chat/completions",
        "/api/paas/v4/async/chat/completions",
        "/api/paas/v4/async-result/task-1",
        "/api/paas/v4/async-result/task-1",
    ]


def test_rejected_stream_falls_back_to_polling():
    fake = FakeZhipu()
    fake.stream_status = 500
    fake.results = [SUCCESS_RESULT]
    session, _ = _run(fake, _submit_and_wait)
    assert session.turns[1].text == "Hi there"  # nosec B101


def test_polling_only_when_stream_first_disabled():
    fake = FakeZhipu()
    fake.results = [SUCCESS_RESULT]
    session, _ = _run(fake, _submit_and_wait, stream_first=False)
    assert session.turns[1].text == "Hi there"  # nosec B101
    assert "/api/paas/v4/chat/completions" not in fake.paths()  # nosec B101


def test_terminal_result_without_content_finishes_empty():
    fake = FakeZhipu()
    fake.results = [{"task_status": "SUCCESS"}]
    session, _ = _run(fake, _submit_and_wait, stream_first=False)
    reply = session.turns[1]
    assert reply.text == "" and reply.is_terminal  # nosec B101


def test_http_error_is_shown_with_truncated_body():
    fake = FakeZhipu()
    fake.async_chat_status = 400
    fake.error_body = "x" * 400
    session, _ = _run(fake, _submit_and_wait, stream_first=False)
    reply = session.turns[1]
    assert reply.text == "Request failed: The server returned an error (400): " + "x" * 300 + "…"  # nosec B101
    assert reply.is_terminal and not session.sending  # nosec B101


def test_missing_api_key_fails_without_network():
    fake = FakeZhipu()
    session, _ = _run(fake, _submit_and_wait, key=None)
    assert fake.requests == []  # nosec B101
    assert session.turns[1].text == "Request failed: " + EN_MESSAGES.missing_api_key  # nosec B101


def test_attachments_are_described_and_cleared_on_submit():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("nice"), DONE_LINE]
    buf = BytesIO()
    Image.new("RGB", (8, 6)).save(buf, format="PNG")

    async def scenario(session):
        session.attach_image(buf.getvalue())
        task = session.submit("look")
        cleared = session.attachments.is_empty
        await task
        return cleared

    session, cleared = _run(fake, scenario)
    assert cleared  # nosec B101
    assert session.turns[0].attached_image_data == buf.getvalue()  # nosec B101
    content = fake.json_bodies()[0]["messages"][-1]["content"]
    assert content == "look\n\nAttached image info: An image of about 8x6."  # nosec B101


# ---- cancellation ----


def test_cancel_when_idle_is_a_no_op():
    session = ChatSession(ZhipuClient(lambda: "k"), config=SessionConfig())
    session.cancel()
    assert session.turns == () and not session.sending  # nosec B101


def test_cancel_mid_stream_closes_connection():
    fake = FakeZhipu()
    stream = HangingStream([content_line("A")])
    fake.stream_body = stream

    async def scenario(session):
        task = session.submit("hi")
        await _until(lambda: session.turns[1].text == "A")
        session.cancel()
        await asyncio.wait([task])
        await asyncio.sleep(0.05)

    session, _ = _run(fake, scenario)
    reply = session.turns[1]
    assert reply.text == EN_MESSAGES.request_cancelled and reply.is_terminal  # nosec B101
    assert not session.sending  # nosec B101
    assert stream.closed  # nosec B101
    assert fake.paths() == ["/api/paas/v4/chat/completions"]  # nosec B101


def test_new_submit_supersedes_unstarted_request():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("second answer"), DONE_LINE]
    captured = []

    async def scenario(session):
        session.subscribe(lambda t, turn_id: captured.append(t[1]) if len(t) == 3 else None)
        first = session.submit("first")
        second = session.submit("second")
        await asyncio.wait([first, second])

    session, _ = _run(fake, scenario)
    assert [t.text for t in session.turns] == [  # nosec B101
        "first",
        EN_MESSAGES.request_cancelled,
        "second",
        "second answer",
    ]
    # the old placeholder was already final when the new user turn appeared
    assert captured[0].text == EN_MESSAGES.request_cancelled and captured[0].is_terminal  # nosec B101
    assert len(fake.requests) == 1  # nosec B101


def test_new_submit_supersedes_streaming_request():
    fake = FakeZhipu()
    hanging = HangingStream([content_line("A")])
    fake.stream_body = hanging

    async def scenario(session):
        first = session.submit("first")
        await _until(lambda: session.turns[1].text == "A")
        fake.stream_body = None
        fake.stream_lines = [content_line("B"), DONE_LINE]
        second = session.submit("second")
        await asyncio.wait([first, second])

    session, _ = _run(fake, scenario)
    texts = [t.text for t in session.turns]
    assert texts == ["first", EN_MESSAGES.request_cancelled, "second", "B"]  # nosec B101
    assert all(t.is_terminal for t in session.turns)  # nosec B101
    assert hanging.closed and not session.sending  # nosec B101


def test_cancel_while_polling_stops_fetching():
    fake = FakeZhipu()
    result_path = "/api/paas/v4/async-result/task-1"

    async def scenario(session):
        task = session.submit("hi")
        await _until(lambda: result_path in fake.paths())
        session.cancel()
        await asyncio.wait([task])
        seen = len(fake.requests)
        await asyncio.sleep(0.1)
        return seen

    session, seen = _run(fake, scenario, stream_first=False)
    reply = session.turns[1]
    assert reply.text == EN_MESSAGES.request_cancelled and reply.is_terminal  # nosec B101
    assert not session.sending  # nosec B101
    assert len(fake.requests) == seen  # nosec B101


def test_cancel_during_typewriter_replay():
    fake = FakeZhipu()
    fake.results = [SUCCESS_RESULT]
    texts = []

    async def main():
        async with mock_http(fake) as http:
            sleeps = []

            async def cancelling_sleep(_seconds):
                sleeps.append(1)
                if len(sleeps) == 2:
                    session.cancel()
                await asyncio.sleep(0)

            session = ChatSession(
                make_client(fake, http),
                config=SessionConfig(typewriter_interval_seconds=0, stream_first=False),
                sleep=cancelling_sleep,
            )
            session.subscribe(lambda t, turn_id: texts.append(t[1].text) if len(t) > 1 else None)
            await asyncio.wait([session.submit("hi")])
            return session

    session = asyncio.run(main())
    reply = session.turns[1]
    assert reply.text == EN_MESSAGES.request_cancelled and reply.is_terminal  # nosec B101
    assert "Hi" in texts and "Hi " not in texts  # nosec B101
    assert not session.sending  # nosec B101


def test_new_submit_supersedes_polling_video():
    fake = FakeZhipu()

    async def scenario(session):
        video = session.submit("v", mode=ChatMode.VIDEO)
        await _until(lambda: "/api/paas/v4/async-result/t1" in fake.paths())
        seen = len(fake.requests)
        fake.stream_lines = [content_line("ok"), DONE_LINE]
        chat = session.submit("c")
        await asyncio.wait([video, chat])
        return seen

    session, seen = _run(fake, scenario)
    assert [t.text for t in session.turns] == ["v", EN_MESSAGES.video_cancelled, "c", "ok"]  # nosec B101
    assert all(t.is_terminal for t in session.turns)  # nosec B101
    assert fake.paths()[seen:] == ["/api/paas/v4/chat/completions"]  # nosec B101


def test_cancel_pending_image_request():
    class SlowImages(FakeZhipu):
        def __call__(self, request):
            if request.url.path.endswith("/images/generations"):
                self.requests.append(request)
                return asyncio.Event().wait()
            return super().__call__(request)

    fake = SlowImages()

    async def scenario(session):
        task = session.submit("a cat", mode=ChatMode.IMAGE)
        await _until(lambda: fake.requests)
        session.cancel()
        await asyncio.wait([task])

    session, _ = _run(fake, scenario)
    reply = session.turns[1]
    assert reply.text == EN_MESSAGES.image_cancelled and reply.is_terminal  # nosec B101
    assert reply.image_urls == () and not session.sending  # nosec B101


def test_stream_failing_after_content_falls_back_to_polling():
    fake = FakeZhipu()
    broken = BrokenStream([content_line("par")])
    fake.stream_body = broken
    fake.results = [SUCCESS_RESULT]
    texts = []

    async def scenario(session):
        session.subscribe(lambda t, turn_id: texts.append(t[1].text) if len(t) > 1 else None)
        await _submit_and_wait(session)

    session, _ = _run(fake, scenario)
    reply = session.turns[1]
    assert reply.text == "Hi there" and reply.is_terminal  # nosec B101
    assert "par" in texts  # nosec B101
    assert "" in texts[texts.index("par"):]  # nosec B101
    assert broken.closed  # nosec B101
    assert "/api/paas/v4/async/chat/completions" in fake.paths()  # nosec B101


def test_sending_listener_sees_start_and_end():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("x"), DONE_LINE]
    seen = []

    async def scenario(session):
        session.add_sending_listener(seen.append)
        await _submit_and_wait(session)

    _run(fake, scenario)
    assert seen == [True, False]  # nosec B101


# ---- image / video ----


def test_image_generation_success():
    fake = FakeZhipu()
    fake.image = {"created": 1, "data": [{"url": "https://img/1.png"}]}
    session, _ = _run(fake, lambda s: _submit_and_wait(s, "a cat", mode=ChatMode.IMAGE))
    reply = session.turns[1]
    assert reply.text == EN_MESSAGES.image_generated  # nosec B101
    assert reply.image_urls == ("https://img/1.png",)  # nosec B101
    assert fake.json_bodies()[0] == {"model": "cogview-3-flash", "prompt": "a cat", "size": "1024x1024"}  # nosec B101


def test_image_generation_without_urls():
    fake = FakeZhipu()
    session, _ = _run(fake, lambda s: _submit_and_wait(s, "a cat", mode=ChatMode.IMAGE))
    assert session.turns[1].text == EN_MESSAGES.image_no_link  # nosec B101


def test_video_generation_polls_until_url():
    fake = FakeZhipu()
    fake.results = [
        {"task_status": "PROCESSING"},
        {"id": "t1", "task_status": "SUCCESS", "video_result": [{"url": "https://v/1.mp4", "cover_image_url": "https://v/1.jpg"}]},
    ]
    clock = FakeClock()
    session, _ = _run(fake, lambda s: _submit_and_wait(s, "a cat", mode=ChatMode.VIDEO), clock=clock)
    reply = session.turns[1]
    assert reply.video_url == "https://v/1.mp4" and reply.text == ""  # nosec B101
    assert reply.is_terminal  # nosec B101
    assert fake.paths()[1:] == ["/api/paas/v4/async-result/t1"] * 2  # nosec B101
    assert clock.sleeps == [1.0]  # nosec B101


def test_video_generation_terminal_without_url():
    fake = FakeZhipu()
    fake.results = [{"task_status": "FAIL"}]
    session, _ = _run(fake, lambda s: _submit_and_wait(s, "a cat", mode=ChatMode.VIDEO), clock=FakeClock())
    assert session.turns[1].text == EN_MESSAGES.video_no_link  # nosec B101


def test_video_generation_times_out():
    fake = FakeZhipu()
    clock = FakeClock()
    session, _ = _run(
        fake,
        lambda s: _submit_and_wait(s, "a cat", mode=ChatMode.VIDEO),
        clock=clock,
        poll_timeout_seconds=3,
    )
    assert session.turns[1].text == "Video generation failed: " + EN_MESSAGES.invalid_response  # nosec B101
    assert clock.now == 3  # nosec B101


# ---- persistence ----


def test_transcript_is_persisted_through_store():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("Hello"), DONE_LINE]
    store = ConversationStoreSqlite(open_database(MEMORY_DB))
    session, _ = _run(fake, _submit_and_wait, store=store)

    assert session.conversation_id is not None  # nosec B101
    stored = store.load(session.conversation_id)
    assert [t.text for t in stored] == ["hi", "Hello"]  # nosec B101
    assert all(t.is_terminal for t in stored)  # nosec B101
    (summary,) = store.list_conversations()
    assert summary.title == "hi" and summary.message_count == 2  # nosec B101


def test_switching_conversation_cancels_and_saves_in_flight_request():
    fake = FakeZhipu()
    fake.stream_body = HangingStream([content_line("A")])
    store = ConversationStoreSqlite(open_database(MEMORY_DB))

    async def scenario(session):
        task = session.submit("hi")
        await _until(lambda: session.turns[1].text == "A")
        old_id = session.conversation_id
        new_id = session.new_conversation()
        await asyncio.wait([task])
        return old_id, new_id

    session, (old_id, new_id) = _run(fake, scenario, store=store)
    assert old_id != new_id and session.turns == ()  # nosec B101
    assert [t.text for t in store.load(old_id)] == ["hi", EN_MESSAGES.request_cancelled]  # nosec B101


def test_wait_settles_the_in_flight_request():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("done"), DONE_LINE]

    async def scenario(session):
        session.submit("hi")
        await session.wait()
        return session.sending

    session, sending = _run(fake, scenario)
    assert sending is False and session.turns[1].text == "done"  # nosec B101


def test_load_conversation_restores_stored_turns():
    fake = FakeZhipu()
    fake.stream_lines = [content_line("Hello"), DONE_LINE]
    store = ConversationStoreSqlite(open_database(MEMORY_DB))

    async def scenario(session):
        await _submit_and_wait(session, "hi")
        first_id = session.conversation_id
        session.new_conversation()
        session.load_conversation(first_id)
        return first_id

    session, first_id = _run(fake, scenario, store=store)
    assert session.conversation_id == first_id  # nosec B101
    assert [t.text for t in session.turns] == ["hi", "Hello"]  # nosec B101


def test_editor_file_is_attached_to_the_next_turn():
    class Editor:
        def current_file(self):
            return EditorFileContext("main.py", "x = 1", "/w/main.py")

    fake = FakeZhipu()
    fake.stream_lines = [content_line("ok"), DONE_LINE]

    async def main():
        async with mock_http(fake) as http:
            session = ChatSession(
                make_client(fake, http),
                config=SessionConfig(typewriter_interval_seconds=0),
                editor_context=Editor(),
                sleep=fast_sleep,
            )
            assert session.attach_editor_file()  # nosec B101
            await session.submit("review")
            return session

    session = asyncio.run(main())
    assert session.turns[0].attached_file_name == "main.py"  # nosec B101
    content = fake.json_bodies()[0]["messages"][-1]["content"]
    assert content == "review\n\nAttached file (main.py) summary: x = 1\nFile path: /w/main.py"  # nosec B101


def test_editor_attach_without_provider_and_clear():
    session = ChatSession(ZhipuClient(lambda: "k"), config=SessionConfig())
    assert session.attach_editor_file() is False  # nosec B101
    session.attach_image(b"raw")
    assert not session.attachments.is_empty  # nosec B101
    session.clear_attachments()
    assert session.attachments.is_empty  # nosec B101
