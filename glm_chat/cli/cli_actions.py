"""CLI action handlers.

Each handler takes the parsed ``argparse.Namespace`` and returns a process
exit code. Output goes to stdout; failures are printed to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, Optional

from ..base.http import close_all_clients
from ..base.models import ChatMode, Turn
from ..base.repositories import KeysRepository
from ..config import SessionConfig, get_session_config
from ..persistence.sqlite import ConversationStoreSqlite, SettingsRepoSqlite, db_session
from ..session import ChatSession
from ..zhipu import ZhipuClient

_MODEL_FIELD = {
    ChatMode.CHAT: "chat_model",
    ChatMode.IMAGE: "image_model",
    ChatMode.VIDEO: "video_model",
}


def build_config(args: argparse.Namespace, mode: Optional[ChatMode] = None) -> SessionConfig:
    overrides: Dict[str, Any] = {"db_path": args.db, "locale": args.locale}
    if mode is not None:
        overrides[_MODEL_FIELD[mode]] = getattr(args, "model", None)
    overrides["stream_first"] = getattr(args, "stream_first", None)
    return get_session_config(overrides)


def turn_to_json(turn: Turn) -> Dict[str, Any]:
    return {
        "id": turn.id,
        "sender": turn.sender.value,
        "text": turn.text,
        "created_at": turn.created_at.isoformat(),
        "reasoning": turn.reasoning,
        "image_urls": list(turn.image_urls),
        "video_url": turn.video_url,
        "attached_file_name": turn.attached_file_name,
    }


def _print_turn(turn: Turn) -> None:
    if turn.reasoning:
        print(f"[reasoning]\n{turn.reasoning}\n")
    if turn.text:
        print(turn.text)
    for url in turn.image_urls:
        print(url)
    if turn.video_url:
        print(turn.video_url)


async def _run_turn(session: ChatSession, prompt: str, mode: ChatMode) -> Optional[Turn]:
    try:
        task = session.submit(prompt, mode=mode)
        if task is None:
            return None
        await task
        return session.transcript.last
    finally:
        await close_all_clients()


def handle_turn(args: argparse.Namespace) -> int:
    """Run one chat/image/video turn and print the assistant turn."""
    mode = ChatMode(args.cmd)
    cfg = build_config(args, mode)
    with db_session(cfg.db_path) as conn:
        store = ConversationStoreSqlite(conn, storage_limit_bytes=cfg.storage_limit_bytes, messages=cfg.messages)
        keys = KeysRepository(SettingsRepoSqlite(conn))
        client = ZhipuClient(keys.get_api_key, base_url=cfg.base_url)
        session = ChatSession(client, config=cfg, store=store, conversation_id=args.conversation)
        if args.image:
            with open(args.image, "rb") as fh:
                session.attach_image(fh.read())
        if args.file:
            session.attach_file(args.file)
        turn = asyncio.run(_run_turn(session, args.prompt, mode))
        if turn is None:
            print("nothing to send: give a prompt or an attachment", file=sys.stderr)
            return 2
        if args.json:
            print(json.dumps({"conversation_id": session.conversation_id, "turn": turn_to_json(turn)}, ensure_ascii=False))
        else:
            _print_turn(turn)
            print(f"\n(conversation {session.conversation_id})", file=sys.stderr)
        return 0


def handle_set_key(args: argparse.Namespace) -> int:
    cfg = build_config(args)
    with db_session(cfg.db_path) as conn:
        repo = SettingsRepoSqlite(conn)
        if args.clear:
            repo.delete_api_key()
            print("API key removed")
            return 0
        if not (args.key or "").strip():
            print("missing key (or pass --clear)", file=sys.stderr)
            return 2
        repo.set_api_key(args.key)
        print("API key stored")
        return 0


def handle_conversations(args: argparse.Namespace) -> int:
    cfg = build_config(args)
    with db_session(cfg.db_path) as conn:
        store = ConversationStoreSqlite(conn, storage_limit_bytes=cfg.storage_limit_bytes, messages=cfg.messages)
        if args.delete:
            store.delete(args.delete)
            print(f"deleted {args.delete}")
            return 0
        if args.show:
            turns = store.load(args.show)
            if args.json:
                print(json.dumps([turn_to_json(t) for t in turns], ensure_ascii=False))
            else:
                for t in turns:
                    print(f"{t.sender.value}> {t.text}")
            return 0
        rows = store.list_conversations()
        if args.json:
            print(
                json.dumps(
                    [
                        {
                            "id": r.id,
                            "title": r.title,
                            "created_at": r.created_at.isoformat(),
                            "updated_at": r.updated_at.isoformat(),
                            "message_count": r.message_count,
                        }
                        for r in rows
                    ],
                    ensure_ascii=False,
                )
            )
        else:
            for r in rows:
                print(f"{r.id}  {r.updated_at:%Y-%m-%d %H:%M}  {r.message_count:>4}  {r.title}")
        return 0


__all__ = [
    "build_config",
    "turn_to_json",
    "handle_turn",
    "handle_set_key",
    "handle_conversations",
]
