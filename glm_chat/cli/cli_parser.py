"""CLI parser construction for glm-chat.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions``.
"""

from __future__ import annotations

import argparse

from ..base.models import ChatMode


def _add_turn_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("prompt", nargs="?", default="", help="User text for this turn")
    parser.add_argument("--conversation", default=None, help="Conversation id to continue (new one when omitted)")
    parser.add_argument("--image", default=None, help="Path of an image to attach")
    parser.add_argument("--file", default=None, help="Path of a file whose snippet is attached")
    parser.add_argument("--model", default=None, help="Override the model for this mode")
    parser.add_argument("--json", action="store_true", help="Print the assistant turn as JSON")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser with ``chat``/``image``/``video``, ``set-key`` and ``conversations``.

    No I/O happens here.
    """
    p = argparse.ArgumentParser(prog="glm-chat", description="Zhipu GLM chat client")
    p.add_argument("--db", default=None, help="SQLite database path (default ~/.glm_chat/chat.db)")
    p.add_argument("--locale", default=None, help="Message catalog: en or zh")
    p.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    sub = p.add_subparsers(dest="cmd")

    p_chat = sub.add_parser(ChatMode.CHAT.value, help="Send a chat turn")
    _add_turn_args(p_chat)
    grp = p_chat.add_mutually_exclusive_group()
    grp.add_argument("--stream", dest="stream_first", action="store_true", default=None)
    grp.add_argument("--no-stream", dest="stream_first", action="store_false")

    p_image = sub.add_parser(ChatMode.IMAGE.value, help="Generate an image")
    _add_turn_args(p_image)

    p_video = sub.add_parser(ChatMode.VIDEO.value, help="Generate a video")
    _add_turn_args(p_video)

    p_key = sub.add_parser("set-key", help="Store the Zhipu API key in the settings database")
    p_key.add_argument("key", nargs="?", default=None)
    p_key.add_argument("--clear", action="store_true", help="Remove the stored key")

    p_conv = sub.add_parser("conversations", help="List stored conversations")
    p_conv.add_argument("--delete", default=None, metavar="ID", help="Delete a conversation")
    p_conv.add_argument("--show", default=None, metavar="ID", help="Print a conversation's turns")
    p_conv.add_argument("--json", action="store_true")

    return p


__all__ = ["build_parser"]
