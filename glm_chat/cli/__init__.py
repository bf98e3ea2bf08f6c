"""glm-chat command line (package entrypoint).

Wires argument parsing to the handlers in ``cli_actions``.
"""

from __future__ import annotations

import sys
from typing import Optional

from ..base.logging import configure_logger
from ..base.models import ChatMode
from .cli_actions import handle_conversations, handle_set_key, handle_turn
from .cli_parser import build_parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    p = build_parser()
    args = p.parse_args(list(sys.argv[1:] if argv is None else argv))
    if args.log_level:
        configure_logger(level=args.log_level)
    if args.cmd in {m.value for m in ChatMode}:
        return handle_turn(args)
    if args.cmd == "set-key":
        return handle_set_key(args)
    if args.cmd == "conversations":
        return handle_conversations(args)
    p.print_help()
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
