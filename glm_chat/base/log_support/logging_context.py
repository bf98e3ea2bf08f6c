"""Structured logging context object.

:class:`LogContext` carries the fields common to one request (mode, model,
async task id, placeholder turn id) and renders them without ``None`` values.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for session logging events."""

    mode: Optional[str] = None
    model: Optional[str] = None
    task_id: Optional[str] = None
    turn_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}


__all__ = ["LogContext"]
