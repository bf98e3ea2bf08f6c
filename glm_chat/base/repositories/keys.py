"""
Keys Repository

Purpose
- Resolve the Zhipu API key for every provider call.

Design
- Priority: stored settings value (trimmed) first, then the environment
  (``ZHIPU_API_KEY`` / ``GLM_API_KEY``), then ``None``.
- Non-throwing accessors; the client turns ``None`` into ``MISSING_API_KEY``.

Usage
- repo = KeysRepository(SettingsRepoSqlite(conn))
- client = ZhipuClient(repo.get_api_key)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from ...config.env import resolve_api_key_from_env


class _SettingsSource(Protocol):
    def get_api_key(self) -> Optional[str]: ...


@dataclass
class KeyResolution:
    api_key: Optional[str]
    source: str  # "settings", "env", "none"
    extra: Dict[str, Any] = field(default_factory=dict)


class KeysRepository:
    """Read-only credential resolver over an optional settings store."""

    def __init__(self, settings: _SettingsSource | None = None) -> None:
        self._settings = settings

    def get_api_key(self) -> Optional[str]:
        return self.get_resolution().api_key

    def get_resolution(self) -> KeyResolution:
        if self._settings is not None:
            stored = (self._settings.get_api_key() or "").strip()
            if stored:
                return KeyResolution(api_key=stored, source="settings")
        val, used = resolve_api_key_from_env()
        if val:
            return KeyResolution(api_key=val, source="env", extra={"env_var": used})
        return KeyResolution(api_key=None, source="none")


__all__ = ["KeysRepository", "KeyResolution"]
