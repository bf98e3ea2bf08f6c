"""glm_chat.config.env
===================

Environment variable names and helpers for the provider credential.

Design Notes
------------
- ``ZHIPU_API_KEY`` is canonical; ``GLM_API_KEY`` is accepted as an alias.
- Helpers never raise on unset variables; callers decide how to proceed.
"""

from __future__ import annotations

import os
from typing import Optional, Tuple

API_KEY_ENV_VARS: Tuple[str, ...] = ("ZHIPU_API_KEY", "GLM_API_KEY")


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the value looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme' or 'example' (case-insensitive).
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return "placeholder" in v or "changeme" in v or "example" in v


def resolve_api_key_from_env() -> Tuple[Optional[str], Optional[str]]:
    """Return ``(value, env_var_used)`` for the first non-empty, non-placeholder key.

    ``(None, None)`` when nothing usable is set.
    """
    for name in API_KEY_ENV_VARS:
        val = (os.environ.get(name) or "").strip()
        if val and not is_placeholder(val):
            return val, name
    return None, None


__all__ = ["API_KEY_ENV_VARS", "is_placeholder", "resolve_api_key_from_env"]
