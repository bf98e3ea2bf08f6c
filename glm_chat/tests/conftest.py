"""Pytest configuration for the glm_chat test suite.

- Every test starts without a user config file or ``GLM_CHAT_*`` overrides so
  local settings cannot leak into assertions.
- Pooled HTTP clients are dropped after the session.
"""

from __future__ import annotations

import asyncio
import os
from typing import Iterator

import pytest


@pytest.fixture(autouse=True)
def _isolated_config_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove config-file and ``GLM_CHAT_*`` variables for the duration of a test."""
    for name in list(os.environ):
        if name.startswith("GLM_CHAT_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(scope="session", autouse=True)
def _close_http_pool() -> Iterator[None]:
    yield
    from glm_chat.base.http import close_all_clients

    asyncio.run(close_all_clients())
