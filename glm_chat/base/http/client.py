"""Shared async HTTP client pool.

Purpose:
    Provide a centralized pool of reusable ``httpx.AsyncClient`` instances so
    the provider client does not allocate a connection pool per call.
    Timeouts derive from :func:`get_timeout_config`.

Lifecycle & cleanup:
    - Clients are cached by ``(base_url, purpose)``. Purposes keep streaming
      connections ("stream") apart from short request/response calls ("rest").
    - An ``AsyncClient`` is bound to the event loop it was first used on, so
      the pool is keyed per running loop as well.
    - :func:`close_all_clients` closes and forgets every pooled client; call it
      at application shutdown or in test teardown.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Dict, Optional, Tuple

import httpx

from ..timeouts import get_timeout_config

_CLIENTS: Dict[Tuple[Optional[str], str, int], httpx.AsyncClient] = {}
_LOCK = threading.RLock()


def _loop_key() -> int:
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return 0


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.AsyncClient:
    """Return a pooled ``httpx.AsyncClient`` for the given base URL and purpose.

    Parameters:
        base_url: Optional API base URL set on the client so relative paths work.
        purpose: Short discriminator (e.g. ``"rest"``, ``"stream"``).

    Returns:
        A reusable ``httpx.AsyncClient`` instance.
    """
    key = (base_url, purpose, _loop_key())
    client = _CLIENTS.get(key)
    if client is not None and not client.is_closed:
        return client

    with _LOCK:
        client = _CLIENTS.get(key)
        if client is not None and not client.is_closed:
            return client
        cfg = get_timeout_config()
        if purpose == "stream":
            timeout = httpx.Timeout(cfg.http_timeout_seconds, read=cfg.stream_timeout_seconds)
        else:
            timeout = httpx.Timeout(cfg.http_timeout_seconds)
        client = httpx.AsyncClient(base_url=base_url, timeout=timeout) if base_url else httpx.AsyncClient(timeout=timeout)
        _CLIENTS[key] = client
        return client


async def close_all_clients() -> None:
    """Close and clear all pooled HTTP clients."""
    with _LOCK:
        clients = list(_CLIENTS.values())
        _CLIENTS.clear()
    for c in clients:
        try:
            await c.aclose()
        except Exception:  # nosec B110 - best-effort shutdown; close errors are non-actionable
            pass


__all__ = ["get_httpx_client", "close_all_clients"]
