"""Resilience helpers: the fixed-interval async task poller."""

from .polling import RUNNING_STATUSES, is_running_status, poll_async_result

__all__ = ["RUNNING_STATUSES", "is_running_status", "poll_async_result"]
