"""Unified error taxonomy public surface.

Re-exports the implementations under ``glm_chat.base.errors_parts`` so callers
have one stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import ProviderError, truncate_body
from .errors_parts.classification import classify_exception, to_provider_error

__all__ = [
    "ErrorCode",
    "ProviderError",
    "truncate_body",
    "classify_exception",
    "to_provider_error",
]
