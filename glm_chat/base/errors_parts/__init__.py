"""Errors parts package public surface.

Prefer importing from `glm_chat.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError, truncate_body
from .classification import classify_exception, to_provider_error

__all__ = ["ErrorCode", "ProviderError", "truncate_body", "classify_exception", "to_provider_error"]
