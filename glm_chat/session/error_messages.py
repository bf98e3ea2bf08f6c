"""Map failures onto the short, localized text shown in an assistant turn."""

from __future__ import annotations

from ..base.errors import ErrorCode, ProviderError, to_provider_error
from ..config.messages import EN_MESSAGES, Messages


def _detail(err: ProviderError, messages: Messages) -> str:
    code = err.code
    if code is ErrorCode.MISSING_API_KEY:
        return messages.missing_api_key
    if code is ErrorCode.HTTP:
        status = err.status_code if err.status_code is not None else "?"
        if err.body:
            return messages.http_error_with_body.format(status=status, body=err.body)
        return messages.http_error.format(status=status)
    if code is ErrorCode.DECODE:
        return messages.decode_error
    if code is ErrorCode.NO_CONTENT:
        return messages.no_content
    if code is ErrorCode.TIMEOUT:
        return messages.invalid_response
    if code is ErrorCode.DNS:
        return messages.dns_error
    if code is ErrorCode.OFFLINE:
        return messages.offline_error
    if code is ErrorCode.NETWORK_TIMEOUT:
        return messages.network_timeout
    if code is ErrorCode.TRANSPORT:
        return messages.transport_error.format(detail=_describe(err.raw) or err.message)
    return messages.unknown_error.format(detail=_describe(err.raw) or err.message)


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return ""
    return str(exc) or exc.__class__.__name__


def friendly_error_message(error: BaseException, prefix: str, messages: Messages = EN_MESSAGES) -> str:
    """Return ``"{prefix}: {detail}"`` for ``error``.

    Provider errors map to their specific text, network failures (host
    resolution, offline, timeout) to distinct advice, and anything else to the
    exception's own description.
    """
    err = to_provider_error(error)
    return messages.prefixed(prefix, _detail(err, messages))


__all__ = ["friendly_error_message"]
