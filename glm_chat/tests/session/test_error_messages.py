import httpx

from glm_chat.base.errors import ErrorCode, ProviderError
from glm_chat.config.messages import EN_MESSAGES, ZH_MESSAGES
from glm_chat.session.error_messages import friendly_error_message


def test_http_error_includes_status_and_body():
    err = ProviderError(code=ErrorCode.HTTP, message="HTTP 401", status_code=401, body="bad key")
    assert friendly_error_message(err, "Request failed") == "Request failed: The server returned an error (401): bad key"  # nosec B101


def test_http_error_without_body():
    err = ProviderError(code=ErrorCode.HTTP, message="HTTP 502", status_code=502)
    assert friendly_error_message(err, "Request failed") == "Request failed: The server returned an error (502)."  # nosec B101


def test_network_failures_get_distinct_advice():
    dns = httpx.ConnectError("[Errno -3] Temporary failure in name resolution")
    offline = httpx.ConnectError("[Errno 101] Network is unreachable")
    timeout = httpx.ReadTimeout("read timed out")
    assert friendly_error_message(dns, "Request failed").endswith(EN_MESSAGES.dns_error)  # nosec B101
    assert friendly_error_message(offline, "Request failed").endswith(EN_MESSAGES.offline_error)  # nosec B101
    assert friendly_error_message(timeout, "Request failed").endswith(EN_MESSAGES.network_timeout)  # nosec B101


def test_unknown_error_uses_its_own_description():
    assert friendly_error_message(Exception("boom"), "Request failed") == "Request failed: boom"  # nosec B101


def test_poll_timeout_reads_as_invalid_response():
    err = ProviderError(code=ErrorCode.TIMEOUT, message="no result after 60s")
    assert friendly_error_message(err, "Video generation failed") == (  # nosec B101
        "Video generation failed: " + EN_MESSAGES.invalid_response
    )


def test_localized_prefix_separator():
    err = ProviderError(code=ErrorCode.MISSING_API_KEY, message="no key")
    text = friendly_error_message(err, ZH_MESSAGES.image_failed, ZH_MESSAGES)
    assert text == "图片生成失败：" + ZH_MESSAGES.missing_api_key  # nosec B101
