"""User-facing message catalog.

Every text the session writes into an assistant turn comes from a
:class:`Messages` instance so the renderer never has to translate. Two
catalogs ship: English (default) and Simplified Chinese.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Messages:
    # Mode prefixes for failures
    request_failed: str = "Request failed"
    image_failed: str = "Image generation failed"
    video_failed: str = "Video generation failed"
    prefix_separator: str = ": "

    # Cancellation notices
    request_cancelled: str = "Request cancelled."
    image_cancelled: str = "Image generation cancelled."
    video_cancelled: str = "Video generation cancelled."

    # Media status
    image_generated: str = "Image generated"
    image_no_link: str = "Image generation completed, but no link was returned."
    video_no_link: str = "Video generation completed, but no link was returned."

    # Error details
    missing_api_key: str = "No Zhipu API key configured. Add one in settings or set ZHIPU_API_KEY."
    invalid_response: str = "The server response was invalid. Please try again later."
    http_error: str = "The server returned an error ({status})."
    http_error_with_body: str = "The server returned an error ({status}): {body}"
    decode_error: str = "The server response could not be read."
    no_content: str = "The model returned no content."
    dns_error: str = "Could not resolve the server address. Check your network or DNS settings."
    offline_error: str = "You appear to be offline. Check your network connection."
    network_timeout: str = "The network request timed out. Please try again."
    transport_error: str = "A network error occurred: {detail}"
    unknown_error: str = "{detail}"

    # Attachments
    attached_image: str = "Attached image info: {description}"
    image_with_size: str = "An image of about {width}x{height}."
    image_unparseable: str = "An image (dimensions could not be parsed)."
    attached_file: str = "Attached file ({name}) summary: {summary}"
    attached_file_path: str = "File path: {path}"
    default_file_name: str = "selected file"
    non_text_file: str = "Non-text file, about {kb} KB."
    file_read_failed: str = "Failed to read file: {error}"

    # Conversations
    new_chat_title: str = "New chat"

    def prefixed(self, prefix: str, detail: str) -> str:
        return f"{prefix}{self.prefix_separator}{detail}"


ZH_MESSAGES = Messages(
    request_failed="请求失败",
    image_failed="图片生成失败",
    video_failed="视频生成失败",
    prefix_separator="：",
    request_cancelled="请求已取消。",
    image_cancelled="图片生成已取消。",
    video_cancelled="视频生成已取消。",
    image_generated="图片已生成",
    image_no_link="图片生成完成，但未返回链接。",
    video_no_link="视频生成完成",
    missing_api_key="未配置智谱 API Key。请在设置中填写，或设置环境变量 ZHIPU_API_KEY。",
    invalid_response="服务器响应无效，请稍后重试。",
    http_error="服务器返回错误（{status}）。",
    http_error_with_body="服务器返回错误（{status}）: {body}",
    decode_error="无法解析服务器响应。",
    no_content="模型没有返回任何内容。",
    dns_error="无法解析服务器地址，请检查网络或 DNS 设置。",
    offline_error="网络似乎已断开，请检查网络连接。",
    network_timeout="网络请求超时，请稍后重试。",
    transport_error="网络错误：{detail}",
    attached_image="附加图像信息：{description}",
    image_with_size="一张分辨率约为 {width}x{height} 的图片。",
    image_unparseable="一张图片（无法解析尺寸）。",
    attached_file="附加文件（{name}）内容摘要：{summary}",
    attached_file_path="文件路径：{path}",
    default_file_name="选中文件",
    non_text_file="非纯文本文件，大小约 {kb} KB。",
    file_read_failed="读取文件失败：{error}",
    new_chat_title="新会话",
)

EN_MESSAGES = Messages()

CATALOGS: Dict[str, Messages] = {"en": EN_MESSAGES, "zh": ZH_MESSAGES}


def get_messages(locale: str | None) -> Messages:
    """Return the catalog for ``locale`` (``zh``, ``zh-CN``, ``en`` ...); English otherwise."""
    key = (locale or "en").split("-", 1)[0].split("_", 1)[0].lower()
    return CATALOGS.get(key, EN_MESSAGES)


__all__ = ["Messages", "EN_MESSAGES", "ZH_MESSAGES", "CATALOGS", "get_messages"]
