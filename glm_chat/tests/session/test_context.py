from io import BytesIO

from PIL import Image

from glm_chat.base.models import Attachments
from glm_chat.config.messages import EN_MESSAGES, ZH_MESSAGES
from glm_chat.session.context import (
    EditorContextProvider,
    EditorFileContext,
    compose_content,
    describe_image,
    load_file_context,
)


def _png(width, height):
    buf = BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


def test_describe_image_reports_dimensions():
    assert describe_image(_png(64, 32)) == "An image of about 64x32."  # nosec B101
    assert "64x32" in describe_image(_png(64, 32), ZH_MESSAGES)  # nosec B101


def test_describe_image_unparseable_bytes():
    assert describe_image(b"definitely not an image") == EN_MESSAGES.image_unparseable  # nosec B101


def test_load_text_file_is_trimmed_and_cut(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("  " + "x" * 30 + "  \n", encoding="utf-8")
    ctx = load_file_context(str(path), max_chars=10)
    assert ctx.file_name == "notes.txt"  # nosec B101
    assert ctx.text_snippet == "x" * 10 + "…"  # nosec B101
    assert ctx.path == str(path)  # nosec B101


def test_load_binary_file_is_summarized_by_size(tmp_path):
    path = tmp_path / "blob.bin"
    path.write_bytes(b"\xff\xfe\x00" * 1024)
    ctx = load_file_context(str(path))
    assert ctx.text_snippet == "Non-text file, about 3 KB."  # nosec B101


def test_load_missing_file_reports_failure(tmp_path):
    ctx = load_file_context(str(tmp_path / "missing.txt"))
    assert ctx.text_snippet.startswith("Failed to read file: ")  # nosec B101


def test_compose_content_appends_attachments_in_order():
    attachments = Attachments(image_data=_png(10, 20), file_summary="print(1)", file_name="a.py", file_path="/src/a.py")
    content = compose_content("explain", attachments)
    assert content == (  # nosec B101
        "explain"
        "\n\nAttached image info: An image of about 10x20."
        "\n\nAttached file (a.py) summary: print(1)"
        "\nFile path: /src/a.py"
    )


def test_compose_content_without_attachments_is_text():
    assert compose_content("hi", Attachments()) == "hi"  # nosec B101


def test_editor_context_protocol():
    class Editor:
        def current_file(self):
            return EditorFileContext("main.py", "x = 1", "/w/main.py")

    editor = Editor()
    assert isinstance(editor, EditorContextProvider)  # nosec B101
    attachments = editor.current_file().to_attachments(b"img")
    assert attachments.file_summary == "x = 1" and attachments.image_data == b"img"  # nosec B101
