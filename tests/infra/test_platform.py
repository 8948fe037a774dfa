from __future__ import annotations

import base64
import io
import subprocess

from whoisit.infra.photos.photo_store import FilePhotoStore
from whoisit.infra.platform import clipboard as clipboard_module
from whoisit.infra.platform.clipboard import (
    LINUX_COMMANDS,
    CommandClipboardWriter,
    NullClipboardWriter,
    select_clipboard_writer,
)
from whoisit.infra.platform.inline_image import (
    ITerm2InlineImageRenderer,
    NullInlineImageRenderer,
    is_iterm2,
    select_inline_image_renderer,
)
from whoisit.infra.sources.stdin_reader import is_input_piped, read_identifiers


def test_select_clipboard_writer_by_platform():
    assert select_clipboard_writer("darwin").commands == [("pbcopy",)]
    assert select_clipboard_writer("win32").commands == [("clip",)]
    assert select_clipboard_writer("linux").commands == [tuple(cmd) for cmd in LINUX_COMMANDS]
    assert isinstance(select_clipboard_writer("sunos5"), NullClipboardWriter)


def test_clipboard_falls_back_to_xsel_when_xclip_missing(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs["input"]))
        if cmd[0] == "xclip":
            raise FileNotFoundError("xclip")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(clipboard_module.subprocess, "run", fake_run)

    assert CommandClipboardWriter(LINUX_COMMANDS).copy("whoisit B1") is True
    assert [cmd[0] for cmd, _input in calls] == ["xclip", "xsel"]
    assert calls[1][1] == "whoisit B1"


def test_clipboard_nonzero_exit_is_failure(monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, "", "Can't open display")

    monkeypatch.setattr(clipboard_module.subprocess, "run", fake_run)

    assert CommandClipboardWriter(LINUX_COMMANDS).copy("whoisit B1") is False


def test_clipboard_timeout_is_failure(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(clipboard_module.subprocess, "run", fake_run)

    assert CommandClipboardWriter([("pbcopy",)]).copy("whoisit B1") is False


def test_inline_image_escape_sequence(tmp_path):
    photo = tmp_path / "A1.jpg"
    photo.write_bytes(b"\xff\xd8jpeg")
    written = []

    def write(text="", nl=True):
        written.append((text, nl))

    assert ITerm2InlineImageRenderer(write=write).render(photo, "  ") is True

    encoded = base64.b64encode(b"\xff\xd8jpeg").decode("ascii")
    assert written == [
        ("  ", True),
        (f"\x1b]1337;File=inline=1;width=20;preserveAspectRatio=1:{encoded}\x07", False),
        ("", True),
    ]


def test_inline_image_missing_file_is_skipped(tmp_path):
    written = []

    renderer = ITerm2InlineImageRenderer(write=lambda text="", nl=True: written.append(text))

    assert renderer.render(tmp_path / "missing.jpg") is False
    assert written == []


def test_inline_image_only_in_iterm2_on_macos():
    assert is_iterm2({"TERM_PROGRAM": "iterm.app"})
    assert not is_iterm2({"TERM_PROGRAM": "Apple_Terminal"})
    assert isinstance(
        select_inline_image_renderer("darwin", {"TERM_PROGRAM": "iTerm.app"}),
        ITerm2InlineImageRenderer,
    )
    assert isinstance(
        select_inline_image_renderer("linux", {"TERM_PROGRAM": "iTerm.app"}),
        NullInlineImageRenderer,
    )


def test_photo_store_creates_relative_directory_in_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    path = FilePhotoStore("photos").save("A1.jpg", b"data")

    assert path == tmp_path / "photos" / "A1.jpg"
    assert path.read_bytes() == b"data"


def test_read_identifiers_skips_blank_lines():
    stream = io.StringIO("Z1\n\n  jane@co.com  \n   \nZ2")

    assert read_identifiers(stream) == ["Z1", "jane@co.com", "Z2"]


def test_is_input_piped():
    assert is_input_piped(io.StringIO("Z1\n")) is True
    assert is_input_piped(None) is False

    class Terminal(io.StringIO):
        def isatty(self):
            return True

    assert is_input_piped(Terminal()) is False
