from __future__ import annotations

import base64
import os
import sys
from pathlib import Path
from typing import Callable, Mapping

import typer

from whoisit.domain.ports.platform import InlineImageRendererProtocol

ITERM_PROGRAM = "iTerm.app"


class ITerm2InlineImageRenderer(InlineImageRendererProtocol):
    """
    Назначение:
        Показ фото в iTerm2 через inline images protocol:
        ESC ] 1337 ; File=[аргументы] : base64 BEL
    """

    def __init__(self, write: Callable[..., None] = typer.echo):
        self._write = write

    def render(self, path: Path, indent: str = "") -> bool:
        try:
            payload = base64.b64encode(Path(path).read_bytes()).decode("ascii")
        except OSError:
            return False
        self._write(indent)
        self._write(f"\x1b]1337;File=inline=1;width=20;preserveAspectRatio=1:{payload}\x07", nl=False)
        self._write("")
        return True


class NullInlineImageRenderer(InlineImageRendererProtocol):
    def render(self, path: Path, indent: str = "") -> bool:
        return False


def is_iterm2(environ: Mapping[str, str] | None = None) -> bool:
    environ = os.environ if environ is None else environ
    term_program = environ.get("TERM_PROGRAM") or ""
    return term_program.lower() == ITERM_PROGRAM.lower()


def select_inline_image_renderer(
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> InlineImageRendererProtocol:
    """Inline-показ поддерживается только в iTerm2 на macOS."""
    platform = platform or sys.platform
    if platform == "darwin" and is_iterm2(environ):
        return ITerm2InlineImageRenderer()
    return NullInlineImageRenderer()
