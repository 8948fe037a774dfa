from __future__ import annotations

import subprocess
import sys
from typing import Sequence

from whoisit.domain.ports.platform import ClipboardWriterProtocol

MACOS_COMMANDS: tuple[tuple[str, ...], ...] = (("pbcopy",),)
WINDOWS_COMMANDS: tuple[tuple[str, ...], ...] = (("clip",),)
LINUX_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
)


class CommandClipboardWriter(ClipboardWriterProtocol):
    """
    Назначение:
        Копирование в буфер обмена через системную утилиту (текст подаётся на stdin).
    Алгоритм:
        - Команды пробуются по порядку; следующая используется, если предыдущую
          не удалось запустить или она завершилась с ненулевым кодом.
        - Успех = код завершения 0.
    """

    def __init__(self, commands: Sequence[Sequence[str]], timeout_seconds: float = 5.0):
        self.commands = [tuple(cmd) for cmd in commands]
        self.timeout_seconds = timeout_seconds

    def copy(self, text: str) -> bool:
        if not text:
            return False
        for cmd in self.commands:
            try:
                completed = subprocess.run(
                    list(cmd),
                    input=text,
                    text=True,
                    capture_output=True,
                    timeout=self.timeout_seconds,
                    check=False,
                )
            except (OSError, subprocess.SubprocessError):
                continue
            if completed.returncode == 0:
                return True
        return False


class NullClipboardWriter(ClipboardWriterProtocol):
    """Платформа без поддерживаемой утилиты: копирование всегда неуспешно."""

    def copy(self, text: str) -> bool:
        return False


def select_clipboard_writer(platform: str | None = None) -> ClipboardWriterProtocol:
    """
    Назначение:
        Выбор реализации по платформе (sys.platform): darwin -> pbcopy, win32 -> clip,
        linux -> xclip с запасным xsel, прочие -> NullClipboardWriter.
    """
    platform = platform or sys.platform
    if platform == "darwin":
        return CommandClipboardWriter(MACOS_COMMANDS)
    if platform.startswith("win"):
        return CommandClipboardWriter(WINDOWS_COMMANDS)
    if platform.startswith("linux"):
        return CommandClipboardWriter(LINUX_COMMANDS)
    return NullClipboardWriter()
