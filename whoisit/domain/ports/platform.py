from __future__ import annotations

from pathlib import Path
from typing import Protocol


class ClipboardWriterProtocol(Protocol):
    """
    Назначение:
        Копирование текста в системный буфер обмена.
    Контракт:
        - True только при успешном завершении утилиты; любые сбои -> False, без исключений.
    """

    def copy(self, text: str) -> bool: ...


class InlineImageRendererProtocol(Protocol):
    """
    Назначение:
        Вывод изображения прямо в терминал (если терминал это умеет).
    """

    def render(self, path: Path, indent: str = "") -> bool: ...


class PhotoStoreProtocol(Protocol):
    def save(self, file_name: str, content: bytes) -> Path: ...


__all__ = ["ClipboardWriterProtocol", "InlineImageRendererProtocol", "PhotoStoreProtocol"]
