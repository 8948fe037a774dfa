from __future__ import annotations

from typing import Iterable, TextIO


def is_input_piped(stream: TextIO | None) -> bool:
    """
    Назначение:
        Признак перенаправленного stdin (pipe/файл), включает пакетный режим.
    """
    if stream is None:
        return False
    try:
        return not stream.isatty()
    except (AttributeError, ValueError):
        return False


def read_identifiers(lines: Iterable[str]) -> list[str]:
    """
    Назначение:
        Строки входа -> идентификаторы: trim, пустые строки пропускаются, порядок сохраняется.
    """
    identifiers: list[str] = []
    for line in lines:
        value = line.strip()
        if value:
            identifiers.append(value)
    return identifiers
