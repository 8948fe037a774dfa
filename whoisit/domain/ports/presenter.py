from __future__ import annotations

from typing import Protocol

from whoisit.domain.models import Identifier, LookupOptions, ResolvedUser


class PresenterProtocol(Protocol):
    """
    Назначение:
        Порт вывода: записи пользователей и строки статуса.
    Ограничения:
        Только форматирование, без бизнес-логики; никогда не бросает исключений из-за отсутствующих полей.
    """

    def separator(self) -> None: ...
    def manager_level(self, level: int) -> None: ...
    def searching(self, identifier: Identifier, level: int) -> None: ...
    def not_found(self, identifier: Identifier, level: int) -> None: ...
    def circular_reference(self, identifier: Identifier, level: int) -> None: ...
    def record(self, resolved: ResolvedUser, level: int, options: LookupOptions) -> None: ...
    def traversal_step(self, level: int) -> None: ...
    def reached_top(self, level: int) -> None: ...
    def depth_limit(self, max_depth: int, level: int) -> None: ...
    def clipboard_result(self, command: str, copied: bool, level: int) -> None: ...
    def auth_failed(self, message: str) -> None: ...
    def api_error(self, message: str) -> None: ...
    def unexpected_error(self, message: str) -> None: ...


__all__ = ["PresenterProtocol"]
