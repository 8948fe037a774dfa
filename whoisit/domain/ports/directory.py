from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class DirectoryClientProtocol(Protocol):
    """
    Назначение:
        Порт каталога организации (пользователи, руководители, фото).
    Контракт:
        - Ожидаемое отсутствие данных (нет совпадений, нет руководителя, нет фото) -> None.
        - Ошибки транспорта/API -> ApiError, аутентификации -> AuthenticationFailedError.
    """

    def find_user(self, filter_field: str, value: str, fields: Sequence[str]) -> dict[str, Any] | None: ...
    def get_manager(self, user_id: str) -> dict[str, Any] | None: ...
    def get_user(self, user_id: str, fields: Sequence[str]) -> dict[str, Any] | None: ...
    def get_photo(self, user_id: str) -> bytes | None: ...


__all__ = ["DirectoryClientProtocol"]
