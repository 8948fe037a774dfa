from __future__ import annotations

from typing import Protocol, Sequence


class TokenCredentialProtocol(Protocol):
    """
    Назначение:
        Порт получения bearer-токена для каталога.
    Контракт:
        - Возвращает токен или None, если источник недоступен (нет переменных окружения, нет az CLI).
        - Явный отказ провайдера идентификации -> AuthenticationFailedError.
    """

    name: str

    def get_token(self, scopes: Sequence[str]) -> str | None: ...


__all__ = ["TokenCredentialProtocol"]
