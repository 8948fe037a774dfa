from __future__ import annotations

from typing import Iterable, Sequence

from whoisit.domain.exceptions import AuthenticationFailedError
from whoisit.domain.ports.credentials import TokenCredentialProtocol


class ChainedTokenCredential(TokenCredentialProtocol):
    """
    Назначение:
        Объединяет несколько источников и возвращает первый полученный токен.
    Паттерн:
        Composite / Chain of Responsibility.
    Контракт:
        - Источник вернул None -> пробуем следующий.
        - Источник бросил AuthenticationFailedError -> цепочка прерывается.
        - Все источники недоступны -> AuthenticationFailedError со списком причин.
    """

    name = "chain"

    def __init__(self, credentials: Iterable[TokenCredentialProtocol]):
        self._credentials = list(credentials)

    def get_token(self, scopes: Sequence[str]) -> str | None:
        attempted: list[str] = []
        reasons: list[str] = []
        for credential in self._credentials:
            attempted.append(credential.name)
            try:
                token = credential.get_token(scopes)
            except AuthenticationFailedError as exc:
                raise AuthenticationFailedError(exc.reason, attempted=tuple(attempted)) from exc
            if token:
                return token
            reason = getattr(credential, "unavailable_reason", None)
            if reason:
                reasons.append(f"{credential.name}: {reason}")
        message = "No credential in the chain could provide a token"
        if reasons:
            message = f"{message}; " + "; ".join(reasons)
        raise AuthenticationFailedError(message, attempted=tuple(attempted))
