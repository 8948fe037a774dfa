from __future__ import annotations

import os
from typing import Sequence

import msal

from whoisit.domain.exceptions import AuthenticationFailedError
from whoisit.domain.ports.credentials import TokenCredentialProtocol


class EnvironmentCredential(TokenCredentialProtocol):
    """
    Назначение:
        Сервисная учётная запись из переменных окружения (client credentials grant через msal).
    Контракт:
        - Нет AZURE_TENANT_ID/AZURE_CLIENT_ID/AZURE_CLIENT_SECRET -> None (источник недоступен).
        - Отказ провайдера идентификации -> AuthenticationFailedError.
    """

    name = "environment"

    def __init__(self, authority_host: str = "https://login.microsoftonline.com", environ=None):
        self._authority_host = authority_host.rstrip("/")
        self._environ = environ if environ is not None else os.environ
        self._app: msal.ConfidentialClientApplication | None = None
        self.unavailable_reason: str | None = None

    def _read(self) -> tuple[str, str, str] | None:
        tenant_id = (self._environ.get("AZURE_TENANT_ID") or "").strip()
        client_id = (self._environ.get("AZURE_CLIENT_ID") or "").strip()
        client_secret = (self._environ.get("AZURE_CLIENT_SECRET") or "").strip()
        if not (tenant_id and client_id and client_secret):
            return None
        return tenant_id, client_id, client_secret

    def get_token(self, scopes: Sequence[str]) -> str | None:
        values = self._read()
        if values is None:
            self.unavailable_reason = "AZURE_TENANT_ID, AZURE_CLIENT_ID and AZURE_CLIENT_SECRET are not set"
            return None
        tenant_id, client_id, client_secret = values
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                client_id,
                client_credential=client_secret,
                authority=f"{self._authority_host}/{tenant_id}",
            )
        result = self._app.acquire_token_for_client(scopes=list(scopes))
        token = (result or {}).get("access_token")
        if not token:
            raise AuthenticationFailedError(_describe(result), attempted=(self.name,))
        return token


def _describe(result: dict | None) -> str:
    if not result:
        return "Token request returned no result"
    return result.get("error_description") or result.get("error") or "Token request failed"
