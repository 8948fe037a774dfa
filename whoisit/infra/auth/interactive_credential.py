from __future__ import annotations

from typing import Sequence

import msal

from whoisit.domain.exceptions import AuthenticationFailedError
from whoisit.domain.ports.credentials import TokenCredentialProtocol

# публичный клиент "Azure CLI developer sign-on", им же пользуются интерактивные входы Azure SDK
DEVELOPER_SIGN_ON_CLIENT_ID = "04b07795-8ddb-461a-bbee-02f9e1bf7b46"


class InteractiveBrowserCredential(TokenCredentialProtocol):
    """
    Назначение:
        Интерактивный вход пользователя через браузер (msal public client).
    Ограничения:
        - Токены живут только в памяти процесса: сначала silent по уже вошедшему аккаунту, затем браузер.
        - Требует рабочего браузера; не подходит для автоматических сценариев.
    """

    name = "interactive"

    def __init__(
        self,
        client_id: str | None = None,
        tenant_id: str | None = None,
        authority_host: str = "https://login.microsoftonline.com",
        app: msal.PublicClientApplication | None = None,
    ):
        self._client_id = client_id or DEVELOPER_SIGN_ON_CLIENT_ID
        self._authority = f"{authority_host.rstrip('/')}/{tenant_id or 'organizations'}"
        self._app = app
        self.unavailable_reason: str | None = None

    def _application(self) -> msal.PublicClientApplication:
        if self._app is None:
            self._app = msal.PublicClientApplication(self._client_id, authority=self._authority)
        return self._app

    def get_token(self, scopes: Sequence[str]) -> str | None:
        app = self._application()
        accounts = app.get_accounts()
        if accounts:
            result = app.acquire_token_silent(list(scopes), account=accounts[0])
            if result and result.get("access_token"):
                return result["access_token"]

        result = app.acquire_token_interactive(scopes=list(scopes), prompt="select_account")
        token = (result or {}).get("access_token")
        if not token:
            message = (result or {}).get("error_description") or (result or {}).get("error") or "Interactive sign-in failed"
            raise AuthenticationFailedError(message, attempted=(self.name,))
        return token
