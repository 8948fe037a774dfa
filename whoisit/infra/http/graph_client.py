from __future__ import annotations

import time
from typing import Any

import httpx

from whoisit.common.sanitize import truncateText
from whoisit.domain.error_codes import ErrorCode
from whoisit.domain.exceptions import AuthenticationFailedError
from whoisit.domain.ports.credentials import TokenCredentialProtocol
from whoisit.errors import AppError


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение для ошибок HTTP/API уровня GraphApiClient.
        Контракт:
            - code: строковый код из ErrorCode (UNAUTHORIZED, NETWORK_ERROR, INVALID_JSON и т.п.).
            - status_code/body_snippet используются для диагностики.
        """
        super().__init__(
            category="api",
            code=code or (ErrorCode.from_status(status_code).value if status_code else ErrorCode.API_ERROR.value),
            message=message,
            retryable=retryable,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


def graphScopeFor(baseUrl: str) -> str:
    """Scope '.default' для ресурса, на котором живёт baseUrl (https://graph.microsoft.com/.default)."""
    url = httpx.URL(baseUrl)
    return f"{url.scheme}://{url.host}/.default"


class GraphApiClient:
    def __init__(
        self,
        baseUrl: str,
        credential: TokenCredentialProtocol,
        scopes: list[str] | None = None,
        timeoutSeconds: float = 30.0,
        retries: int = 0,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            Клиент Microsoft Graph REST API поверх httpx.
        Контракт:
            - Токен запрашивается у credential лениво, один раз на клиента.
            - retries=0: каждый вызов выполняется ровно один раз.
        """
        self.baseUrl = baseUrl.rstrip("/")
        self.credential = credential
        self.scopes = scopes or [graphScopeFor(self.baseUrl)]
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0
        self._token: str | None = None

        self.client = httpx.Client(
            base_url=self.baseUrl + "/",
            timeout=timeoutSeconds,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def getRetryAttempts(self) -> int:
        """Возвращает количество выполненных повторных попыток."""
        return self.retry_attempts

    def _accessToken(self) -> str:
        if self._token is None:
            token = self.credential.get_token(self.scopes)
            if not token:
                # ChainedTokenCredential бросает сам; сюда попадаем с одиночным источником
                raise AuthenticationFailedError(
                    "No access token available",
                    attempted=(getattr(self.credential, "name", type(self.credential).__name__),),
                )
            self._token = token
        return self._token

    def _headers(self, accept: str = "application/json") -> dict[str, str]:
        """Базовые заголовки с bearer-токеном."""
        return {
            "accept": accept,
            "Authorization": f"Bearer {self._accessToken()}",
        }

    def _should_retry(self, resp: httpx.Response) -> bool:
        """Решает, стоит ли повторить запрос (429 или 5xx)."""
        if resp.status_code == 429:
            return True
        if 500 <= resp.status_code <= 599:
            return True
        return False

    def _sleep_backoff(self, attempt: int, resp: httpx.Response | None = None) -> None:
        """Задержка с экспоненциальным ростом; Retry-After от Graph имеет приоритет."""
        delay = self.retryBackoffSeconds * (2 ** attempt)
        if resp is not None:
            retry_after = resp.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                delay = float(retry_after)
        time.sleep(delay)

    def _send(self, path: str, params: dict[str, Any] | None, accept: str) -> httpx.Response:
        """
        GET с ретраями по 429/5xx и ошибкам запроса. Статус ответа не проверяется.
        Любая httpx.RequestError (сеть, таймаут, битое сжатое тело, редиректы) -> ApiError(NETWORK_ERROR).
        """
        attempt = 0
        while True:
            try:
                resp = self.client.get(path.lstrip("/"), params=params or {}, headers=self._headers(accept))
            except httpx.RequestError as exc:
                if attempt >= self.retries:
                    raise ApiError(
                        f"Network error: {exc}",
                        status_code=None,
                        retryable=False,
                        code=ErrorCode.NETWORK_ERROR.value,
                    ) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if self._should_retry(resp) and attempt < self.retries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt, resp)
                attempt += 1
                continue

            return resp

    def _raise_for_response(self, resp: httpx.Response) -> None:
        """Превращает неуспешный ответ в ApiError с сообщением из тела ошибки Graph."""
        body_snippet = truncateText(resp.text, 200) if resp.text else None
        message = f"HTTP {resp.status_code}"
        graph_code: str | None = None
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            graph_code = payload["error"].get("code")
            message = payload["error"].get("message") or message
        raise ApiError(
            message,
            status_code=resp.status_code,
            body_snippet=body_snippet,
            retryable=self._should_retry(resp),
            details={"body_snippet": body_snippet, "graph_code": graph_code},
        )

    def _parseJson(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                "Invalid JSON response",
                status_code=resp.status_code,
                retryable=False,
                code=ErrorCode.INVALID_JSON.value,
            ) from exc

    def getJson(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET JSON, парсит ответ или бросает ApiError."""
        resp = self._send(path, params, "application/json")
        if resp.status_code != 200:
            self._raise_for_response(resp)
        return self._parseJson(resp)

    def getJsonOrNone(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        """Как getJson, но 404 означает отсутствие ресурса и даёт None."""
        resp = self._send(path, params, "application/json")
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            self._raise_for_response(resp)
        return self._parseJson(resp)

    def getBytesOrNone(self, path: str, params: dict[str, Any] | None = None) -> bytes | None:
        """GET бинарного содержимого; 404 -> None."""
        resp = self._send(path, params, "*/*")
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            self._raise_for_response(resp)
        return resp.content or None
