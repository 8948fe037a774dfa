from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import quote

from whoisit.domain.ports.directory import DirectoryClientProtocol
from whoisit.infra.http.graph_client import GraphApiClient


def buildEqFilter(field: str, value: str) -> str:
    """OData-фильтр вида "<field> eq '<value>'"; одиночная кавычка экранируется удвоением."""
    escaped = value.replace("'", "''")
    return f"{field} eq '{escaped}'"


class GraphDirectoryGateway(DirectoryClientProtocol):
    """
    Назначение/ответственность:
        Адаптер порта каталога к Microsoft Graph.
    Взаимодействия:
        Использует GraphApiClient; ожидаемое отсутствие данных отдаёт как None.
    """

    def __init__(self, client: GraphApiClient):
        self.client = client

    def find_user(self, filter_field: str, value: str, fields: Sequence[str]) -> dict[str, Any] | None:
        """
        Назначение:
            Найти пользователя по равенству поля.
        Контракт:
            - Возвращает первое совпадение в порядке ответа сервиса, иначе None.
        """
        data = self.client.getJson(
            "users",
            params={
                "$filter": buildEqFilter(filter_field, value),
                "$select": ",".join(fields),
            },
        )
        items = data.get("value") if isinstance(data, dict) else None
        if not items:
            return None
        first = items[0]
        return first if isinstance(first, dict) else None

    def get_manager(self, user_id: str) -> dict[str, Any] | None:
        data = self.client.getJsonOrNone(f"users/{_segment(user_id)}/manager", params={"$select": "id"})
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return data

    def get_user(self, user_id: str, fields: Sequence[str]) -> dict[str, Any] | None:
        data = self.client.getJsonOrNone(f"users/{_segment(user_id)}", params={"$select": ",".join(fields)})
        return data if isinstance(data, dict) else None

    def get_photo(self, user_id: str) -> bytes | None:
        return self.client.getBytesOrNone(f"users/{_segment(user_id)}/photo/$value")


def _segment(value: str) -> str:
    return quote(value, safe="@.-_")
