from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

BASE_FIELDS: tuple[str, ...] = (
    "id",
    "displayName",
    "userPrincipalName",
    "mail",
    "employeeId",
    "jobTitle",
    "department",
    "officeLocation",
    "mobilePhone",
    "businessPhones",
)

EXTENDED_FIELDS: tuple[str, ...] = (
    "givenName",
    "surname",
    "companyName",
    "streetAddress",
    "city",
    "state",
    "postalCode",
    "country",
    "accountEnabled",
    "createdDateTime",
    "employeeHireDate",
    "employeeType",
)

MANAGER_FIELDS: tuple[str, ...] = ("displayName", "employeeId")


def select_fields(extended_info: bool) -> tuple[str, ...]:
    """Набор полей $select для основного запроса пользователя."""
    if extended_info:
        return BASE_FIELDS + EXTENDED_FIELDS
    return BASE_FIELDS


@dataclass(frozen=True)
class LookupOptions:
    """
    Назначение:
        Неизменяемые параметры одного запуска.
    Инварианты/гарантии:
        - traverse_tree несовместим с пакетным режимом (batch): ValueError при создании.
    """

    extended_info: bool = False
    traverse_tree: bool = False
    photo_download: bool = False
    batch: bool = False

    def __post_init__(self) -> None:
        if self.traverse_tree and self.batch:
            raise ValueError("Tree traversal (-t) can only be used with a single user, not with batch mode.")


class IdentifierKind(str, Enum):
    EMAIL = "email"
    EMPLOYEE_ID = "employee_id"


@dataclass(frozen=True)
class Identifier:
    """
    Назначение:
        Классифицированный и нормализованный ключ поиска.
    """

    kind: IdentifierKind
    value: str
    filter_field: str

    @property
    def label(self) -> str:
        return "email" if self.kind is IdentifierKind.EMAIL else "UId"


@dataclass(frozen=True)
class DisplayName:
    cleaned_name: str | None
    org_code: str | None


@dataclass(frozen=True)
class UserRecord:
    """
    Назначение:
        Запись каталога о пользователе (основные и расширенные поля Graph).
    Инварианты/гарантии:
        - business_phones сохраняет порядок, пустые значения отброшены.
        - account_enabled трёхзначный: True/False/None.
    """

    id: str | None = None
    display_name: str | None = None
    user_principal_name: str | None = None
    mail: str | None = None
    employee_id: str | None = None
    job_title: str | None = None
    department: str | None = None
    office_location: str | None = None
    mobile_phone: str | None = None
    business_phones: tuple[str, ...] = ()

    given_name: str | None = None
    surname: str | None = None
    company_name: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    account_enabled: bool | None = None
    created_date_time: str | None = None
    employee_hire_date: str | None = None
    employee_type: str | None = None

    @classmethod
    def from_graph(cls, payload: Mapping[str, Any]) -> "UserRecord":
        phones = payload.get("businessPhones") or ()
        if isinstance(phones, str):
            phones = (phones,)
        enabled = payload.get("accountEnabled")
        return cls(
            id=_text(payload.get("id")),
            display_name=_text(payload.get("displayName")),
            user_principal_name=_text(payload.get("userPrincipalName")),
            mail=_text(payload.get("mail")),
            employee_id=_text(payload.get("employeeId")),
            job_title=_text(payload.get("jobTitle")),
            department=_text(payload.get("department")),
            office_location=_text(payload.get("officeLocation")),
            mobile_phone=_text(payload.get("mobilePhone")),
            business_phones=tuple(str(p) for p in phones if p),
            given_name=_text(payload.get("givenName")),
            surname=_text(payload.get("surname")),
            company_name=_text(payload.get("companyName")),
            street_address=_text(payload.get("streetAddress")),
            city=_text(payload.get("city")),
            state=_text(payload.get("state")),
            postal_code=_text(payload.get("postalCode")),
            country=_text(payload.get("country")),
            account_enabled=enabled if isinstance(enabled, bool) else None,
            created_date_time=_text(payload.get("createdDateTime")),
            employee_hire_date=_text(payload.get("employeeHireDate")),
            employee_type=_text(payload.get("employeeType")),
        )


@dataclass(frozen=True)
class ManagerRef:
    name: str | None
    employee_id: str | None


@dataclass(frozen=True)
class ResolvedUser:
    """
    Назначение:
        Всё, что нужно презентеру для вывода одной записи.
    """

    record: UserRecord
    manager: ManagerRef | None = None
    photo_path: Path | None = None


@dataclass
class TraversalState:
    """
    Назначение:
        Состояние обхода цепочки руководителей.
    Инварианты/гарантии:
        - visited разделяется по ссылке между всеми уровнями и всеми входами одного запуска.
        - level = 0 для исходного пользователя, +1 на каждый шаг вверх.
    """

    visited: set[str] = field(default_factory=set)
    level: int = 0

    def descend(self) -> "TraversalState":
        return TraversalState(visited=self.visited, level=self.level + 1)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None
