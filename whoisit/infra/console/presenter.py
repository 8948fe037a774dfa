from __future__ import annotations

from datetime import datetime
from typing import Callable

import typer

from whoisit.domain.models import Identifier, LookupOptions, ManagerRef, ResolvedUser
from whoisit.domain.naming import clean_name, split_display_name
from whoisit.domain.ports.presenter import PresenterProtocol

NA = "N/A"
SEPARATOR = "═" * 64
LABEL_WIDTH = 19

BOX_TOP = "╔" + "═" * 63 + "╗"
BOX_TITLE = "║" + " " * 24 + "USER DETAILS" + " " * 27 + "║"
BOX_BOTTOM = "╚" + "═" * 63 + "╝"


def indent_for(level: int) -> str:
    return " " * (level * 2)


def format_date(value: str | None) -> str:
    """
    Назначение:
        Дата/время Graph (ISO 8601, в т.ч. с 'Z') -> YYYY-MM-DD.
    Контракт:
        - None/пусто -> N/A; нераспознанное значение возвращается как есть.
    """
    if not value:
        return NA
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).strftime("%Y-%m-%d")
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").strftime("%Y-%m-%d")
    except ValueError:
        return value


def format_enabled(value: bool | None) -> str:
    if value is None:
        return NA
    return "Yes" if value else "No"


def format_manager(manager: ManagerRef | None) -> str:
    if manager is None:
        return NA
    name = clean_name(manager.name)
    if name and manager.employee_id:
        return f"{name} ({manager.employee_id})"
    if name:
        return name
    return NA


def _field(indent: str, label: str, value: str | None) -> str:
    return f"{indent}  {label + ':':<{LABEL_WIDTH}}{value if value else NA}"


def format_record_lines(resolved: ResolvedUser, level: int, options: LookupOptions) -> list[str]:
    """
    Назначение:
        Чистое форматирование записи пользователя в строки вывода.
    Контракт:
        - Порядок полей фиксирован; отсутствующее значение -> N/A.
        - org_code / очищенное имя вычисляются здесь и нигде не сохраняются.
        - Строка фото выводится только при photo_download, расширенный блок при extended_info.
    """
    user = resolved.record
    indent = indent_for(level)
    names = split_display_name(user.display_name)

    lines = [
        f"{indent}{BOX_TOP}",
        f"{indent}{BOX_TITLE}",
        f"{indent}{BOX_BOTTOM}",
        "",
        _field(indent, "Name", names.cleaned_name),
        _field(indent, "OrgCode", names.org_code),
        _field(indent, "Email", user.mail or user.user_principal_name),
        _field(indent, "UId", user.employee_id),
        _field(indent, "Job Title", user.job_title),
        _field(indent, "Department", user.department),
        _field(indent, "Office", user.office_location),
        _field(indent, "Mobile Phone", user.mobile_phone),
        _field(indent, "Business Phone", ", ".join(user.business_phones)),
        _field(indent, "User Principal", user.user_principal_name),
        _field(indent, "Manager", format_manager(resolved.manager)),
    ]

    if options.photo_download:
        if resolved.photo_path is not None:
            lines.append(_field(indent, "Profile Photo", f"✓ Saved to {resolved.photo_path}"))
        else:
            lines.append(_field(indent, "Profile Photo", "✗ Not available"))

    if options.extended_info:
        lines += [
            "",
            f"{indent}  ─── eXtended Information ───",
            "",
            _field(indent, "Given Name", user.given_name),
            _field(indent, "Surname", user.surname),
            _field(indent, "Company", user.company_name),
            _field(indent, "Employee Type", user.employee_type),
            _field(indent, "Hire Date", format_date(user.employee_hire_date)),
            _field(indent, "Account Enabled", format_enabled(user.account_enabled)),
            _field(indent, "Created", format_date(user.created_date_time)),
            "",
            _field(indent, "Street Address", user.street_address),
            _field(indent, "City", user.city),
            _field(indent, "State", user.state),
            _field(indent, "Postal Code", user.postal_code),
            _field(indent, "Country", user.country),
        ]

    lines.append("")
    return lines


class ConsolePresenter(PresenterProtocol):
    """
    Назначение:
        Вывод записей и строк статуса в консоль (typer.echo).
    Взаимодействия:
        echo подменяется в тестах на сборщик строк.
    """

    def __init__(self, echo: Callable[[str], None] | None = None):
        self._echo = echo or typer.echo

    def _emit(self, *lines: str) -> None:
        for line in lines:
            self._echo(line)

    def separator(self) -> None:
        self._emit("", SEPARATOR, "")

    def manager_level(self, level: int) -> None:
        self._emit(f"{indent_for(level)}↑ Manager at level {level}", "")

    def searching(self, identifier: Identifier, level: int) -> None:
        self._emit(f"{indent_for(level)}Searching for user with {identifier.label}: {identifier.value}...", "")

    def not_found(self, identifier: Identifier, level: int) -> None:
        self._emit(f"{indent_for(level)}❌ No user found with {identifier.label}: {identifier.value}")

    def circular_reference(self, identifier: Identifier, level: int) -> None:
        self._emit(f"{indent_for(level)}⚠ Circular reference detected - already visited: {identifier.value}")

    def record(self, resolved: ResolvedUser, level: int, options: LookupOptions) -> None:
        self._emit(*format_record_lines(resolved, level, options))

    def traversal_step(self, level: int) -> None:
        self._emit("", f"{indent_for(level)}{SEPARATOR}", "")

    def reached_top(self, level: int) -> None:
        self._emit("", f"{indent_for(level)}🏁 Reached top of organizational hierarchy")

    def depth_limit(self, max_depth: int, level: int) -> None:
        self._emit("", f"{indent_for(level)}⚠ Maximum traversal depth ({max_depth}) reached - stopping")

    def clipboard_result(self, command: str, copied: bool, level: int) -> None:
        indent = indent_for(level)
        if copied:
            self._emit(f"{indent}✓ Command copied to clipboard: {command}")
        else:
            self._emit(f"{indent}⚠ Could not copy command to clipboard")
        self._emit("", f"{indent}📋 To lookup manager, paste and run the command from clipboard")

    def auth_failed(self, message: str) -> None:
        self._emit(
            "❌ Authentication failed. Please ensure you're logged in:",
            "   - Run 'az login' to authenticate with Azure CLI",
            f"   - Error: {message}",
        )

    def api_error(self, message: str) -> None:
        self._emit(f"❌ Microsoft Graph API error: {message}")

    def unexpected_error(self, message: str) -> None:
        self._emit(f"❌ An unexpected error occurred: {message}")
