from __future__ import annotations

import re

from whoisit.domain.models import DisplayName, UserRecord

_FIRST_GROUP = re.compile(r"\(([^)]+)\)")
_ALL_GROUPS = re.compile(r"\s*\([^)]+\)\s*")


def split_display_name(display_name: str | None) -> DisplayName:
    """
    Назначение:
        Выделить код подразделения из displayName и очистить имя.
    Контракт:
        - org_code: текст первой группы в скобках (trim) или None.
        - cleaned_name: displayName без всех групп в скобках и окружающих пробелов.
        - Без скобок имя возвращается без изменений.
    """
    if not display_name:
        return DisplayName(cleaned_name=display_name or None, org_code=None)
    match = _FIRST_GROUP.search(display_name)
    if match is None:
        return DisplayName(cleaned_name=display_name, org_code=None)
    org_code = match.group(1).strip() or None
    cleaned = _ALL_GROUPS.sub("", display_name).strip()
    return DisplayName(cleaned_name=cleaned or None, org_code=org_code)


def clean_name(display_name: str | None) -> str | None:
    return split_display_name(display_name).cleaned_name


def photo_file_name(record: UserRecord) -> str:
    """
    Назначение:
        Детерминированное имя файла фото: <employeeId>.jpg, иначе <mail с @ -> _>.jpg.
        Если нет ни того ни другого, используется id объекта каталога.
    """
    if record.employee_id:
        stem = record.employee_id
    elif record.mail:
        stem = record.mail.replace("@", "_")
    else:
        stem = record.id or "unknown"
    # разделители путей в имени недопустимы
    stem = stem.replace("/", "_").replace("\\", "_")
    return f"{stem}.jpg"
