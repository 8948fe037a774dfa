from __future__ import annotations

from whoisit.domain.models import Identifier, IdentifierKind


def classify_identifier(raw: str) -> Identifier:
    """
    Назначение:
        Определить тип ключа поиска и нормализовать его.
    Контракт:
        - Наличие '@' -> EMAIL, значение в нижнем регистре, фильтр по полю mail.
        - Иначе -> EMPLOYEE_ID, значение в верхнем регистре, фильтр по employeeId.
        - Синтаксис email и формат табельного номера не проверяются.
    """
    value = raw.strip()
    if "@" in value:
        return Identifier(kind=IdentifierKind.EMAIL, value=value.lower(), filter_field="mail")
    return Identifier(kind=IdentifierKind.EMPLOYEE_ID, value=value.upper(), filter_field="employeeId")
