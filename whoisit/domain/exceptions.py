from __future__ import annotations

from dataclasses import dataclass, field

from whoisit.domain.error_codes import ErrorCode


@dataclass
class AuthenticationFailedError(Exception):
    """
    Назначение:
        Ни один источник учётных данных не смог выдать токен доступа к каталогу.
    Инварианты/гарантии:
        - code установлен в ErrorCode.AUTH_FAILED.
        - attempted перечисляет опрошенные источники в порядке цепочки.
    """

    reason: str
    attempted: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        super().__init__(self.reason)

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.AUTH_FAILED

    def __str__(self) -> str:
        if not self.attempted:
            return self.reason
        return f"{self.reason} (attempted: {', '.join(self.attempted)})"


__all__ = ["AuthenticationFailedError"]
