from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from whoisit.domain.error_codes import ErrorCode
from whoisit.domain.exceptions import AuthenticationFailedError
from whoisit.domain.identifier import classify_identifier
from whoisit.domain.models import (
    MANAGER_FIELDS,
    LookupOptions,
    ManagerRef,
    ResolvedUser,
    TraversalState,
    UserRecord,
    select_fields,
)
from whoisit.domain.naming import photo_file_name
from whoisit.domain.ports.directory import DirectoryClientProtocol
from whoisit.domain.ports.platform import (
    ClipboardWriterProtocol,
    InlineImageRendererProtocol,
    PhotoStoreProtocol,
)
from whoisit.domain.ports.presenter import PresenterProtocol
from whoisit.infra.http.graph_client import ApiError
from whoisit.infra.logging.setup import logEvent


class LookupUseCase:
    """
    Назначение/ответственность:
        Поиск пользователей в каталоге и подъём по цепочке руководителей.
    Взаимодействия:
        DirectoryClientProtocol (данные), PresenterProtocol (вывод),
        опционально PhotoStoreProtocol, ClipboardWriterProtocol, InlineImageRendererProtocol.
    Ограничения:
        Строго последовательное выполнение; каждый удалённый вызов выполняется одной попыткой.
    """

    def __init__(
        self,
        directory: DirectoryClientProtocol,
        presenter: PresenterProtocol,
        options: LookupOptions,
        *,
        photo_store: PhotoStoreProtocol | None = None,
        clipboard: ClipboardWriterProtocol | None = None,
        image_renderer: InlineImageRendererProtocol | None = None,
        program_name: str = "whoisit",
        max_depth: int = 0,
        offer_clipboard: bool = False,
        logger: logging.Logger | None = None,
        run_id: str = "",
    ) -> None:
        self.directory = directory
        self.presenter = presenter
        self.options = options
        self.photo_store = photo_store
        self.clipboard = clipboard
        self.image_renderer = image_renderer
        self.program_name = program_name
        self.max_depth = max_depth
        self.offer_clipboard = offer_clipboard
        self.logger = logger or logging.getLogger("whoisit.lookup")
        self.run_id = run_id

    def run(self, identifiers: Sequence[str]) -> int:
        """
        Назначение:
            Обработать все входные идентификаторы по порядку.
        Контракт:
            - Ошибка одного идентификатора выводится сообщением и не прерывает остальные.
            - Множество visited общее на весь запуск.
            - Возвращает 0: сбои отдельных поисков не являются ошибкой процесса.
        """
        visited: set[str] = set()
        for index, raw in enumerate(identifiers):
            if index > 0:
                self.presenter.separator()
            state = TraversalState(visited=visited, level=0)
            try:
                self.resolve(raw, state)
            except AuthenticationFailedError as exc:
                self._log(logging.ERROR, "auth", f"Authentication failed for input={raw!r}: {exc}")
                self.presenter.auth_failed(str(exc))
            except ApiError as exc:
                self._log(logging.ERROR, "api", f"Graph API error for input={raw!r}: {exc.to_dict()}")
                self.presenter.api_error(exc.message)
            except Exception as exc:
                self.logger.exception(
                    "%s for input=%r",
                    ErrorCode.UNEXPECTED_ERROR.value,
                    raw,
                    extra={"runId": self.run_id, "component": "lookup"},
                )
                self.presenter.unexpected_error(str(exc))
        return 0

    def resolve(self, raw: str, state: TraversalState) -> None:
        """
        Назначение:
            Найти пользователя, вывести его и, при обходе дерева, подняться к руководителю.
        Алгоритм:
            1. Классификация; повторный визит -> сообщение о цикле, без запроса.
            2. Запрос к каталогу (базовые поля + расширенные при -x); нет совпадений -> not found.
            3. Фото и руководитель: best-effort, сбой означает отсутствие.
            4. Вывод; затем рекурсия к руководителю, либо "вершина иерархии", либо буфер обмена.
        """
        identifier = classify_identifier(raw)
        level = state.level

        if identifier.value in state.visited:
            self._log(logging.INFO, "traverse", f"Already visited: {identifier.value}")
            self.presenter.circular_reference(identifier, level)
            return
        state.visited.add(identifier.value)

        if self.options.traverse_tree and level > 0:
            self.presenter.manager_level(level)
        self.presenter.searching(identifier, level)

        self._log(logging.DEBUG, "lookup", f"Query {identifier.filter_field} eq '{identifier.value}'")
        payload = self.directory.find_user(
            identifier.filter_field,
            identifier.value,
            select_fields(self.options.extended_info),
        )
        if payload is None:
            self._log(logging.INFO, "lookup", f"Not found: {identifier.value}")
            self.presenter.not_found(identifier, level)
            return

        record = UserRecord.from_graph(payload)
        photo_path = self._download_photo(record) if self.options.photo_download else None
        manager = self._fetch_manager(record)

        self.presenter.record(ResolvedUser(record=record, manager=manager, photo_path=photo_path), level, self.options)
        if photo_path is not None and self.image_renderer is not None:
            if not self.image_renderer.render(photo_path, " " * (level * 2)):
                self._log(logging.DEBUG, "photo", f"Inline image not shown for {photo_path}")

        manager_uid = manager.employee_id if manager else None

        if self.options.traverse_tree:
            if not manager_uid:
                self.presenter.reached_top(level)
                return
            if self.max_depth and level >= self.max_depth:
                self._log(logging.WARNING, "traverse", f"Depth limit {self.max_depth} reached at {identifier.value}")
                self.presenter.depth_limit(self.max_depth, level)
                return
            self.presenter.traversal_step(level)
            self.resolve(manager_uid, state.descend())
            return

        if self.offer_clipboard and manager_uid and self.clipboard is not None:
            command = f"{self.program_name} {manager_uid}"
            copied = self.clipboard.copy(command)
            if not copied:
                self._log(logging.WARNING, "clipboard", "Clipboard copy failed")
            self.presenter.clipboard_result(command, copied, level)

    def _download_photo(self, record: UserRecord) -> Path | None:
        """Фото профиля: любой сбой (нет фото, нет доступа, сеть, файловая система) -> None."""
        if self.photo_store is None or not record.id:
            return None
        try:
            content = self.directory.get_photo(record.id)
            if not content:
                return None
            return self.photo_store.save(photo_file_name(record), content)
        except ApiError as exc:
            self._log(logging.WARNING, "photo", f"Photo fetch failed for id={record.id}: {exc.code} {exc}")
        except OSError as exc:
            self._log(logging.WARNING, "photo", f"Photo save failed for id={record.id}: {exc}")
        except Exception as exc:
            self._log_unexpected("photo", f"Photo skipped for id={record.id}", exc)
        return None

    def _fetch_manager(self, record: UserRecord) -> ManagerRef | None:
        """Руководитель: ссылка, затем только displayName и employeeId. Любой сбой -> None."""
        if not record.id:
            return None
        try:
            link = self.directory.get_manager(record.id)
            if link is None or not link.get("id"):
                return None
            details = self.directory.get_user(str(link["id"]), MANAGER_FIELDS)
        except ApiError as exc:
            self._log(logging.WARNING, "manager", f"Manager fetch failed for id={record.id}: {exc.code} {exc}")
            return None
        except Exception as exc:
            self._log_unexpected("manager", f"Manager skipped for id={record.id}", exc)
            return None
        if details is None:
            return None
        manager = UserRecord.from_graph(details)
        return ManagerRef(name=manager.display_name, employee_id=manager.employee_id)

    def _log(self, level: int, component: str, message: str) -> None:
        logEvent(self.logger, level, self.run_id, component, message)

    def _log_unexpected(self, component: str, message: str, exc: Exception) -> None:
        self.logger.warning(
            "%s: %s %s: %s",
            message,
            ErrorCode.UNEXPECTED_ERROR.value,
            type(exc).__name__,
            exc,
            exc_info=exc,
            extra={"runId": self.run_id, "component": component},
        )
