from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s msg=%(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# OSC-последовательность inline-картинки iTerm2: в лог не пишется (base64 всего фото)
_INLINE_IMAGE_MARKER = "\x1b]1337;"


class EnsureFieldsFilter(logging.Filter):
    """Подставляет runId/component, если вызов логгера их не передал (сообщения msal, httpx и т.п.)."""

    def __init__(self, runId: str, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "runId"):
            record.runId = self.runId
        if not hasattr(record, "component"):
            record.component = self.defaultComponent
        return True


class StdStreamToLogger:
    """
    Назначение:
        Приёмник консольного вывода поиска: каждая непустая строка
        (карточка пользователя, уведомления обхода) становится записью лога.
    Ограничения:
        Строки с inline-картинкой пропускаются.
    """

    def __init__(self, logger: logging.Logger, level: int, runId: str, component: str):
        self.logger = logger
        self.level = level
        self.runId = runId
        self.component = component
        self.buffer = ""

    def _emit(self, line: str) -> None:
        text = line.rstrip()
        if not text.strip() or _INLINE_IMAGE_MARKER in text:
            return
        self.logger.log(self.level, text, extra={"runId": self.runId, "component": self.component})

    def write(self, s: str) -> int:
        if not s:
            return 0
        self.buffer += s
        while "\n" in self.buffer:
            line, self.buffer = self.buffer.split("\n", 1)
            self._emit(line)
        return len(s)

    def flush(self) -> None:
        self._emit(self.buffer)
        self.buffer = ""


class TeeStream:
    """
    Подменяет sys.stdout на время команды: вывод идёт в терминал и в лог.
    isatty/encoding и прочие атрибуты берутся у терминального потока,
    чтобы typer/click продолжали считать его обычным текстовым stdout.
    """

    def __init__(self, primary, secondary):
        self.primary = primary
        self.secondary = secondary

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self.secondary.write(s)
        return written

    def flush(self) -> None:
        self.primary.flush()
        self.secondary.flush()

    def isatty(self) -> bool:
        return bool(getattr(self.primary, "isatty", lambda: False)())

    def __getattr__(self, name: str):
        return getattr(self.primary, name)


def mapLogLevel(levelName: str) -> int:
    """--log-level / WHOISIT_LOG_LEVEL -> уровень logging. Допустимо: ERROR, WARN(ING), INFO, DEBUG."""
    value = (levelName or "").strip().upper()
    levels = {
        "ERROR": logging.ERROR,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }
    if value not in levels:
        raise ValueError(f"Unsupported log level: {levelName}")
    return levels[value]


def createCommandLogger(
    commandName: str,
    logDir: str | None,
    runId: str,
    logLevel: str,
) -> tuple[logging.Logger, str | None]:
    """
    Назначение:
        Логгер одного запуска whoisit: `whoisit.<command>.<runId>`, без распространения в root.
    Контракт:
        - log_dir не задан (по умолчанию): NullHandler, файл не создаётся, возвращается (logger, None).
        - log_dir задан: каталог создаётся, пишется `<command>_<runId>.log`.
        - Неизвестный уровень -> ValueError (ошибка конфигурации, exit code 2).
    """
    logger = logging.getLogger(f"whoisit.{commandName}.{runId}")
    logger.handlers.clear()
    logger.propagate = False

    level = mapLogLevel(logLevel)
    logger.setLevel(level)

    if not logDir:
        logger.addHandler(logging.NullHandler())
        return logger, None

    Path(logDir).mkdir(parents=True, exist_ok=True)
    logFilePath = str(Path(logDir) / f"{commandName}_{runId}.log")

    fileHandler = logging.FileHandler(logFilePath, encoding="utf-8")
    fileHandler.setLevel(level)
    fileHandler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    fileHandler.addFilter(EnsureFieldsFilter(runId=runId))
    logger.addHandler(fileHandler)

    return logger, logFilePath


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def logEvent(logger: logging.Logger, level: int, runId: str, component: str, message: str) -> None:
    logger.log(level, message, extra={"runId": runId, "component": component})
