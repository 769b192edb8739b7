from __future__ import annotations
import json
import logging
from logging.handlers import RotatingFileHandler
from typing import Callable, Optional
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

from emusuite.config.const import LOG_BACKUP_COUNT, LOG_MAX_BYTES
from emusuite.domain import Event
from emusuite.adapters.fs.path_provider import PathProvider
from emusuite.ports import EventBus

_ROOT = "emusuite"


def _level(name: Optional[str], default: int) -> int:
    value = logging.getLevelName((name or "").upper())
    return value if isinstance(value, int) else default


class JsonFormatter(logging.Formatter):
    """Одна JSON-строка на запись; поля из extra={"extra": {...}} поднимаются на верхний уровень."""

    def format(self, record: logging.LogRecord) -> str:
        doc = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            doc.update(fields)
        if record.exc_info:
            doc["exc"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False, default=str)


def _console_handler(level: int) -> logging.Handler:
    # stderr: stdout целиком принадлежит скрипту
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=False,
        rich_tracebacks=False,
        markup=False,
    )
    handler.setLevel(level)
    return handler


def setup_logging(paths: PathProvider, level: str = "INFO", console_level: str = "WARNING") -> logging.Logger:
    """
    Настройка логгера "emusuite":
      - консоль (stderr, rich), по умолчанию только WARNING+, чтобы не перемешиваться с выводом скрипта
      - файл {logs_dir}/emusuite.log, JSON-строки с ротацией
    Повторный вызов заменяет обработчики (CLI вызывает его на каждый запуск, тесты на каждый тест).
    """
    logfile = paths.log_file()
    logfile.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    file_h = RotatingFileHandler(logfile, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
    file_h.setFormatter(JsonFormatter())
    file_h.setLevel(_level(level, logging.INFO))

    logger.addHandler(_console_handler(_level(console_level, logging.WARNING)))
    logger.addHandler(file_h)
    logger.propagate = False
    logger.debug("logging.initialized", extra={"extra": {"logfile": str(logfile)}})
    return logger


def attach_event_logger(bus: EventBus, logger: Optional[logging.Logger] = None) -> Callable[[], None]:
    """
    Пишет каждое событие шины в лог (proc.* на DEBUG, остальное на INFO).
    Возвращает функцию отписки.
    """
    events_logger = logger or logging.getLogger(f"{_ROOT}.events")

    def _handler(ev: Event) -> None:
        lvl = logging.DEBUG if ev.type.startswith("proc.") else logging.INFO
        events_logger.log(
            lvl,
            ev.type,
            extra={
                "extra": {
                    "type": ev.type,
                    "source": ev.source,
                    "payload": ev.payload,
                    "event_time": datetime.fromtimestamp(ev.ts, tz=timezone.utc).isoformat() if ev.ts else None,
                }
            },
        )

    return bus.subscribe("", _handler)
