# src/emusuite/apps/bootstrap.py
from __future__ import annotations
from typing import Optional
from threading import RLock

from emusuite.adapters.fs.path_provider import PathProvider
from emusuite.services.app_context import AppContext, set_ctx
from emusuite.services.emulator import EmulatorController, EmulatorRegistry
from emusuite.services.eventbus import LocalEventBus
from emusuite.services.logging import setup_logging, attach_event_logger
from emusuite.services.runtime import AsyncProcessManager
from emusuite.services.settings import Settings


class _CtxHolder:
    _ctx: Optional[AppContext] = None
    _lock = RLock()

    @classmethod
    def init(cls, settings: Optional[Settings] = None, *, console_level: str = "WARNING") -> AppContext:
        with cls._lock:
            cls._ctx = cls._build(settings or Settings.from_sources(), console_level=console_level)
            set_ctx(cls._ctx)  # публикуем
            return cls._ctx

    @classmethod
    def reload(cls, **overrides) -> AppContext:
        """Иммутабельная перегрузка: новый Settings (только безопасные поля) и пересборка контекста."""
        with cls._lock:
            base = cls._ctx.settings if cls._ctx is not None else Settings.from_sources()
            cls._ctx = cls._build(base.with_overrides(**overrides))
            set_ctx(cls._ctx)
            return cls._ctx

    @staticmethod
    def _build(settings: Settings, *, console_level: str = "WARNING") -> AppContext:
        paths = PathProvider(settings)
        paths.ensure_tree()

        bus = LocalEventBus()
        root_logger = setup_logging(paths, level=settings.log_level, console_level=console_level)
        attach_event_logger(bus, root_logger.getChild("events"))

        proc = AsyncProcessManager(bus=bus)
        registry = EmulatorRegistry()
        controller = EmulatorController(settings, registry, proc, bus)

        return AppContext(
            settings=settings,
            paths=paths,
            bus=bus,
            proc=proc,
            registry=registry,
            controller=controller,
        )


# ── публичные функции (удобные фасады) ─────────────────────────────────────────


def get_ctx() -> AppContext:
    """Shim: проксируем на services.app_context.get_ctx()."""
    from emusuite.services.app_context import get_ctx as _get

    return _get()


def init_ctx(settings: Optional[Settings] = None, *, console_level: str = "WARNING") -> AppContext:
    """Явная инициализация приложения и публикация контекста."""
    return _CtxHolder.init(settings, console_level=console_level)


def reload_ctx(**overrides) -> AppContext:
    """Пересборка с overrides и публикация контекста."""
    return _CtxHolder.reload(**overrides)
