# src/emusuite/services/app_context.py
from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from emusuite.adapters.fs.path_provider import PathProvider
from emusuite.ports import EventBus, Process, ServiceController
from emusuite.services.emulator.registry import EmulatorRegistry
from emusuite.services.settings import Settings

_CTX: ContextVar[Optional["AppContext"]] = ContextVar("emusuite_app_ctx", default=None)


def set_ctx(ctx: AppContext) -> None:
    """Устанавливает текущий AppContext (делает доступным через get_ctx)."""
    _CTX.set(ctx)


def get_ctx() -> AppContext:
    """Возвращает текущий AppContext или бросает ошибку, если не инициализирован."""
    ctx = _CTX.get()
    if ctx is None:
        raise RuntimeError("AppContext is not initialized. Call set_ctx(...) during app bootstrap.")
    return ctx


def clear_ctx() -> None:
    """Очищает текущий контекст (для тестов/завершения)."""
    _CTX.set(None)


@contextmanager
def use_ctx(ctx: AppContext):
    """Временная подмена контекста (удобно в тестах)."""
    token = _CTX.set(ctx)
    try:
        yield
    finally:
        _CTX.reset(token)


@dataclass(slots=True)
class AppContext:
    settings: Settings
    paths: PathProvider
    bus: EventBus
    proc: Process
    registry: EmulatorRegistry
    controller: ServiceController
