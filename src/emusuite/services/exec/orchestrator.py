# src/emusuite/services/exec/orchestrator.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Optional

from emusuite.domain import ProcessOutcome, StartOptions
from emusuite.ports import ServiceController
from emusuite.services.emulator.registry import EmulatorRegistry
from emusuite.services.exec.environment import build_script_env
from emusuite.services.exec.supervisor import ScriptSupervisor

_log = logging.getLogger("emusuite.exec")


class ExecState(str, Enum):
    NOT_STARTED = "not_started"
    SERVICES_STARTING = "services_starting"
    RUNNING = "running"
    SERVICES_STOPPING = "services_stopping"
    DONE = "done"


class _StateTracker:
    def __init__(self) -> None:
        self.state = ExecState.NOT_STARTED

    def move(self, state: ExecState) -> None:
        _log.debug("exec.state", extra={"extra": {"from": self.state.value, "to": state.value}})
        self.state = state


@asynccontextmanager
async def emulators_session(
    controller: ServiceController,
    options: StartOptions,
    tracker: Optional[_StateTracker] = None,
) -> AsyncIterator[None]:
    """
    Эмуляторы живут ровно на время блока: start_all() на входе,
    clean_shutdown() на любом выходе (успех, исключение, ошибка старта).
    Ошибка остановки не перекрывает уже летящую ошибку.
    """
    tracker = tracker or _StateTracker()
    failed = False
    try:
        tracker.move(ExecState.SERVICES_STARTING)
        await controller.start_all(options)
        tracker.move(ExecState.RUNNING)
        yield
    except BaseException:
        failed = True
        raise
    finally:
        tracker.move(ExecState.SERVICES_STOPPING)
        try:
            await controller.clean_shutdown()
        except Exception:
            if not failed:
                raise
            _log.warning("Error shutting down emulators after a failed run", exc_info=True)
        finally:
            tracker.move(ExecState.DONE)


async def execute(
    script: str,
    options: StartOptions,
    *,
    controller: ServiceController,
    registry: EmulatorRegistry,
    supervisor: Optional[ScriptSupervisor] = None,
) -> ProcessOutcome:
    """Поднять эмуляторы, выполнить скрипт с их адресами в окружении, погасить эмуляторы."""
    supervisor = supervisor or ScriptSupervisor()
    tracker = _StateTracker()
    try:
        async with emulators_session(controller, options, tracker):
            env = build_script_env(registry)
            return await supervisor.run(script, env)
    except Exception:
        _log.debug("Error in emulators:exec", exc_info=True, extra={"extra": {"script": script, "state": tracker.state.value}})
        raise
