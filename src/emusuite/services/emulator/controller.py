from __future__ import annotations
import logging
from typing import Callable, Iterable, List, Optional

from emusuite.core.errors import EmulatorError, EmulatorShutdownError, EmulatorStartError
from emusuite.domain import EmulatorConfig, Emulators, StartOptions, VALID_EMULATOR_STRINGS
from emusuite.ports import EmulatorInstance, EventBus, Process
from emusuite.services.emulator.command import CommandEmulator
from emusuite.services.emulator.net import port_is_open
from emusuite.services.emulator.registry import EmulatorRegistry
from emusuite.services.eventbus import emit
from emusuite.services import io_console
from emusuite.services.settings import Settings

_log = logging.getLogger("emusuite.controller")

EmulatorFactory = Callable[[EmulatorConfig], EmulatorInstance]


def filter_emulators(only: Optional[str], available: Iterable[Emulators] = tuple(Emulators)) -> List[Emulators]:
    """
    Разбирает --only (список через запятую) и возвращает эмуляторы в порядке запуска.
    Без --only: все доступные.
    """
    allowed = [Emulators(e) for e in available]
    if only is None:
        return allowed

    requested: List[Emulators] = []
    for raw in only.split(","):
        name = raw.strip().lower()
        if not name:
            continue
        if name not in VALID_EMULATOR_STRINGS:
            raise EmulatorError(f'"{name}" is not a valid emulator name, valid options are: {VALID_EMULATOR_STRINGS}')
        emu = Emulators(name)
        if emu not in requested:
            requested.append(emu)
    # порядок запуска как в Emulators, а не как в --only
    return [e for e in allowed if e in requested]


class EmulatorController:
    """Поднимает выбранные эмуляторы перед запуском скрипта и гасит их после."""

    def __init__(
        self,
        settings: Settings,
        registry: EmulatorRegistry,
        proc: Process,
        bus: EventBus | None = None,
        *,
        factory: Optional[EmulatorFactory] = None,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._proc = proc
        self._bus = bus
        self._factory = factory or self._command_emulator

    def _command_emulator(self, config: EmulatorConfig) -> EmulatorInstance:
        return CommandEmulator(
            config,
            self._proc,
            startup_timeout_s=self._settings.startup_timeout_s,
            stop_timeout_s=self._settings.stop_timeout_s,
        )

    async def start_all(self, options: StartOptions) -> None:
        targets = filter_emulators(options.only, [c.name for c in self._settings.emulators])
        if not targets:
            raise EmulatorError("No emulators to start")
        _log.debug("emulators.start_all", extra={"extra": {"targets": [t.value for t in targets]}})
        io_console.bullet(f"Starting emulators: {', '.join(t.value for t in targets)}")

        for name in targets:
            config = self._settings.emulator_config(name)
            if config is None:
                raise EmulatorError(f"Emulator {name.value} has no configuration")
            if self._registry.is_running(name):
                raise EmulatorError(f"Emulator {name.value} is already running")
            if await port_is_open(config.host, config.port):
                raise EmulatorStartError(name.value, f"port already in use: {config.host}:{config.port}")

            instance = self._factory(config)
            emit(self._bus, "emulator.starting", {"name": name.value, "host": config.host, "port": config.port}, "controller")
            try:
                await instance.start()
            except Exception as e:
                emit(self._bus, "emulator.error", {"name": name.value, "error": str(e)}, "controller")
                try:
                    await instance.stop()
                except Exception:
                    _log.debug("emulator.stop_after_failed_start", exc_info=True, extra={"extra": {"name": name.value}})
                raise
            self._registry.register(instance)
            info = instance.get_info()
            emit(self._bus, "emulator.started", {"name": name.value, "host": info.host, "port": info.port}, "controller")
            io_console.bullet(f"{name.value}: emulator started at http://{info.host_string}")
        io_console.success("All emulators started, it is now safe to connect.")

    async def clean_shutdown(self) -> None:
        first_error: Optional[EmulatorShutdownError] = None
        running = self._registry.list_running()
        if running:
            io_console.bullet("Shutting down emulators.")
        for name in reversed(running):
            instance = self._registry.get(name)
            if instance is None:
                continue
            try:
                await instance.stop()
            except Exception as e:
                _log.warning("emulator.stop_failed", exc_info=True, extra={"extra": {"name": name.value}})
                emit(self._bus, "emulator.error", {"name": name.value, "error": str(e)}, "controller")
                if first_error is None:
                    first_error = EmulatorShutdownError(name.value, str(e))
                    first_error.__cause__ = e
            else:
                emit(self._bus, "emulator.stopped", {"name": name.value}, "controller")
            finally:
                self._registry.unregister(name)
        if first_error is not None:
            raise first_error
