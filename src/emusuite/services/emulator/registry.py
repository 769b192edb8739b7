from __future__ import annotations
from typing import Dict, List, Optional

from emusuite.core.errors import EmulatorError
from emusuite.domain import EmulatorInfo, Emulators
from emusuite.ports import EmulatorInstance


class EmulatorRegistry:
    """Какие эмуляторы сейчас запущены и где их искать (host/port)."""

    def __init__(self) -> None:
        self._running: Dict[Emulators, EmulatorInstance] = {}

    def register(self, instance: EmulatorInstance) -> None:
        name = Emulators(instance.name)
        if name in self._running:
            raise EmulatorError(f"Emulator {name.value} is already running")
        self._running[name] = instance

    def unregister(self, name: Emulators | str) -> None:
        self._running.pop(Emulators(name), None)

    def get(self, name: Emulators | str) -> Optional[EmulatorInstance]:
        return self._running.get(Emulators(name))

    def get_info(self, name: Emulators | str) -> Optional[EmulatorInfo]:
        instance = self.get(name)
        return instance.get_info() if instance is not None else None

    def is_running(self, name: Emulators | str) -> bool:
        return Emulators(name) in self._running

    def list_running(self) -> List[Emulators]:
        return list(self._running)

    def clear(self) -> None:
        self._running.clear()
