from __future__ import annotations
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from emusuite.domain import Event, EmulatorInfo, Emulators, ProcessSpec, StartOptions


class EventBus(Protocol):
    def publish(self, event: Event) -> None: ...
    def subscribe(self, type_prefix: str, handler: Callable[[Event], Any]) -> Callable[[], None]: ...


class Process(Protocol):
    async def start(self, spec: ProcessSpec) -> str: ...
    async def stop(self, handle: str, timeout_s: float = 5.0) -> None: ...
    async def status(self, handle: str) -> str: ...
    def returncode(self, handle: str) -> Optional[int]: ...


@runtime_checkable
class EmulatorInstance(Protocol):
    name: Emulators

    async def start(self) -> None: ...
    async def stop(self) -> None: ...
    def get_info(self) -> EmulatorInfo: ...


class ServiceController(Protocol):
    async def start_all(self, options: StartOptions) -> None: ...
    async def clean_shutdown(self) -> None: ...
