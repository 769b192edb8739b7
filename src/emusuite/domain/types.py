# src/emusuite/domain/types.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union
import time


class Emulators(str, Enum):
    FIRESTORE = "firestore"
    DATASTORE = "datastore"
    PUBSUB = "pubsub"
    BIGTABLE = "bigtable"
    SPANNER = "spanner"


# порядок объявления == порядок запуска
VALID_EMULATOR_STRINGS: list[str] = [e.value for e in Emulators]


@dataclass(frozen=True, slots=True)
class EmulatorInfo:
    host: str
    port: int

    @property
    def host_string(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class EmulatorConfig:
    name: Emulators
    host: str
    port: int
    command: str

    def render_command(self) -> str:
        return self.command.format(host=self.host, port=self.port)


@dataclass(frozen=True, slots=True)
class StartOptions:
    only: str | None = None


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    payload: Mapping[str, Any]
    source: str
    ts: float


@dataclass(frozen=True, slots=True)
class ProcessSpec:
    name: str
    cmd: list[str]
    env: Mapping[str, str] | None = None


# ---- итог одного запуска скрипта ----


@dataclass(frozen=True, slots=True)
class Success:
    kind = "success"
    fatal = False


@dataclass(frozen=True, slots=True)
class NonZeroExit:
    code: int
    kind = "nonzero_exit"
    fatal = False


@dataclass(frozen=True, slots=True)
class Signaled:
    signal: str
    kind = "signaled"
    fatal = True


@dataclass(frozen=True, slots=True)
class SpawnError:
    error: str
    kind = "spawn_error"
    fatal = True


ProcessOutcome = Union[Success, NonZeroExit, Signaled, SpawnError]


@dataclass(slots=True)
class ScriptInvocation:
    command: str
    env: Mapping[str, str]
    started_at: float = field(default_factory=time.time)
