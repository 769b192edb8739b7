from .types import (
    Emulators,
    EmulatorInfo,
    EmulatorConfig,
    StartOptions,
    Event,
    ProcessSpec,
    ScriptInvocation,
    ProcessOutcome,
    Success,
    NonZeroExit,
    Signaled,
    SpawnError,
    VALID_EMULATOR_STRINGS,
)

__all__ = [
    "Emulators",
    "EmulatorInfo",
    "EmulatorConfig",
    "StartOptions",
    "Event",
    "ProcessSpec",
    "ScriptInvocation",
    "ProcessOutcome",
    "Success",
    "NonZeroExit",
    "Signaled",
    "SpawnError",
    "VALID_EMULATOR_STRINGS",
]
