"""Error hierarchy shared by the emulator controller, script runner and CLI."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from emusuite.domain import ProcessOutcome


class EmuError(RuntimeError):
    """Base class for all errors the CLI reports as a failed command."""


class EmulatorError(EmuError):
    """Raised for invalid emulator selections and registry misuse."""


class EmulatorStartError(EmulatorError):
    """Raised when an emulator cannot be brought up."""

    def __init__(self, emulator: str, detail: Optional[str] = None) -> None:
        self.emulator = emulator
        self.detail = detail
        message = f"Could not start {emulator} emulator"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmulatorShutdownError(EmulatorError):
    """Raised when one or more emulators failed to stop cleanly."""

    def __init__(self, emulator: str, detail: Optional[str] = None) -> None:
        self.emulator = emulator
        self.detail = detail
        message = f"Could not stop {emulator} emulator"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ScriptError(EmuError):
    """Raised when the user script could not run to completion."""

    def __init__(self, message: str, *, outcome: "ProcessOutcome", command: str) -> None:
        self.outcome = outcome
        self.command = command
        super().__init__(message)


class ScriptSpawnError(ScriptError):
    """Raised when the script command could not be launched at all."""


class ScriptSignaledError(ScriptError):
    """Raised when the script was terminated by a signal."""


class FunctionsConfigError(EmuError):
    """Raised when the functions source directory is not deployable."""


__all__ = [
    "EmuError",
    "EmulatorError",
    "EmulatorStartError",
    "EmulatorShutdownError",
    "ScriptError",
    "ScriptSpawnError",
    "ScriptSignaledError",
    "FunctionsConfigError",
]
