from .registry import EmulatorRegistry
from .controller import EmulatorController, filter_emulators
from .command import CommandEmulator

__all__ = ["EmulatorRegistry", "EmulatorController", "CommandEmulator", "filter_emulators"]
