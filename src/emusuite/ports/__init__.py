from .contracts import EventBus, Process, EmulatorInstance, ServiceController

__all__ = [
    "EventBus",
    "Process",
    "EmulatorInstance",
    "ServiceController",
]
