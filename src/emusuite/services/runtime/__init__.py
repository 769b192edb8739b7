from .manager import AsyncProcessManager, ProcState

__all__ = ["AsyncProcessManager", "ProcState"]
