from .environment import build_script_env
from .supervisor import ScriptSupervisor, outcome_from_returncode
from .orchestrator import ExecState, emulators_session, execute

__all__ = [
    "build_script_env",
    "ScriptSupervisor",
    "outcome_from_returncode",
    "ExecState",
    "emulators_session",
    "execute",
]
