from __future__ import annotations
from typing import Dict, Mapping, Optional, Protocol

from emusuite.config.const import DISCOVERY_VARS
from emusuite.domain import EmulatorInfo, Emulators


class _InfoSource(Protocol):
    def get_info(self, name: Emulators | str) -> Optional[EmulatorInfo]: ...


def build_script_env(registry: _InfoSource, discovery_vars: Mapping[str, str] = DISCOVERY_VARS) -> Dict[str, str]:
    """
    Окружение для скрипта: по одной переменной `<NAME>_EMULATOR_HOST=host:port`
    на каждый запущенный эмулятор. Не запущенные эмуляторы просто пропускаются.
    """
    env: Dict[str, str] = {}
    for name, var in discovery_vars.items():
        info = registry.get_info(name)
        if info is None:
            continue
        env[var] = info.host_string
    return env
