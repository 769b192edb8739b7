# src/emusuite/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Optional, Dict
from emusuite.config import const
from emusuite.domain import EmulatorConfig, Emulators


def _parse_env_file(path: str) -> Dict[str, str]:
    data: Dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return data
    for line in p.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            data[k.strip()] = v.strip().strip('"').strip("'")
    return data


@dataclass(frozen=True, slots=True)
class Settings:
    base_dir: Path
    profile: str = "default"
    host: str = const.DEFAULT_HOST
    log_level: str = "INFO"
    exec_exit_delay_s: float = const.EXEC_EXIT_DELAY_S
    startup_timeout_s: float = const.STARTUP_TIMEOUT_S
    stop_timeout_s: float = const.STOP_TIMEOUT_S
    emulators: tuple[EmulatorConfig, ...] = ()

    @staticmethod
    def from_sources(env_file: Optional[str] = ".env") -> "Settings":
        env_file_vars = _parse_env_file(env_file) if env_file else {}

        def pick_env(key: str, default: Optional[str] = None) -> str:
            return os.environ.get(key) or env_file_vars.get(key) or (default or "")

        def pick_float(key: str, default: float) -> float:
            raw = pick_env(key)
            try:
                return float(raw) if raw else default
            except ValueError:
                return default

        override_base = pick_env("EMUSUITE_BASE_DIR")
        if override_base:
            base = Path(override_base).expanduser().resolve()
        else:
            base = (Path.home() / ".emusuite").resolve()

        host = pick_env("EMUSUITE_HOST", const.DEFAULT_HOST)

        # каждый эмулятор можно переопределить: EMUSUITE_<NAME>_HOST|PORT|CMD
        emulators: list[EmulatorConfig] = []
        for emu in Emulators:
            prefix = f"EMUSUITE_{emu.value.upper()}_"
            port_raw = pick_env(prefix + "PORT")
            try:
                port = int(port_raw) if port_raw else const.DEFAULT_PORTS[emu.value]
            except ValueError:
                port = const.DEFAULT_PORTS[emu.value]
            emulators.append(
                EmulatorConfig(
                    name=emu,
                    host=pick_env(prefix + "HOST", host),
                    port=port,
                    command=pick_env(prefix + "CMD", const.DEFAULT_COMMANDS[emu.value]),
                )
            )

        return Settings(
            base_dir=base,
            profile=pick_env("EMUSUITE_PROFILE", "default"),
            host=host,
            log_level=pick_env("EMUSUITE_LOG_LEVEL", "INFO"),
            exec_exit_delay_s=pick_float("EMUSUITE_EXEC_EXIT_DELAY", const.EXEC_EXIT_DELAY_S),
            startup_timeout_s=pick_float("EMUSUITE_STARTUP_TIMEOUT", const.STARTUP_TIMEOUT_S),
            stop_timeout_s=pick_float("EMUSUITE_STOP_TIMEOUT", const.STOP_TIMEOUT_S),
            emulators=tuple(emulators),
        )

    def emulator_config(self, name: Emulators | str) -> Optional[EmulatorConfig]:
        key = Emulators(name)
        for cfg in self.emulators:
            if cfg.name == key:
                return cfg
        return None

    def with_overrides(self, **kw) -> "Settings":
        # перегружать можно ТОЛЬКО безопасные поля
        safe = {k: v for k, v in kw.items() if k in {"base_dir", "profile", "log_level"} and v is not None}
        if "base_dir" in safe:
            safe["base_dir"] = Path(safe["base_dir"]).expanduser().resolve()
        return replace(self, **safe)
