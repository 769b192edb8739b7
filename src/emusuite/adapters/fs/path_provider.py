# src/emusuite/adapters/fs/path_provider.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from emusuite.services.settings import Settings


@dataclass(slots=True)
class PathProvider:
    """Единая точка истины для путей. Всегда работает с pathlib.Path."""

    base: Path

    def __init__(self, settings: Settings | str | Path):
        base = settings.base_dir if isinstance(settings, Settings) else Path(settings)
        object.__setattr__(self, "base", Path(base).expanduser().resolve())

    def base_dir(self) -> Path:
        return self.base

    def logs_dir(self) -> Path:
        return (self.base / "logs").resolve()

    def state_dir(self) -> Path:
        return (self.base / "state").resolve()

    def tmp_dir(self) -> Path:
        return (self.base / "tmp").resolve()

    def log_file(self) -> Path:
        return self.logs_dir() / "emusuite.log"

    def ensure_tree(self) -> None:
        for p in (self.base_dir(), self.logs_dir(), self.state_dir(), self.tmp_dir()):
            p.mkdir(parents=True, exist_ok=True)
