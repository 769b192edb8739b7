"""User-facing console notices (bullet / success / warning) rendered with rich."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.markup import escape

_log = logging.getLogger("emusuite.console")

_console = Console(highlight=False, soft_wrap=True)


def _emit(notice: str, prefix: str, style: str, text: str) -> None:
    # консольный handler пропускает только WARNING+, поэтому в файл уходит INFO с пометкой
    _log.info(text, extra={"extra": {"notice": notice}})
    if os.getenv("EMUSUITE_QUIET") == "1":
        return
    _console.print(f"[{style}]{prefix}[/{style}]  {escape(text)}")


def bullet(text: str) -> None:
    _emit("bullet", "i", "bold cyan", text)


def success(text: str) -> None:
    _emit("success", "✔", "bold green", text)


def warning(text: str) -> None:
    _emit("warning", "⚠", "bold yellow", text)


__all__ = ["bullet", "success", "warning"]
