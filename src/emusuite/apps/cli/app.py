# src/emusuite/apps/cli/app.py
from __future__ import annotations

import asyncio
import json
import os
import traceback
from pathlib import Path
from typing import List, NoReturn, Optional

from dotenv import load_dotenv, find_dotenv
import typer

# загружаем .env один раз (EMUSUITE_* переменные)
load_dotenv(find_dotenv(usecwd=True))

from emusuite.apps.bootstrap import init_ctx, get_ctx
from emusuite.config.const import DISCOVERY_VARS
from emusuite.core.errors import EmuError
from emusuite.domain import StartOptions, VALID_EMULATOR_STRINGS
from emusuite.services.exec import ScriptSupervisor, execute
from emusuite.services.functions import (
    functions_directory_exists,
    function_names_are_valid,
    package_json_is_valid,
    resolve_project_path,
)
from emusuite.services.settings import Settings

app = typer.Typer(help="Run scripts against locally started cloud emulators.", no_args_is_help=True)

# -------- вспомогательные --------


def _fail(e: Exception) -> NoReturn:
    if os.getenv("EMUSUITE_CLI_DEBUG") == "1":
        traceback.print_exc()
    typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


# -------- корневой callback (composition root) --------


@app.callback()
def main(
    base_dir: Optional[str] = typer.Option(None, "--base-dir", help="Базовый каталог (по умолчанию ~/.emusuite или из .env/ENV)"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Профиль настроек (по умолчанию 'default' или из .env/ENV)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Подробные логи в консоль"),
):
    """
    Вызывается перед любыми подкомандами: строит контекст процесса.
    """
    settings = Settings.from_sources()
    settings = settings.with_overrides(base_dir=base_dir, profile=profile, log_level="DEBUG" if verbose else None)
    init_ctx(settings, console_level="DEBUG" if verbose else "WARNING")


# -------- эмуляторы --------


@app.command("emulators:exec")
def emulators_exec(
    script: str = typer.Argument(..., help="Команда скрипта (выполняется через shell)"),
    only: Optional[str] = typer.Option(
        None,
        "--only",
        help="only run specific emulators. This is a comma separated list of emulators to start. "
        f"Valid options are: {json.dumps(VALID_EMULATOR_STRINGS)}",
    ),
):
    """
    start the local emulators, run a test script, then shut down the emulators

    The script's own non-zero exit code does not fail this command. Exit codes
    127 and 126 (9009 on Windows) are how the shell reports a command that could
    not be run, so a script ending with one of them fails this command with exit 1.
    """
    ctx = get_ctx()
    supervisor = ScriptSupervisor(ctx.bus, exit_delay_s=ctx.settings.exec_exit_delay_s)
    try:
        asyncio.run(
            execute(
                script,
                StartOptions(only=only),
                controller=ctx.controller,
                registry=ctx.registry,
                supervisor=supervisor,
            )
        )
    except EmuError as e:
        _fail(e)


@app.command("emulators:list")
def emulators_list():
    """Показать эмуляторы, их адреса и переменные окружения для скриптов."""
    ctx = get_ctx()
    for cfg in ctx.settings.emulators:
        var = DISCOVERY_VARS.get(cfg.name.value, "-")
        typer.echo(f"{cfg.name.value:10} {cfg.host}:{cfg.port:<6} {var}")


# -------- functions --------


@app.command("functions:validate")
def functions_validate(
    source: str = typer.Option("functions", "--source", help="Каталог с исходниками функций (относительно текущего)"),
    names: List[str] = typer.Option([], "--name", help="Имя функции (можно многократно)"),
):
    """Проверить каталог функций: наличие, имена, package.json/main."""
    cwd = Path.cwd()
    try:
        functions_directory_exists(cwd, source)
        function_names_are_valid(names)
        package_json_is_valid(source, resolve_project_path(cwd, source), cwd)
    except EmuError as e:
        _fail(e)
    typer.secho(f"{source}: ok", fg=typer.colors.GREEN)


@app.command("where")
def where():
    ctx = get_ctx()
    typer.echo(f"base_dir: {ctx.settings.base_dir}")
    typer.echo(f"log_file: {ctx.paths.log_file()}")


if __name__ == "__main__":
    app()
