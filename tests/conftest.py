# tests/conftest.py
from __future__ import annotations
import asyncio
import os
import shlex
import socket
import subprocess
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from emusuite.adapters.fs.path_provider import PathProvider
from emusuite.domain import EmulatorConfig, EmulatorInfo, Emulators
from emusuite.services.app_context import AppContext, set_ctx, clear_ctx
from emusuite.services.emulator import EmulatorController, EmulatorRegistry
from emusuite.services.eventbus import LocalEventBus
from emusuite.services.logging import setup_logging, attach_event_logger
from emusuite.services.runtime import AsyncProcessManager
from emusuite.services.settings import Settings

_MIN_PY = (3, 10)


def make_py_cmd(code: str) -> str:
    """Shell-строка, запускающая текущий интерпретатор с `-c code`."""
    argv = [sys.executable, "-c", code]
    if os.name == "nt":
        return subprocess.list2cmdline(argv)
    return shlex.join(argv)


def get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


# ---- эмулятор-пустышка: ничего не запускает, только отвечает host/port ----
class FakeEmulator:
    def __init__(self, name: Emulators | str, host: str = "127.0.0.1", port: int = 8080, *, start_error=None, stop_error=None, journal=None):
        self.name = Emulators(name)
        self._info = EmulatorInfo(host=host, port=port)
        self._start_error = start_error
        self._stop_error = stop_error
        self.journal = journal if journal is not None else []
        self.started = False
        self.stopped = False

    async def start(self) -> None:
        self.journal.append(("start", self.name.value))
        if self._start_error is not None:
            raise self._start_error
        self.started = True

    async def stop(self) -> None:
        self.journal.append(("stop", self.name.value))
        self.stopped = True
        if self._stop_error is not None:
            raise self._stop_error

    def get_info(self) -> EmulatorInfo:
        return self._info


# ---- контроллер-пустышка: записывает вызовы, регистрирует заданные эмуляторы ----
class FakeController:
    def __init__(self, registry: EmulatorRegistry, journal: list, *, running=None, start_error=None, shutdown_error=None):
        self._registry = registry
        self.journal = journal
        self._running = running or {}
        self._start_error = start_error
        self._shutdown_error = shutdown_error
        self.shutdown_calls = 0

    async def start_all(self, options) -> None:
        self.journal.append(("start_all", options.only))
        if self._start_error is not None:
            raise self._start_error
        for name, (host, port) in self._running.items():
            self._registry.register(FakeEmulator(name, host, port))

    async def clean_shutdown(self) -> None:
        self.journal.append(("clean_shutdown", None))
        self.shutdown_calls += 1
        self._registry.clear()
        if self._shutdown_error is not None:
            raise self._shutdown_error


@pytest.fixture
def fake_emulator():
    return FakeEmulator


@pytest.fixture
def fake_controller():
    return FakeController


@pytest.fixture
def free_port() -> int:
    return get_free_port()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    settings = Settings.from_sources(env_file=None).with_overrides(base_dir=tmp_path / "base", profile="test")
    emulators = tuple(
        EmulatorConfig(name=e, host="127.0.0.1", port=get_free_port(), command=f"never-started-{e.value}") for e in Emulators
    )
    return replace(settings, emulators=emulators)


# ---------- фикстура CLI-приложения ----------
@pytest.fixture
def cli_app():
    from emusuite.apps.cli.app import app

    return app


# ---------- отдельная фикстура tmp_base_dir (нужна тестам CLI) ----------
@pytest.fixture
def tmp_base_dir(tmp_path, monkeypatch) -> Path:
    base_dir = tmp_path / "base"
    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(base_dir))
    return base_dir


# ---------- автофикстура: поднимаем AppContext для каждого теста ----------
@pytest.fixture(autouse=True)
def _autocontext(test_settings, monkeypatch):
    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(test_settings.base_dir))

    paths = PathProvider(test_settings)
    paths.ensure_tree()

    bus = LocalEventBus()
    proc = AsyncProcessManager(bus=bus)
    registry = EmulatorRegistry()
    controller = EmulatorController(test_settings, registry, proc, bus)

    ctx = AppContext(
        settings=test_settings,
        paths=paths,
        bus=bus,
        proc=proc,
        registry=registry,
        controller=controller,
    )

    set_ctx(ctx)
    logger = setup_logging(paths, level="DEBUG")
    attach_event_logger(bus, logger.getChild("events"))

    try:
        yield ctx
    finally:
        clear_ctx()


@pytest.fixture
def event_loop():
    """Локальный event loop на тест (совместимо без pytest-asyncio)."""
    loop = asyncio.new_event_loop()
    try:
        yield loop
    finally:
        loop.close()


def pytest_sessionstart(session):
    if sys.version_info < _MIN_PY:
        from _pytest.outcomes import Exit

        raise Exit(
            f"emusuite tests require Python >= {'.'.join(map(str, _MIN_PY))}. Current: {sys.executable} ({sys.version.split()[0]}).",
            returncode=2,
        )


@pytest.fixture
def py_cmd():
    return make_py_cmd
