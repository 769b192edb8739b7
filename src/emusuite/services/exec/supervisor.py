# src/emusuite/services/exec/supervisor.py
from __future__ import annotations

import asyncio
import io
import json
import logging
import os
import signal
import subprocess
import sys
from typing import IO, Any, Callable, Mapping, Optional

from emusuite.config.const import EXEC_EXIT_DELAY_S
from emusuite.core.errors import ScriptSignaledError, ScriptSpawnError
from emusuite.domain import NonZeroExit, ProcessOutcome, ScriptInvocation, Signaled, SpawnError, Success
from emusuite.ports import EventBus
from emusuite.services import io_console
from emusuite.services.eventbus import emit

_log = logging.getLogger("emusuite.exec")

# коды, которыми shell сообщает, что команду вообще не удалось запустить
if os.name == "nt":
    SHELL_SPAWN_FAILURES: dict[int, str] = {9009: "command not found"}
else:
    SHELL_SPAWN_FAILURES = {126: "permission denied", 127: "command not found"}


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


def outcome_from_returncode(returncode: int) -> ProcessOutcome:
    if returncode < 0:
        return Signaled(_signal_name(-returncode))
    if returncode in SHELL_SPAWN_FAILURES:
        return SpawnError(f"{SHELL_SPAWN_FAILURES[returncode]} (code {returncode})")
    if returncode == 0:
        return Success()
    return NonZeroExit(returncode)


class _Termination:
    """Итог запуска: первое терминальное событие побеждает, остальные игнорируются."""

    __slots__ = ("_outcome",)

    def __init__(self) -> None:
        self._outcome: Optional[ProcessOutcome] = None

    @property
    def settled(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> ProcessOutcome:
        if self._outcome is None:
            raise RuntimeError("script outcome is not settled yet")
        return self._outcome

    def settle(self, outcome: ProcessOutcome) -> bool:
        if self._outcome is not None:
            _log.debug("exec.late_event_ignored", extra={"extra": {"outcome": outcome.kind}})
            return False
        self._outcome = outcome
        return True


def _write_chunk(sink: IO[Any], chunk: bytes) -> None:
    if isinstance(sink, io.TextIOBase):
        buf = getattr(sink, "buffer", None)
        if buf is None:
            sink.write(chunk.decode("utf-8", errors="replace"))
            sink.flush()
            return
        # текстовый слой мог что-то накопить (rich и т.п.), сначала сбросим его
        sink.flush()
        sink = buf
    sink.write(chunk)
    sink.flush()


class _ScriptProtocol(asyncio.SubprocessProtocol):
    """
    Пробрасывает вывод скрипта и сообщает о выходе shell-процесса отдельно от EOF на pipe:
    фоновые потомки скрипта могут держать stdout/stderr открытыми сколько угодно.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, sinks: dict[int, Callable[[], IO[Any]]], command: str) -> None:
        self._sinks = sinks
        self._command = command
        self.exited: asyncio.Future[None] = loop.create_future()
        self.eof: dict[int, asyncio.Future[None]] = {fd: loop.create_future() for fd in sinks}

    def pipe_data_received(self, fd: int, data: bytes) -> None:
        sink = self._sinks.get(fd)
        if sink is None:
            return
        try:
            _write_chunk(sink(), data)
        except (OSError, ValueError):
            _log.debug("exec.forward_failed", exc_info=True, extra={"extra": {"command": self._command, "fd": fd}})

    def pipe_connection_lost(self, fd: int, exc: Optional[BaseException]) -> None:
        fut = self.eof.get(fd)
        if fut is not None and not fut.done():
            fut.set_result(None)

    def process_exited(self) -> None:
        if not self.exited.done():
            self.exited.set_result(None)


class ScriptSupervisor:
    """
    Запускает скрипт через shell с заданным (и только с ним) окружением,
    пробрасывает stdout/stderr в родительские потоки и сводит события процесса
    к одному ProcessOutcome.
    """

    def __init__(
        self,
        bus: EventBus | None = None,
        *,
        exit_delay_s: float = EXEC_EXIT_DELAY_S,
        stdout: Optional[IO[Any]] = None,
        stderr: Optional[IO[Any]] = None,
    ) -> None:
        self._bus = bus
        self._exit_delay_s = exit_delay_s
        self._stdout = stdout
        self._stderr = stderr

    async def run(self, command: str, env: Mapping[str, str]) -> ProcessOutcome:
        """Как spawn_and_wait, но SpawnError/Signaled превращаются в исключения."""
        outcome = await self.spawn_and_wait(command, env)
        if isinstance(outcome, SpawnError):
            raise ScriptSpawnError(f"There was an error running the script: {outcome.error}", outcome=outcome, command=command)
        if isinstance(outcome, Signaled):
            raise ScriptSignaledError(f"Script exited with signal: {outcome.signal}", outcome=outcome, command=command)
        return outcome

    async def spawn_and_wait(self, command: str, env: Mapping[str, str]) -> ProcessOutcome:
        invocation = ScriptInvocation(command=command, env=dict(env))
        io_console.bullet(f"Running script: {command}")
        _log.debug(f"Running {command} with environment {json.dumps(invocation.env)}")
        emit(self._bus, "exec.started", {"command": command, "env": invocation.env}, "exec")

        termination = _Termination()
        kwargs: dict[str, Any] = {}
        if os.name == "nt":
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        loop = asyncio.get_running_loop()
        sinks = {1: self._stdout_sink, 2: self._stderr_sink}
        try:
            transport, protocol = await loop.subprocess_shell(
                lambda: _ScriptProtocol(loop, sinks, command),
                command,
                stdin=None,  # наследуем stdin родителя
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=dict(invocation.env),
                **kwargs,
            )
        except OSError as e:
            termination.settle(SpawnError(f"{type(e).__name__}: {e}"))
            return self._finish(invocation, termination.outcome)

        try:
            # итог фиксируем по выходу shell, а не по закрытию pipe
            await protocol.exited
            termination.settle(outcome_from_returncode(transport.get_returncode()))

            # вывод может прийти позже exit: ждём EOF на обоих потоках, но не дольше exit_delay_s
            _, pending = await asyncio.wait(list(protocol.eof.values()), timeout=self._exit_delay_s)
            if pending:
                _log.debug(
                    "exec.output_not_drained",
                    extra={"extra": {"command": command, "pending": len(pending), "pid": transport.get_pid()}},
                )
        finally:
            # закрывает pipe; оставшиеся фоновые потомки скрипта больше не читаются
            transport.close()

        return self._finish(invocation, termination.outcome)

    def _stdout_sink(self) -> IO[Any]:
        return self._stdout if self._stdout is not None else sys.stdout

    def _stderr_sink(self) -> IO[Any]:
        return self._stderr if self._stderr is not None else sys.stderr

    def _report(self, outcome: ProcessOutcome) -> None:
        if isinstance(outcome, Success):
            io_console.success("Script exited successfully (code 0)")
        elif isinstance(outcome, NonZeroExit):
            io_console.warning(f"Script exited unsuccessfully (code {outcome.code})")
        elif isinstance(outcome, Signaled):
            io_console.warning(f"Script exited with signal: {outcome.signal}")
        else:
            io_console.warning(f"There was an error running the script: {outcome.error}")

    def _finish(self, invocation: ScriptInvocation, outcome: ProcessOutcome) -> ProcessOutcome:
        self._report(outcome)
        emit(
            self._bus,
            "exec.finished",
            {"command": invocation.command, "outcome": outcome.kind, "detail": _detail(outcome)},
            "exec",
        )
        return outcome


def _detail(outcome: ProcessOutcome) -> Any:
    if isinstance(outcome, NonZeroExit):
        return outcome.code
    if isinstance(outcome, Signaled):
        return outcome.signal
    if isinstance(outcome, SpawnError):
        return outcome.error
    return 0
