# src/emusuite/services/runtime/manager.py
from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

import psutil

from emusuite.domain import ProcessSpec
from emusuite.ports import EventBus, Process
from emusuite.services.eventbus import emit

_log = logging.getLogger("emusuite.runtime")


def _process_tree(pid: int) -> list[psutil.Process]:
    """Сам процесс и все его потомки; дети первыми, чтобы не осиротить их."""
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return []
    try:
        children = root.children(recursive=True)
    except psutil.Error:
        children = []
    return [*children, root]


def _signal_all(procs: Iterable[psutil.Process], *, hard: bool) -> None:
    for p in procs:
        try:
            if hard:
                p.kill()
            elif hasattr(signal, "SIGTERM"):
                p.send_signal(signal.SIGTERM)  # *nix
            else:
                p.terminate()  # windows
        except psutil.Error:
            pass


class ProcState(str, Enum):
    INIT = "init"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(slots=True)
class _Record:
    handle: str
    spec: ProcessSpec
    state: ProcState = ProcState.INIT
    started_at: float = 0.0
    task: Optional[asyncio.Task] = None
    proc: Optional[asyncio.subprocess.Process] = None
    returncode: Optional[int] = None
    error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.spec.name

    def payload(self, **extra) -> dict:
        return {"handle": self.handle, "name": self.name, **extra}


class AsyncProcessManager(Process):
    """
    Фоновые процессы эмуляторов (контракт Process):
      - spec.cmd: внешняя команда, stdin=DEVNULL, stdout/stderr построчно в логгер emusuite.proc.<name>
      - stop(): SIGTERM всему дереву процессов, по таймауту kill
      - события: proc.starting|running|exited|stopping|stopped|error
    Самовольный выход процесса не перезапускается: эмулятор, который упал, должен уронить запуск.
    """

    def __init__(self, bus: EventBus | None) -> None:
        self._bus = bus
        self._records: Dict[str, _Record] = {}

    # ---------- API ----------

    async def start(self, spec: ProcessSpec) -> str:
        if not spec.cmd:
            raise ValueError(f"process {spec.name!r} has an empty cmd")
        rec = _Record(handle=uuid.uuid4().hex, spec=spec, state=ProcState.STARTING, started_at=time.time())
        self._records[rec.handle] = rec
        emit(self._bus, "proc.starting", rec.payload(), "runtime")
        rec.task = asyncio.create_task(self._supervise(rec))
        # даём супервизору шанс запустить процесс до возврата хэндла
        await asyncio.sleep(0)
        return rec.handle

    async def stop(self, handle: str, timeout_s: float = 5.0) -> None:
        rec = self._records.get(handle)
        if rec is None or rec.state in (ProcState.STOPPED, ProcState.ERROR):
            return

        rec.state = ProcState.STOPPING
        emit(self._bus, "proc.stopping", rec.payload(), "runtime")

        if rec.proc is not None:
            if rec.proc.returncode is None:
                tree = _process_tree(rec.proc.pid)
                _signal_all(tree, hard=False)
                try:
                    await asyncio.wait_for(rec.proc.wait(), timeout=timeout_s)
                except asyncio.TimeoutError:
                    _log.warning("proc.kill", extra={"extra": rec.payload(timeout_s=timeout_s)})
                    _signal_all(tree, hard=True)
                    await rec.proc.wait()
            # супервизор дочитывает stdout/stderr; потомки могли держать pipe, поэтому с таймаутом
            if rec.task is not None:
                await asyncio.wait({rec.task}, timeout=timeout_s)
        elif rec.task is not None:
            # процесс ещё не запущен: отменяем сам запуск
            rec.task.cancel()
            await asyncio.wait({rec.task}, timeout=timeout_s)

        rec.state = ProcState.STOPPED
        if rec.proc is not None:
            rec.returncode = rec.proc.returncode
        emit(self._bus, "proc.stopped", rec.payload(returncode=rec.returncode), "runtime")

    async def status(self, handle: str) -> str:
        rec = self._records.get(handle)
        return rec.state.value if rec else ProcState.ERROR.value

    def returncode(self, handle: str) -> Optional[int]:
        rec = self._records.get(handle)
        return rec.returncode if rec else None

    # ---------- внутренняя логика ----------

    async def _supervise(self, rec: _Record) -> None:
        try:
            rec.proc = await asyncio.create_subprocess_exec(
                *rec.spec.cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **rec.spec.env} if rec.spec.env is not None else None,
            )
        except OSError as e:
            rec.state = ProcState.ERROR
            rec.error = f"start_error: {e!r}"
            emit(self._bus, "proc.error", rec.payload(error=rec.error), "runtime")
            return

        if rec.state == ProcState.STARTING:
            rec.state = ProcState.RUNNING
        emit(self._bus, "proc.running", rec.payload(pid=rec.proc.pid), "runtime")

        await self._wait_subprocess(rec)

        # выход по stop() публикует сам stop()
        if rec.state in (ProcState.STOPPING, ProcState.STOPPED):
            return
        emit(self._bus, "proc.exited", rec.payload(returncode=rec.returncode, error=rec.error), "runtime")

    async def _drain(self, rec: _Record, stream: Optional[asyncio.StreamReader], channel: str) -> None:
        if stream is None:
            return
        out = logging.getLogger(f"emusuite.proc.{rec.name}")
        while True:
            line = await stream.readline()
            if not line:
                return
            out.debug(line.decode("utf-8", errors="replace").rstrip(), extra={"extra": {"stream": channel}})

    async def _wait_subprocess(self, rec: _Record) -> None:
        assert rec.proc is not None
        await asyncio.gather(
            self._drain(rec, rec.proc.stdout, "stdout"),
            self._drain(rec, rec.proc.stderr, "stderr"),
            rec.proc.wait(),
        )
        rec.returncode = rec.proc.returncode
        # не через stop(): процесс вышел сам
        if rec.state == ProcState.RUNNING:
            rec.state = ProcState.ERROR if rec.returncode != 0 else ProcState.STOPPED
