from __future__ import annotations
import logging
import shlex
from typing import Optional

from emusuite.core.errors import EmulatorStartError
from emusuite.domain import EmulatorConfig, EmulatorInfo, ProcessSpec
from emusuite.ports import Process
from emusuite.services.emulator.net import wait_for_port

_log = logging.getLogger("emusuite.emulator")


class CommandEmulator:
    """
    Эмулятор, который поднимается внешней командой (например, `gcloud beta emulators ...`).
    Готовность = порт начал принимать TCP-соединения.
    """

    def __init__(
        self,
        config: EmulatorConfig,
        proc: Process,
        *,
        startup_timeout_s: float = 30.0,
        stop_timeout_s: float = 5.0,
    ) -> None:
        self.config = config
        self.name = config.name
        self._proc = proc
        self._startup_timeout_s = startup_timeout_s
        self._stop_timeout_s = stop_timeout_s
        self._handle: Optional[str] = None

    def get_info(self) -> EmulatorInfo:
        return EmulatorInfo(host=self.config.host, port=self.config.port)

    async def start(self) -> None:
        argv = shlex.split(self.config.render_command())
        if not argv:
            raise EmulatorStartError(self.name.value, "empty start command")
        _log.debug("emulator.spawn", extra={"extra": {"emulator": self.name.value, "cmd": argv}})
        handle = await self._proc.start(ProcessSpec(name=self.name.value, cmd=argv))
        self._handle = handle

        async def alive() -> bool:
            return await self._proc.status(handle) in ("starting", "running")

        ready = await wait_for_port(self.config.host, self.config.port, self._startup_timeout_s, alive=alive)
        if ready:
            return

        code = self._proc.returncode(handle)
        status = await self._proc.status(handle)
        await self.stop()
        where = self.get_info().host_string
        if code is not None:
            raise EmulatorStartError(self.name.value, f"process exited with code {code} before {where} was ready")
        if status == "error":
            raise EmulatorStartError(self.name.value, f"could not launch {argv[0]!r}")
        raise EmulatorStartError(self.name.value, f"timed out after {self._startup_timeout_s:g}s waiting for {where}")

    async def stop(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        await self._proc.stop(handle, timeout_s=self._stop_timeout_s)
