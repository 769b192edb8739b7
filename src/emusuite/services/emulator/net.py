from __future__ import annotations
import asyncio
import time
from typing import Awaitable, Callable, Optional


async def port_is_open(host: str, port: int, timeout_s: float = 0.5) -> bool:
    """True, если на host:port уже кто-то принимает TCP-соединения."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout_s)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def wait_for_port(
    host: str,
    port: int,
    timeout_s: float,
    *,
    alive: Optional[Callable[[], Awaitable[bool]]] = None,
    interval_s: float = 0.1,
) -> bool:
    """
    Ждёт, пока порт начнёт принимать соединения.
    Возвращает False по таймауту или если alive() сообщил, что процесс умер.
    """
    deadline = time.monotonic() + timeout_s
    while True:
        if await port_is_open(host, port, timeout_s=max(interval_s, 0.5)):
            return True
        if alive is not None and not await alive():
            return False
        if time.monotonic() >= deadline:
            return False
        await asyncio.sleep(interval_s)
