from __future__ import annotations
import asyncio
import logging
import time
from collections import defaultdict
from threading import RLock
from typing import Callable, Awaitable, Any, DefaultDict, List, Set

from emusuite.domain import Event
from emusuite.ports import EventBus

Handler = Callable[[Event], Any] | Callable[[Event], Awaitable[Any]]

_log = logging.getLogger("emusuite.eventbus")


class LocalEventBus(EventBus):
    """
    Шина событий proc.* / emulator.* / exec.* по префиксам типов.
      * prefix = "" или "*": подписка на всё.
      * subscribe() возвращает функцию отписки.
      * Исключение в обработчике логируется и не прерывает publish:
        запуск/остановка эмуляторов не должны зависеть от подписчиков.
      * Async-обработчики планируются в running loop (или выполняются блокирующе, если лупа нет).
    """

    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._lock = RLock()
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, type_prefix: str, handler: Handler) -> Callable[[], None]:
        with self._lock:
            self._subs[type_prefix].append(handler)

        def _unsubscribe() -> None:
            with self._lock:
                handlers = self._subs.get(type_prefix, [])
                if handler in handlers:
                    handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            matched = [h for p, hs in self._subs.items() if p in ("", "*") or event.type.startswith(p) for h in hs]
        for h in matched:
            try:
                res = h(event)
            except Exception:
                _log.warning("eventbus.handler_failed", exc_info=True, extra={"extra": {"type": event.type}})
                continue
            if asyncio.iscoroutine(res):
                self._schedule(event, res)

    def _schedule(self, event: Event, coro: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(coro)  # нет активного лупа: выполним синхронно
            except Exception:
                _log.warning("eventbus.handler_failed", exc_info=True, extra={"extra": {"type": event.type}})
            return
        task = loop.create_task(coro)
        # держим ссылку, иначе задачу может собрать GC до завершения
        self._pending.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _log.warning("eventbus.handler_failed", exc_info=task.exception())


def emit(bus: EventBus | None, type_: str, payload: dict, source: str) -> None:
    if bus is None:
        return
    bus.publish(Event(type=type_, payload=payload, source=source, ts=time.time()))
