import asyncio
from typing import Callable, Optional

from loguru import logger

from core.services.scheduler import Scheduler


class AsyncioScheduler(Scheduler):
    """
    Таймеры на event loop приложения. Из потока threadpool вызов
    передаётся в loop через call_soon_threadsafe.
    """
    def __init__(self):
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            running.call_later(delay_seconds, self._run, callback)
            return
        if self._loop is None:
            raise RuntimeError("Scheduler is not bound to an event loop")
        self._loop.call_soon_threadsafe(self._loop.call_later, delay_seconds, self._run, callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback failed")
