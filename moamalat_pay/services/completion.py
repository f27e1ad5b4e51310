"""
One-shot completion latch.

Transport channels are not trusted to deliver at most one terminal event
(the lightbox can fire completeCallback twice). The latch honors the first
event and drops the rest. It may be completed from a foreign thread, e.g. a
native SDK callback.
"""
import asyncio
import logging
import threading
from typing import Any, Optional

logger = logging.getLogger(__name__)


class CompletionLatch:
    """Explicit set-once flag in front of an asyncio future."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._lock = threading.Lock()
        self._set = False
        self._cancelled = False
        self.dropped = 0

    @property
    def is_set(self) -> bool:
        return self._set

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def complete(self, value: Any) -> bool:
        """
        Record a terminal outcome.

        Returns:
            True if this call won the latch, False if it was dropped
        """
        with self._lock:
            if self._set:
                self.dropped += 1
                logger.debug(f"Dropped duplicate terminal event ({self.dropped} so far)")
                return False
            self._set = True

        self._dispatch(value)
        return True

    def cancel(self, value: Any = None) -> bool:
        """
        Close the latch without an outcome from the transport.

        Idempotent. If value is given, waiters receive it instead of a
        CancelledError.
        """
        with self._lock:
            if self._set:
                return False
            self._set = True
            self._cancelled = True

        self._dispatch(value, cancel=value is None)
        return True

    async def wait(self) -> Any:
        return await self._future

    def _dispatch(self, value: Any, cancel: bool = False) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._resolve(value, cancel)
        else:
            self._loop.call_soon_threadsafe(self._resolve, value, cancel)

    def _resolve(self, value: Any, cancel: bool) -> None:
        if self._future.done():
            return
        if cancel:
            self._future.cancel()
        else:
            self._future.set_result(value)
