# ABOUTME: Coalescing auto-save buffer for in-progress chapter content.
# ABOUTME: Pending writes flush after a quiet period or immediately on a manual save.

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, Literal, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

SaveStatus = Literal["idle", "saving", "saved", "error"]


class AutoSaveBuffer(Generic[K, V]):
    """Pending-write buffer with two flush triggers: timer elapsed or flush().

    schedule() records the latest value per key and restarts the quiet-period
    timer, so a burst of edits becomes one write per key. Writes run one at a
    time in scheduling order. A failed write is logged, reported through
    status, and left pending for the next flush unless a newer value for the
    same key has arrived in the meantime.

    Args:
        save: Coroutine function persisting one (key, value) pair.
        delay: Quiet period in seconds before pending writes flush.
    """

    def __init__(self, save: Callable[[K, V], Awaitable[None]], *, delay: float = 1.0) -> None:
        self._save = save
        self._delay = delay
        self._pending: dict[K, V] = {}
        self._timer: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()
        self.status: SaveStatus = "idle"
        self.last_error: str | None = None

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def schedule(self, key: K, value: V) -> None:
        """Buffer a value and restart the quiet-period timer.

        Must be called from a running event loop.
        """
        self._pending[key] = value
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._flush_after_delay())

    async def flush(self) -> SaveStatus:
        """Write everything pending now, bypassing the quiet period."""
        self._cancel_timer()
        await self._drain()
        return self.status

    async def close(self) -> None:
        """Flush pending writes before the owner goes away."""
        await self.flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _flush_after_delay(self) -> None:
        await asyncio.sleep(self._delay)
        # Detach before writing so a schedule() during the write starts a
        # fresh timer instead of cancelling this one mid-save.
        self._timer = None
        await self._drain()

    async def _drain(self) -> None:
        async with self._lock:
            while self._pending:
                key = next(iter(self._pending))
                value = self._pending.pop(key)
                self.status = "saving"
                try:
                    await self._save(key, value)
                except Exception as exc:  # surfaced through status; the value stays pending
                    logger.error("Auto-save failed for %s: %s", key, exc)
                    self._pending.setdefault(key, value)
                    self.status = "error"
                    self.last_error = str(exc)
                    return
                self.status = "saved"
                self.last_error = None
