"""Message batcher - coalesces device output into periodic broadcasts."""

import asyncio
import json
import logging
from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

# Constants
FLUSH_INTERVAL = 0.032  # seconds


class MessageBatcher:
    """Accumulates device fragments and flushes them on a fixed period.

    Each non-empty flush hands one JSON-encoded list of fragments to the
    sink; an empty batch produces nothing.
    """

    def __init__(
        self,
        sink: Callable[[str], None],
        interval: float = FLUSH_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError("Flush interval must be positive")
        self._sink = sink
        self._interval = interval
        self._pending: list[str] = []
        self._flush_task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> tuple[str, ...]:
        return tuple(self._pending)

    @property
    def is_running(self) -> bool:
        return self._flush_task is not None and not self._flush_task.done()

    def append(self, fragments: Iterable[str]) -> None:
        """Queue fragments for the next flush."""
        self._pending.extend(fragments)

    def flush(self) -> bool:
        """Send the pending batch, if any.

        Returns:
            True if a batch was sent.
        """
        if not self._pending:
            return False
        batch, self._pending = self._pending, []
        self._sink(json.dumps(batch))
        return True

    def clear(self) -> None:
        self._pending.clear()

    def start(self) -> None:
        """Arm the flush timer. No-op if already running."""
        if self.is_running:
            return
        self._flush_task = asyncio.create_task(self._flush_loop())

    async def stop(self) -> None:
        """Release the flush timer. Pending fragments are kept."""
        task, self._flush_task = self._flush_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _flush_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.flush()
            except Exception:
                logger.exception("Batch flush failed")
