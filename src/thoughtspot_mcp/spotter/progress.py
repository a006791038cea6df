"""Progress notifications for long-running tool calls.

Progress is advisory. The producer never waits on the consumer: async
sinks are scheduled as background tasks and their failures are only
logged.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressUpdate:
    message: str
    progress: float
    total: float = 100.0


ProgressSink = Callable[[ProgressUpdate], Union[Awaitable[Any], None]]


class ProgressChannel:
    """Emit monotonically increasing progress updates to a sink.

    Each ``emit`` advances progress by ``step`` and clamps it to
    ``[0, total]``. Without a sink, updates are only logged.
    """

    def __init__(
        self,
        sink: ProgressSink | None = None,
        *,
        step: float = 10.0,
        total: float = 100.0,
    ):
        self._sink = sink
        self._step = step
        self._total = total
        self._count = 0
        self._pending: set[asyncio.Future[Any]] = set()

    @property
    def current(self) -> float:
        return self._clamp(self._count * self._step)

    def _clamp(self, value: float) -> float:
        return max(0.0, min(value, self._total))

    def emit(self, message: str) -> ProgressUpdate:
        self._count += 1
        update = ProgressUpdate(message=message, progress=self.current, total=self._total)
        logger.debug("Progress %.0f/%.0f: %s", update.progress, update.total, message)

        if self._sink is None:
            return update

        try:
            result = self._sink(update)
        except Exception:
            logger.warning("Progress sink failed", exc_info=True)
            return update

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_sent)
        return update

    def _on_sent(self, task: asyncio.Future[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Progress notification failed: %s", exc)

    async def drain(self) -> None:
        """Wait for in-flight notifications to finish sending."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
