"""Background persistence of executed commands.

Connection handlers hand finished commands to a CommandRecorder instead
of writing to the store themselves. The recorder appends them from a
bounded queue on a single background task, so replying to the browser
never waits on the store while the order of appends still matches the
order in which commands were queued.
"""

from __future__ import annotations

import asyncio
import logging

from webterminal.domain.models import CommandCreate
from webterminal.storage.base import HistoryStore

logger = logging.getLogger(__name__)


class CommandRecorder:
    """Queue-backed writer of command history."""

    def __init__(self, store: HistoryStore, queue_size: int = 1000) -> None:
        self._store = store
        self._queue: asyncio.Queue[CommandCreate] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the background writer task."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._write_loop())
        logger.info("Command recorder started")

    async def stop(self) -> None:
        """Write out everything still queued, then stop the writer."""
        await self.flush()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Command recorder stopped")

    async def record(self, command: CommandCreate) -> None:
        """Queue a command for persistence.

        Only waits when the queue is full.
        """
        await self._queue.put(command)

    async def flush(self) -> None:
        """Wait until every queued command has been handed to the store."""
        if self.is_running:
            await self._queue.join()
            return
        while not self._queue.empty():
            await self._write(self._queue.get_nowait())

    async def _write_loop(self) -> None:
        while True:
            command = await self._queue.get()
            await self._write(command)

    async def _write(self, command: CommandCreate) -> None:
        try:
            await self._store.add_command(command)
        except Exception:
            logger.exception(
                "Failed to record command for session %s: %s",
                command.session_id, command.command[:50],
            )
        finally:
            self._queue.task_done()
