"""Per-chain sequential event workers.

Events of one chain are applied strictly in delivery order by a single
worker; different chains run concurrently. A fatal error stops only the
chain it happened on, leaving the failed event for the log layer to
re-deliver.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from kernelscope.core.config import Settings, get_settings
from kernelscope.core.errors import WorkerStoppedError
from kernelscope.core.logging import event_extra
from kernelscope.core.types import ActionLog, AdminPulledLog, ChainLog, RoleLog
from kernelscope.pipeline.action_processor import ActionEventProcessor
from kernelscope.pipeline.role_processor import RoleEventProcessor

logger = logging.getLogger(__name__)

# Queue sentinel that asks a worker to finish after draining.
_STOP = object()


class ChainWorker:
    """Consumes one chain's logs from a queue, one at a time."""

    def __init__(
        self,
        chain_id: int,
        actions: ActionEventProcessor,
        roles: RoleEventProcessor,
        maxsize: int = 0,
    ) -> None:
        self.chain_id = chain_id
        self._actions = actions
        self._roles = roles
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.processed = 0
        self.stopped = False
        self.failed: ChainLog | None = None
        self.error: Exception | None = None

    async def submit(self, log: ChainLog) -> None:
        """Queue a log; raises :class:`WorkerStoppedError` once the worker has stopped."""
        if log.chain_id != self.chain_id:
            raise ValueError(f"Log for chain {log.chain_id} submitted to worker for chain {self.chain_id}")
        if self.stopped:
            raise WorkerStoppedError(self.chain_id, self.failed, self.error)
        await self._queue.put(log)
        if self.stopped:
            # The worker stopped while this put was waiting for queue space.
            self._drain()
            raise WorkerStoppedError(self.chain_id, self.failed, self.error)

    async def stop(self) -> None:
        if not self.stopped:
            await self._queue.put(_STOP)

    async def dispatch(self, log: ChainLog) -> None:
        if isinstance(log, ActionLog):
            await self._actions.process(log)
        elif isinstance(log, RoleLog):
            await self._roles.process(log)
        elif isinstance(log, AdminPulledLog):
            await self._roles.admin_pulled(log)
        else:
            raise TypeError(f"Unsupported log type {type(log).__name__}")

    async def run(self) -> None:
        """Process queued logs until stopped or until a log fails."""
        logger.info("Worker started", extra={"chain_id": self.chain_id})
        try:
            while True:
                item = await self._queue.get()
                try:
                    if item is _STOP:
                        break
                    try:
                        await self.dispatch(item)
                    except Exception as exc:
                        self.failed, self.error = item, exc
                        logger.error(
                            "Fatal error, stopping worker: %s", exc,
                            extra=event_extra(item.chain_id, item.transaction_hash, item.log_index),
                            exc_info=True,
                        )
                        break
                    self.processed += 1
                finally:
                    self._queue.task_done()
        finally:
            self.stopped = True
            dropped = self._drain()
        logger.info(
            "Worker stopped after %d events (%d undelivered)", self.processed, dropped,
            extra={"chain_id": self.chain_id},
        )

    def _drain(self) -> int:
        # Logs still queued were never applied and get re-delivered by the log layer.
        dropped = 0
        while not self._queue.empty():
            if self._queue.get_nowait() is not _STOP:
                dropped += 1
            self._queue.task_done()
        return dropped


class IndexerSupervisor:
    """Runs one :class:`ChainWorker` per chain concurrently."""

    def __init__(self, workers: Iterable[ChainWorker]) -> None:
        self.workers = {w.chain_id: w for w in workers}

    @classmethod
    def from_settings(
        cls,
        actions: ActionEventProcessor,
        roles: RoleEventProcessor,
        settings: Settings | None = None,
        maxsize: int = 0,
    ) -> IndexerSupervisor:
        """Build one worker for every chain in ``settings.chains``."""
        settings = settings or get_settings()
        return cls(ChainWorker(chain_id, actions, roles, maxsize=maxsize) for chain_id in settings.chains)

    async def submit(self, log: ChainLog) -> None:
        try:
            worker = self.workers[log.chain_id]
        except KeyError:
            raise ValueError(f"No worker for chain {log.chain_id}") from None
        await worker.submit(log)

    async def run(self) -> None:
        results = await asyncio.gather(*(w.run() for w in self.workers.values()), return_exceptions=True)
        for chain_id, result in zip(self.workers, results):
            if isinstance(result, BaseException):
                logger.error("Worker crashed: %s", result, extra={"chain_id": chain_id})

    async def stop(self) -> None:
        for worker in self.workers.values():
            await worker.stop()
