"""Streaming chain-head feed delivered through a queue."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Protocol

import structlog

from .base import CollectorResult

logger = structlog.get_logger(__name__)


class HeightSource(Protocol):
    async def chain_height(self) -> CollectorResult[int]: ...


class ChainHeightStream:
    """Polls the chain head and pushes every new height onto a queue.

    This is a polling stand-in for a websocket ``newHeads`` subscription: it
    calls ``eth_blockNumber`` every ``interval_seconds``, so heads produced
    between two polls collapse into the latest one.

    Consumers iterate with ``async for``. ``stop()`` sets the cancellation
    event; the poller then enqueues an end marker so iteration finishes after
    the heights already delivered.
    """

    def __init__(self, source: HeightSource, interval_seconds: float = 12.0):
        self._source = source
        self._interval = interval_seconds
        self._queue: asyncio.Queue[int | None] = asyncio.Queue()
        self._stopped = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._last_height: int | None = None

    async def __aenter__(self) -> ChainHeightStream:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("Height stream already running")
            return
        self._task = asyncio.create_task(self._poll())
        logger.info("Height stream started", interval_seconds=self._interval)

    async def stop(self) -> None:
        self._stopped.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def _poll(self) -> None:
        try:
            while not self._stopped.is_set():
                result = await self._source.chain_height()
                if result.ok and result.value != self._last_height:
                    self._last_height = result.value
                    self._queue.put_nowait(result.value)

                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._queue.put_nowait(None)
            logger.info("Height stream stopped", last_height=self._last_height)

    async def __aiter__(self) -> AsyncIterator[int]:
        while True:
            height = await self._queue.get()
            if height is None:
                return
            yield height
