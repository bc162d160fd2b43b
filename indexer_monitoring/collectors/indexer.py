"""Default metric source wiring the network and shell collectors together."""

from __future__ import annotations

import httpx

from ..config import MonitoringConfig
from .base import CollectorResult, DirectorySizes, ErrorLogScan
from .chain import ChainCollector
from .shell import ShellCollector


class IndexerCollectors:
    """Collects every metric of one indexer deployment."""

    def __init__(
        self,
        config: MonitoringConfig,
        client: httpx.AsyncClient | None = None,
        shell: ShellCollector | None = None,
    ):
        self.config = config
        self.chain = ChainCollector(config, client=client)
        self.shell = shell or ShellCollector(config)

    async def __aenter__(self) -> IndexerCollectors:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.chain.close()

    async def chain_height(self) -> CollectorResult[int]:
        return await self.chain.chain_height()

    async def indexed_height(self) -> CollectorResult[int]:
        return await self.chain.indexed_height()

    async def database_size(self) -> CollectorResult[str]:
        return await self.shell.database_size()

    async def database_stats(self) -> CollectorResult[list[str]]:
        return await self.shell.database_stats()

    async def container_status(self) -> CollectorResult[str]:
        return await self.shell.container_status()

    async def disk_usage(self) -> CollectorResult[str]:
        return await self.shell.disk_usage()

    async def directory_sizes(self) -> DirectorySizes:
        return await self.shell.directory_sizes()

    async def error_log(self) -> CollectorResult[ErrorLogScan]:
        return await self.shell.error_log()
