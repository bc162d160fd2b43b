"""Shell-based collectors using du, df, docker and psql on the monitoring host."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from ..config import MonitoringConfig
from .base import CollectorResult, DirectorySizes, ErrorLogScan, FailureReason, parse_log_timestamp

logger = structlog.get_logger(__name__)

SUBGRAPH_TABLES = ("pair", "swap", "mint", "burn", "pair_created", "token")


def build_stats_query(chain_schema: str, subgraph_schema: str) -> str:
    """Row counts for the blocks table and the six subgraph entity tables."""
    tables = [f"{chain_schema}.blocks"] + [f"{subgraph_schema}.{name}" for name in SUBGRAPH_TABLES]
    selects = [f"SELECT '{table}' AS table_name, COUNT(*) AS count FROM {table}" for table in tables]
    return "\nUNION ALL\n".join(selects) + ";"


class ShellCollector:
    """Runs external commands and returns their output as collector results.

    Commands run without a timeout: a hung ``docker`` or ``du`` blocks the run
    until it returns.
    """

    def __init__(self, config: MonitoringConfig):
        self.config = config

    async def _run_command(self, command: list[str], merge_stderr: bool = False) -> CollectorResult[str]:
        """Execute a command and return its stripped stdout."""
        logger.debug("Running command", command=" ".join(command))
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT if merge_stderr else asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error("Command not found", command=command[0])
            return CollectorResult.failed(FailureReason.BINARY_MISSING, f"{command[0]} not found")
        except OSError as e:
            logger.error("Command could not start", command=" ".join(command), error=str(e))
            return CollectorResult.failed(FailureReason.COMMAND_FAILED, str(e))

        stdout, stderr = await proc.communicate()
        output = stdout.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            error = (stderr or b"").decode("utf-8", errors="replace").strip() or output
            logger.error("Command failed", command=" ".join(command), returncode=proc.returncode, error=error)
            return CollectorResult.failed(FailureReason.COMMAND_FAILED, f"exit {proc.returncode}: {error}")
        return CollectorResult.success(output)

    async def database_size(self) -> CollectorResult[str]:
        """``du -sh`` of the postgres data directory, raw text."""
        path = str(Path(self.config.subgraph_path) / "data" / "postgres") + "/"
        result = await self._run_command(["du", "-sh", path])
        if not result.ok:
            logger.warning("Failed to get database size", error=str(result.failure))
        return result

    async def database_stats(self) -> CollectorResult[list[str]]:
        """``table|count`` rows for the monitored tables."""
        db = self.config.database
        query = build_stats_query(db.chain_schema, db.subgraph_schema)
        result = await self._run_command([
            "docker", "exec", db.container,
            "psql", "-U", db.user, "-d", db.database,
            "--no-align", "--tuples-only", "-c", query,
        ])
        if not result.ok:
            logger.warning("Failed to get database stats", error=str(result.failure))
            return CollectorResult(failure=result.failure)

        rows = [line.strip() for line in (result.value or "").split("\n") if line.strip()]
        return CollectorResult.success(rows)

    async def container_status(self) -> CollectorResult[str]:
        """``docker ps`` table of the deployment's containers."""
        result = await self._run_command([
            "docker", "ps",
            "--filter", self.config.docker.filter,
            "--format", "table {{.Names}}\t{{.Status}}\t{{.Ports}}",
        ])
        if not result.ok:
            logger.warning("Failed to get container status", error=str(result.failure))
        return result

    async def disk_usage(self) -> CollectorResult[str]:
        """Raw ``df -h`` output for all mounted filesystems."""
        result = await self._run_command(["df", "-h"])
        if not result.ok:
            logger.warning("Failed to get disk usage", error=str(result.failure))
        return result

    async def directory_size_kb(self, path: str | Path) -> int | None:
        result = await self._run_command(["du", "-sk", str(path)])
        if not result.ok or not result.value:
            return None
        try:
            return int(result.value.split()[0])
        except (ValueError, IndexError):
            logger.warning("Unexpected du output", path=str(path), output=result.value)
            return None

    async def directory_sizes(self) -> DirectorySizes:
        """Sizes of the deployment tree and its database, log and report directories."""
        project = Path(self.config.subgraph_path)
        return DirectorySizes(
            project_path=str(project),
            total_kb=await self.directory_size_kb(project),
            database_kb=await self.directory_size_kb(project / "data" / "postgres"),
            logs_kb=await self.directory_size_kb(self.config.logs_directory),
            reports_kb=await self.directory_size_kb(self.config.reports_directory),
        )

    async def error_log(self) -> CollectorResult[ErrorLogScan]:
        """Scan the indexer container's recent output for error and retry lines."""
        docker = self.config.docker
        result = await self._run_command(
            ["docker", "logs", "--tail", str(docker.log_tail), docker.indexer_container],
            merge_stderr=True,
        )
        if not result.ok:
            logger.warning("Failed to read indexer logs", container=docker.indexer_container, error=str(result.failure))
            return CollectorResult(failure=result.failure)

        return CollectorResult.success(
            scan_log_lines(
                (result.value or "").split("\n"),
                error_marker=docker.error_marker,
                retry_marker=docker.retry_marker,
                max_errors=docker.max_recent_errors,
            )
        )


def scan_log_lines(
    lines: list[str],
    error_marker: str,
    retry_marker: str,
    max_errors: int = 10,
) -> ErrorLogScan:
    """Keep the most recent error lines and count retry lines.

    Marker matching is case sensitive for errors (graph-node prints ``ERRO``)
    and case insensitive for retries.
    """
    errors = [line.strip() for line in lines if error_marker in line]
    retry_lower = retry_marker.lower()
    retry_count = sum(1 for line in lines if retry_lower in line.lower())

    recent = errors[-max_errors:] if max_errors > 0 else []
    last_error_time = None
    if recent:
        parsed = parse_log_timestamp(recent[-1])
        if parsed is not None:
            last_error_time = parsed.strftime("%Y-%m-%d %H:%M:%S")

    return ErrorLogScan(errors=tuple(recent), last_error_time=last_error_time, retry_count=retry_count)
