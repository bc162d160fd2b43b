from __future__ import annotations

import sys

import pytest

from indexer_monitoring.collectors.base import CollectorResult, FailureReason
from indexer_monitoring.collectors.shell import ShellCollector, build_stats_query, scan_log_lines
from indexer_monitoring.config import MonitoringConfig


@pytest.mark.asyncio
async def test_run_command_returns_stripped_stdout() -> None:
    collector = ShellCollector(MonitoringConfig())
    result = await collector._run_command([sys.executable, "-c", "print('  hello  ')"])
    assert result.ok
    assert result.value == "hello"


@pytest.mark.asyncio
async def test_run_command_nonzero_exit_is_failure() -> None:
    collector = ShellCollector(MonitoringConfig())
    result = await collector._run_command(
        [sys.executable, "-c", "import sys; sys.stderr.write('no such container'); sys.exit(3)"]
    )
    assert result.failure is not None
    assert result.failure.reason is FailureReason.COMMAND_FAILED
    assert "no such container" in result.failure.detail


@pytest.mark.asyncio
async def test_run_command_missing_binary_is_failure() -> None:
    collector = ShellCollector(MonitoringConfig())
    result = await collector._run_command(["definitely-not-installed-binary-xyz", "--version"])
    assert result.failure is not None
    assert result.failure.reason is FailureReason.BINARY_MISSING


class _ScriptedShell(ShellCollector):
    """Returns canned output per executable instead of running commands."""

    def __init__(self, outputs: dict[str, CollectorResult[str]]) -> None:
        super().__init__(MonitoringConfig())
        self.outputs = outputs
        self.commands: list[list[str]] = []

    async def _run_command(self, command: list[str], merge_stderr: bool = False) -> CollectorResult[str]:
        self.commands.append(command)
        return self.outputs[command[0]]


@pytest.mark.asyncio
async def test_database_stats_splits_rows() -> None:
    shell = _ScriptedShell({"docker": CollectorResult.success("chain1.blocks|120\n\nsgd1.pair|4\n")})
    result = await shell.database_stats()
    assert result.value == ["chain1.blocks|120", "sgd1.pair|4"]
    assert shell.commands[0][:3] == ["docker", "exec", "uniswap-v2-monitor-subgraph_postgres_1"]


@pytest.mark.asyncio
async def test_database_stats_failure_keeps_reason() -> None:
    shell = _ScriptedShell({"docker": CollectorResult.failed(FailureReason.BINARY_MISSING, "docker not found")})
    result = await shell.database_stats()
    assert result.value_or([]) == []
    assert result.failure is not None
    assert result.failure.reason is FailureReason.BINARY_MISSING


@pytest.mark.asyncio
async def test_directory_sizes_parses_du() -> None:
    shell = _ScriptedShell({"du": CollectorResult.success("2048\t/some/path")})
    sizes = await shell.directory_sizes()
    assert sizes.total_kb == 2048
    assert sizes.database_kb == 2048
    assert [c[:2] for c in shell.commands] == [["du", "-sk"]] * 4


@pytest.mark.asyncio
async def test_error_log_scans_container_output() -> None:
    log = "\n".join([
        "May 01 06:58:00.100 INFO Syncing, block: 12500000",
        "May 01 06:59:00.200 ERRO Trying again after eth_getLogs RPC call failed (attempt #3) with result Err(timeout), retry_delay_s: 30",
        "May 01 06:59:30.300 WARN Retrying request",
    ])
    shell = _ScriptedShell({"docker": CollectorResult.success(log)})
    result = await shell.error_log()
    assert result.value is not None
    assert len(result.value.errors) == 1
    assert result.value.retry_count == 2
    assert result.value.last_error_time is not None
    assert result.value.last_error_time.endswith("05-01 06:59:00")
    assert shell.commands[0] == ["docker", "logs", "--tail", "1000", "uniswap-v2-monitor-subgraph_graph-node_1"]


def test_scan_log_lines_keeps_most_recent_errors() -> None:
    lines = [f"2024-05-01T06:{i:02d}:00.000Z ERRO failure {i}" for i in range(15)]
    scan = scan_log_lines(lines, error_marker="ERRO", retry_marker="retry", max_errors=10)
    assert len(scan.errors) == 10
    assert scan.errors[0].endswith("failure 5")
    assert scan.last_error_time == "2024-05-01 06:14:00"
    assert scan.retry_count == 0


def test_scan_log_lines_without_errors() -> None:
    scan = scan_log_lines(["INFO all good"], error_marker="ERRO", retry_marker="retry")
    assert scan.errors == ()
    assert scan.last_error_time is None


def test_build_stats_query_covers_seven_tables() -> None:
    query = build_stats_query("chain1", "sgd1")
    assert query.count("UNION ALL") == 6
    for table in ("chain1.blocks", "sgd1.pair", "sgd1.swap", "sgd1.mint", "sgd1.burn", "sgd1.pair_created", "sgd1.token"):
        assert f"FROM {table}" in query
