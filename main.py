"""Main entry point for the indexer monitoring service."""

import argparse
import asyncio
import sys

import structlog

from indexer_monitoring.collectors.chain import ChainCollector
from indexer_monitoring.collectors.stream import ChainHeightStream
from indexer_monitoring.config import describe_config, load_config
from indexer_monitoring.errors import ConfigError
from indexer_monitoring.logging_setup import configure_logging
from indexer_monitoring.reporting.renderer import render_text_report
from indexer_monitoring.runner import generate_report, make_clock
from indexer_monitoring.scheduler.monitor_scheduler import MonitoringScheduler

logger = structlog.get_logger(__name__)


async def start_scheduler(config) -> int:
    clock = make_clock(config)
    scheduler = MonitoringScheduler(config, run_report=lambda: generate_report(config, clock), clock=clock)
    scheduler.install_signal_handlers()
    expired = await scheduler.run_forever()
    logger.info("Monitoring scheduler exited", lifetime_expired=expired)
    return 0


async def run_single_report(config) -> int:
    report = await generate_report(config, make_clock(config))
    print(render_text_report(report))
    return 0 if report.health.is_healthy else 1


async def watch_chain(config, interval: float, count: int | None) -> int:
    clock = make_clock(config)
    seen = 0
    async with ChainCollector(config) as collector:
        async with ChainHeightStream(collector, interval_seconds=interval) as stream:
            async for height in stream:
                print(f"{clock().strftime('%Y-%m-%d %H:%M:%S')} block {height:,}")
                seen += 1
                if count is not None and seen >= count:
                    break
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Subgraph indexer monitoring")
    parser.add_argument("--config", help="Path to the YAML configuration file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Run the scheduler until its lifetime expires")
    subparsers.add_parser("run", help="Generate one report now and print it")
    subparsers.add_parser("config", help="Show the effective configuration")

    watch = subparsers.add_parser("watch-chain", help="Print new chain heads as they appear")
    watch.add_argument("--interval", type=float, default=12.0, help="Polling interval in seconds (default: 12)")
    watch.add_argument("--count", type=int, help="Stop after this many heights")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.command == "config":
        print(describe_config(config))
        return 0

    configure_logging(config.log_level, config.logs_directory, make_clock(config))

    if args.command == "start":
        return asyncio.run(start_scheduler(config))
    if args.command == "run":
        return asyncio.run(run_single_report(config))
    try:
        return asyncio.run(watch_chain(config, args.interval, args.count))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
