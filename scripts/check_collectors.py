#!/usr/bin/env python3
"""Standalone smoke test: query every collector once and print what it returned."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import indexer_monitoring
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from indexer_monitoring.collectors.indexer import IndexerCollectors
from indexer_monitoring.config import load_config

# Configure logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(20),
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)


def _show(title, result):
    if result.ok:
        print(f"{title}: {result.value}")
    else:
        print(f"{title}: FAILED ({result.failure})")
    return result.ok


async def check_all(config_path):
    config = load_config(config_path)
    failures = 0

    async with IndexerCollectors(config) as source:
        print("1. Chain height")
        failures += not _show("   current block", await source.chain_height())

        print("2. Indexed height")
        failures += not _show("   indexed block", await source.indexed_height())

        print("3. Database size")
        failures += not _show("   size", await source.database_size())

        print("4. Table counts")
        stats = await source.database_stats()
        if _show("   rows", stats) and stats.value:
            for row in stats.value:
                print(f"     {row}")
        else:
            failures += 1

        print("5. Containers")
        failures += not _show("   docker ps", await source.container_status())

        print("6. Disk usage")
        failures += not _show("   df", await source.disk_usage())

        print("7. Indexer log")
        scan = await source.error_log()
        if _show("   scan", scan) and scan.value:
            print(f"     errors: {len(scan.value.errors)}, retries: {scan.value.retry_count}")
        else:
            failures += 1

    print(f"\n{failures} collector(s) failed")
    return failures == 0


def main():
    parser = argparse.ArgumentParser(description="Query every collector once")
    parser.add_argument("--config", help="Path to the YAML configuration file")
    args = parser.parse_args()

    success = asyncio.run(check_all(args.config))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
