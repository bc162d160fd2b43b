"""Collectors for chain, indexer, database, container and disk metrics."""

from .base import CollectorFailure, CollectorResult, ErrorLogScan, FailureReason, MetricSource
from .chain import ChainCollector
from .indexer import IndexerCollectors
from .shell import ShellCollector
from .stream import ChainHeightStream

__all__ = [
    "ChainCollector",
    "ChainHeightStream",
    "CollectorFailure",
    "CollectorResult",
    "ErrorLogScan",
    "FailureReason",
    "IndexerCollectors",
    "MetricSource",
    "ShellCollector",
]
