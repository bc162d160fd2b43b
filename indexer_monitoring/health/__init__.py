"""Health assessment: progress, disk pressure and stuck detection."""

from .disk import DiskEvaluator, classify_usage, parse_df_output
from .progress import calculate_progress
from .stuck import Checkpoint, FileCheckpointStore, MemoryCheckpointStore, StuckDetector, build_health

__all__ = [
    "Checkpoint",
    "DiskEvaluator",
    "FileCheckpointStore",
    "MemoryCheckpointStore",
    "StuckDetector",
    "build_health",
    "calculate_progress",
    "classify_usage",
    "parse_df_output",
]
