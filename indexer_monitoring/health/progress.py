"""Indexing progress relative to the origin block."""

from __future__ import annotations

import math

from ..models import ProgressInfo


def _percent(scanned_units: int, total_units: int) -> float:
    if total_units == 0:
        # Chain head at the origin: the ratio is undefined, not an error.
        return math.nan if scanned_units == 0 else math.copysign(math.inf, scanned_units)
    return round(scanned_units / total_units * 100, 2)


def calculate_progress(
    chain_height: int | None,
    indexed_height: int | None,
    origin_height: int,
) -> ProgressInfo | None:
    """Percentage of blocks between origin and chain head the indexer has covered.

    Returns None when either height is unknown. The ratio is not clamped, so an
    indexer ahead of the observed head reports more than 100%. A chain head
    equal to the origin gives ``nan`` (or ``inf`` when the indexer has moved)
    instead of raising, so the rest of the report is still produced.
    """
    if chain_height is None or indexed_height is None:
        return None

    total_units = chain_height - origin_height
    scanned_units = indexed_height - origin_height

    return ProgressInfo(
        total_units=total_units,
        scanned_units=scanned_units,
        progress_percent=_percent(scanned_units, total_units),
        remaining_units=total_units - scanned_units,
    )
