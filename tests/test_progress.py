from __future__ import annotations

import math

import pytest

from indexer_monitoring.health.progress import calculate_progress

ORIGIN = 10_000_835


def test_progress_halfway() -> None:
    progress = calculate_progress(15_000_835, 12_500_835, ORIGIN)
    assert progress is not None
    assert progress.total_units == 5_000_000
    assert progress.scanned_units == 2_500_000
    assert progress.progress_percent == 50.00
    assert progress.remaining_units == 2_500_000


@pytest.mark.parametrize(
    ("chain", "indexed", "expected"),
    [
        (ORIGIN + 3, ORIGIN + 1, 33.33),
        (ORIGIN + 3, ORIGIN + 2, 66.67),
        (ORIGIN + 1000, ORIGIN + 1000, 100.0),
        (ORIGIN + 1000, ORIGIN, 0.0),
    ],
)
def test_progress_rounds_to_two_decimals(chain: int, indexed: int, expected: float) -> None:
    progress = calculate_progress(chain, indexed, ORIGIN)
    assert progress is not None
    assert progress.progress_percent == expected
    assert progress.remaining_units == chain - indexed


@pytest.mark.parametrize(("chain", "indexed"), [(None, ORIGIN + 5), (ORIGIN + 5, None), (None, None)])
def test_progress_unknown_when_height_missing(chain: int | None, indexed: int | None) -> None:
    assert calculate_progress(chain, indexed, ORIGIN) is None


def test_progress_is_not_clamped() -> None:
    progress = calculate_progress(ORIGIN + 100, ORIGIN + 150, ORIGIN)
    assert progress is not None
    assert progress.progress_percent == 150.0
    assert progress.remaining_units == -50


def test_progress_chain_at_origin_is_undefined() -> None:
    progress = calculate_progress(ORIGIN, ORIGIN, ORIGIN)
    assert progress is not None
    assert progress.total_units == 0
    assert math.isnan(progress.progress_percent)
    assert progress.remaining_units == 0


def test_progress_indexer_past_origin_with_chain_at_origin_is_infinite() -> None:
    progress = calculate_progress(ORIGIN, ORIGIN + 5, ORIGIN)
    assert progress is not None
    assert progress.progress_percent == math.inf
    assert progress.remaining_units == -5
