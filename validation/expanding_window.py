"""
Expanding-window time-series cross-validation.

The training window always starts at the first sample and grows by
``step_size`` of the data each round; validation uses the segment of the
same length that immediately follows it.
"""
from __future__ import annotations

from typing import Iterator, List

from ..config import STATIONARITY_MAX_DEGRADATION, STATIONARITY_STD_EXPANDING
from ..data.samples import PriceMovement
from .base import Split, TimeSeriesValidationStrategy

MIN_TRAIN_SAMPLES = 10


def expanding_splits(n: int, initial_fraction: float, step_fraction: float) -> List[tuple]:
    """``(train_end, test_end)`` index pairs for an expanding scheme over *n* samples."""
    train_size = int(n * initial_fraction)
    if train_size < MIN_TRAIN_SAMPLES:
        train_size = min(MIN_TRAIN_SAMPLES, n // 2)
    step = max(1, int(n * step_fraction))
    pairs = []
    train_end = max(train_size, 1)
    while train_end + step <= n:
        pairs.append((train_end, train_end + step))
        train_end += step
    return pairs


class ExpandingWindowValidationStrategy(TimeSeriesValidationStrategy):
    """Growing training history, fixed-size look-ahead validation."""

    stationarity_std = STATIONARITY_STD_EXPANDING

    @property
    def name(self) -> str:
        return "Expanding Window Cross-Validation"

    def _is_stationary(self, std: float, degradation: float) -> bool:
        return std < self.stationarity_std and degradation < STATIONARITY_MAX_DEGRADATION

    def _windows(self, ordered: List[PriceMovement]) -> Iterator[Split]:
        for train_end, test_end in expanding_splits(
            len(ordered), self.config.min_train_window, self.config.step_size
        ):
            yield ordered[:train_end], ordered[train_end:test_end]
