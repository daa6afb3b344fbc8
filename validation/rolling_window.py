"""
Rolling-window time-series cross-validation.

Training and validation windows keep a fixed size and slide forward by
``step_size`` of the data, so every fold trains on the same amount of
history.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Sequence

from ..config import STATIONARITY_MAX_DEGRADATION_ROLLING, STATIONARITY_STD_ROLLING
from ..data.samples import PriceMovement
from .base import Split, TimeSeriesValidationStrategy
from .metrics import window_consistency

MIN_TRAIN_SAMPLES = 10


def rolling_splits(n: int, window_fraction: float, step_fraction: float) -> List[tuple]:
    """``(train_start, train_end, test_end)`` index triples over *n* samples."""
    train_size = int(n * window_fraction)
    if train_size < MIN_TRAIN_SAMPLES:
        train_size = min(MIN_TRAIN_SAMPLES, n // 3)
    train_size = max(train_size, 1)
    step = max(1, int(n * step_fraction))
    triples = []
    start = 0
    while start + train_size + step <= n:
        triples.append((start, start + train_size, start + train_size + step))
        start += step
    return triples


class RollingWindowValidationStrategy(TimeSeriesValidationStrategy):
    """Constant-size training window sliding through time."""

    stationarity_std = STATIONARITY_STD_ROLLING

    @property
    def name(self) -> str:
        return "Rolling Window Cross-Validation"

    def _is_stationary(self, std: float, degradation: float) -> bool:
        return std < self.stationarity_std and degradation < STATIONARITY_MAX_DEGRADATION_ROLLING

    def _stationarity_tests(self, scores, std, degradation) -> Dict[str, float]:
        tests = super()._stationarity_tests(scores, std, degradation)
        tests["WindowConsistency"] = window_consistency(scores)
        return tests

    def _extra_metrics(self, scores: Sequence[float]) -> Dict[str, float]:
        return {"WindowConsistency": window_consistency(scores)}

    def _windows(self, ordered: List[PriceMovement]) -> Iterator[Split]:
        for start, train_end, test_end in rolling_splits(
            len(ordered), self.config.rolling_window, self.config.step_size
        ):
            yield ordered[start:train_end], ordered[train_end:test_end]
