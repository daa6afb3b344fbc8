"""
Result value objects for boundary validation and cross-validation.

Every object is created fresh per call and never mutated afterwards; the
cross-validation service adds metrics through ``dataclasses.replace``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from ..config_structured import CrossValidationConfig
from ..optimization.types import OptimalBoundary


@dataclass(frozen=True)
class BoundaryValidation:
    """In-sample versus out-of-sample hit rate for one boundary."""

    boundary: OptimalBoundary
    in_sample_hit_rate: float
    out_of_sample_hit_rate: float
    degradation: float
    is_stable: bool
    stability_score: float


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate out-of-sample check of a fixed boundary set.

    ``performance_degradation`` is ``|in - out| / in`` on the sqrt-count
    weighted aggregates (1.0 when the in-sample aggregate is zero).
    """

    in_sample_performance: float = 0.0
    out_of_sample_performance: float = 0.0
    performance_degradation: float = 1.0
    boundary_performance: Tuple[BoundaryValidation, ...] = ()
    is_overfitted: bool = True
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def stable_boundaries(self) -> Tuple[BoundaryValidation, ...]:
        return tuple(b for b in self.boundary_performance if b.is_stable)


@dataclass(frozen=True)
class CrossValidationFold:
    """One train/validate round.

    ``date_range`` is ``(first training timestamp, last validation
    timestamp)`` for time-series folds and ``None`` for random folds.
    """

    fold_index: int
    training_score: float
    validation_score: float
    boundaries: Tuple[OptimalBoundary, ...]
    validation_result: ValidationResult
    training_sample_count: int
    validation_sample_count: int
    date_range: Optional[Tuple[datetime, datetime]] = None


@dataclass(frozen=True)
class CrossValidationResult:
    fold_results: Tuple[CrossValidationFold, ...] = ()
    fold_scores: Tuple[float, ...] = ()
    mean_score: float = 0.0
    std_dev_score: float = 0.0
    confidence_interval: Tuple[float, float] = (0.0, 0.0)
    is_overfitting: bool = False
    config: Optional[CrossValidationConfig] = None
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def fold_count(self) -> int:
        return len(self.fold_results)

    @property
    def best_fold(self) -> Optional[CrossValidationFold]:
        if not self.fold_results:
            return None
        return max(self.fold_results, key=lambda f: f.validation_score)


@dataclass(frozen=True)
class TimeSeriesCrossValidationResult(CrossValidationResult):
    """Cross-validation over chronologically ordered folds.

    ``temporal_degradation`` is the negated least-squares slope of the
    validation scores over fold index, floored at zero.
    """

    is_stationary: bool = False
    stationarity_tests: Dict[str, float] = field(default_factory=dict)
    temporal_degradation: float = 0.0
    optimal_lookback: timedelta = timedelta(days=30)
