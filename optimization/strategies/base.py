"""
Base class for pluggable boundary strategies.

A strategy validates its training data, runs its search and returns a
``StrategyResult``.  Validation failures and strategy errors are reported
in the result rather than raised, so one strategy cannot abort a combined
run.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from ...config_structured import MLOptimizationConfig, OptimizationConfig, get_config
from ...data.samples import PriceMovement
from ...errors import BoundaryEngineError
from ..objectives import average_hit_rate, weighted_validation_score
from ..types import OptimalBoundary, StrategyResult, TrainingDataValidation

logger = logging.getLogger(__name__)

MIN_UNIQUE_VALUES = 3
MIN_BOUNDARY_HIT_RATE = 0.1


def parameter(params: Mapping[str, Any], key: str, default, kind=int):
    """Typed lookup in ``algorithm_parameters``; wrong types fall back to *default*."""
    value = params.get(key)
    if value is None or isinstance(value, bool):
        return default
    if kind is int and isinstance(value, (int, np.integer)):
        return int(value)
    if kind is float and isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)
    logger.warning("Ignoring algorithm parameter %s=%r (expected %s)", key, value, kind.__name__)
    return default


def imbalance_ratio(large: int, small: int) -> float:
    if max(large, small) == 0:
        return 0.0
    return min(large, small) / max(large, small)


class BoundaryStrategy(ABC):
    """Base class for all boundary strategies."""

    def __init__(
        self,
        ml_config: Optional[MLOptimizationConfig] = None,
        optimization_config: Optional[OptimizationConfig] = None,
    ) -> None:
        self.ml_config = ml_config or MLOptimizationConfig()
        self.optimization_config = optimization_config or get_config().optimization

    @property
    @abstractmethod
    def name(self) -> str:
        """Key used in ``CombinedOptimizationResult.method_results``."""

    @property
    @abstractmethod
    def is_enabled(self) -> bool:
        ...

    @property
    @abstractmethod
    def minimum_sample_size(self) -> int:
        ...

    @property
    def recommended_sample_size(self) -> int:
        return self.minimum_sample_size * 3

    @abstractmethod
    def parameters(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _execute(
        self,
        samples: Sequence[PriceMovement],
        target: float,
        diagnostics: List[str],
    ) -> List[OptimalBoundary]:
        ...

    def _validate_specific(
        self,
        samples: Sequence[PriceMovement],
        target: float,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        """Hook for strategy-specific checks."""

    # ── Public API ───────────────────────────────────────────────────

    def validate(self, samples: Sequence[PriceMovement]) -> TrainingDataValidation:
        errors: List[str] = []
        warnings: List[str] = []
        if not samples:
            errors.append("Training data cannot be empty")
        else:
            n = len(samples)
            if n < self.minimum_sample_size:
                errors.append(
                    f"Insufficient training data. Required: {self.minimum_sample_size}, Actual: {n}"
                )
            elif n < self.recommended_sample_size:
                warnings.append(
                    f"Training data size below recommended threshold. "
                    f"Recommended: {self.recommended_sample_size}, Actual: {n}"
                )
            unique = len({s.measurement_value for s in samples})
            if unique < MIN_UNIQUE_VALUES:
                errors.append(
                    f"Training data must contain at least {MIN_UNIQUE_VALUES} unique "
                    f"measurement values, got {unique}"
                )
            self._validate_specific(samples, self.ml_config.target_atr_move, errors, warnings)
        return TrainingDataValidation(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            recommended_sample_size=self.recommended_sample_size,
        )

    def optimize(self, samples: Sequence[PriceMovement]) -> StrategyResult:
        """Validate, then search; never raises for domain failures."""
        start = time.perf_counter()
        validation = self.validate(samples)
        if not validation.is_valid:
            logger.warning("%s skipped: %s", self.name, "; ".join(validation.errors))
            return StrategyResult(
                strategy_name=self.name,
                success=False,
                errors=validation.errors,
                warnings=validation.warnings,
                diagnostics={"Parameters": self.parameters()},
                execution_time=time.perf_counter() - start,
            )
        for w in validation.warnings:
            logger.info("%s: %s", self.name, w)

        notes: List[str] = list(validation.warnings)
        target = self.ml_config.target_atr_move
        try:
            boundaries = self._execute(samples, target, notes)
        except (BoundaryEngineError, ValueError, ArithmeticError) as exc:
            logger.warning("%s failed: %s", self.name, exc)
            return StrategyResult(
                strategy_name=self.name,
                success=False,
                errors=(str(exc),),
                warnings=validation.warnings,
                diagnostics={"Notes": notes, "Parameters": self.parameters()},
                execution_time=time.perf_counter() - start,
            )

        return StrategyResult(
            strategy_name=self.name,
            success=True,
            boundaries=tuple(boundaries),
            diagnostics={
                "Notes": notes,
                "Parameters": self.parameters(),
                "TrainingScore": self.score(boundaries, samples, target),
            },
            warnings=validation.warnings,
            execution_time=time.perf_counter() - start,
        )

    def evaluate(
        self,
        boundaries: Sequence[OptimalBoundary],
        samples: Sequence[PriceMovement],
        target: Optional[float] = None,
    ) -> float:
        """sqrt(count)-weighted held-out hit rate used to rank strategies."""
        target = self.ml_config.target_atr_move if target is None else target
        return weighted_validation_score(boundaries, samples, target)

    def score(
        self,
        boundaries: Sequence[OptimalBoundary],
        samples: Sequence[PriceMovement],
        target: float,
    ) -> float:
        """In-sample score: plain mean hit rate over populated boundaries."""
        return average_hit_rate(boundaries, samples, target)
