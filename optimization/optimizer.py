"""
BoundaryOptimizer — single entry point for every search and validation.

Binds a ``SystemConfig`` to the stand-alone functions in this package and
in ``validation`` so callers can hold one object.  Each method validates
its arguments up front, then delegates.

Usage::

    optimizer = BoundaryOptimizer()
    boundaries = optimizer.find_optimal_boundaries(samples, 1.5, 5)
    cv = optimizer.k_fold_cross_validation(samples, k=5, seed=42)
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from ..config_structured import CrossValidationMethod, MLOptimizationConfig, SystemConfig, get_config
from ..data.samples import PriceMovement
from ..errors import InsufficientDataError, InvalidArgumentError
from ..regime.dynamic_boundaries import DynamicBoundaryWindow, find_dynamic_boundaries
from ..validation.boundary_validator import validate_boundaries
from ..validation.expanding_window import ExpandingWindowValidationStrategy
from ..validation.kfold import KFoldValidationStrategy
from ..validation.methods import OptimizationMethod, SlidingWindowMethod
from ..validation.results import (
    CrossValidationResult,
    TimeSeriesCrossValidationResult,
    ValidationResult,
)
from ..validation.rolling_window import RollingWindowValidationStrategy
from ..validation.service import CrossValidationService
from .clustering import optimize_with_clustering
from .combined import run_combined_optimization
from .gradient_search import optimize_with_gradient_search
from .pareto import optimize_for_multiple_objectives
from .sliding_window import find_optimal_boundaries
from .splits import optimize_with_decision_tree
from .types import (
    ClusterResult,
    CombinedOptimizationResult,
    OptimalBoundary,
    OptimalRange,
    OptimizationObjective,
    ParetoSolution,
)

logger = logging.getLogger(__name__)


def _check_open_fraction(name: str, value: float) -> None:
    if not 0.0 < value < 1.0:
        raise InvalidArgumentError(name, value, "must lie strictly between 0 and 1")


class BoundaryOptimizer:
    """Facade over the boundary searches and cross-validation schemes."""

    def __init__(self, config: Optional[SystemConfig] = None) -> None:
        self.config = config or get_config()

    @property
    def _random_seed(self) -> Optional[int]:
        return self.config.ml_optimization.random_seed

    # ── Searches ─────────────────────────────────────────────────────

    def find_optimal_boundaries(
        self, samples: Sequence[PriceMovement], target_atr_move: float, max_ranges: int
    ) -> List[OptimalBoundary]:
        return find_optimal_boundaries(
            samples, target_atr_move, max_ranges, max_ranges_ceiling=self.config.optimization.max_ranges
        )

    def optimize_with_decision_tree(self, samples: Sequence[PriceMovement], max_depth: int) -> List[float]:
        return optimize_with_decision_tree(
            samples,
            max_depth,
            max_depth_ceiling=self.config.optimization.max_depth,
            random_state=self._random_seed,
        )

    def optimize_with_clustering(
        self, samples: Sequence[PriceMovement], n_clusters: Optional[int] = None
    ) -> List[ClusterResult]:
        k = self.config.optimization.default_cluster_count if n_clusters is None else n_clusters
        return optimize_with_clustering(
            samples,
            k,
            max_clusters=self.config.optimization.max_clusters,
            random_state=self._random_seed,
        )

    def optimize_with_gradient_search(
        self, samples: Sequence[PriceMovement], objective: OptimizationObjective
    ) -> OptimalRange:
        opt = self.config.optimization
        return optimize_with_gradient_search(
            samples,
            objective,
            max_iterations=opt.max_iterations,
            convergence_threshold=opt.convergence_threshold,
            stagnation_window=opt.stagnation_window,
        )

    def run_combined_optimization(
        self, samples: Sequence[PriceMovement], config: Optional[MLOptimizationConfig] = None
    ) -> CombinedOptimizationResult:
        return run_combined_optimization(
            samples, config or self.config.ml_optimization, self.config.optimization
        )

    def optimize_for_multiple_objectives(
        self, samples: Sequence[PriceMovement], objectives: Sequence[OptimizationObjective]
    ) -> List[ParetoSolution]:
        return optimize_for_multiple_objectives(
            samples, objectives, quantiles=self.config.optimization.quantiles
        )

    def find_dynamic_boundaries(
        self,
        samples: Sequence[PriceMovement],
        window_size: Optional[int] = None,
        step_size: Optional[int] = None,
    ) -> List[DynamicBoundaryWindow]:
        dyn = self.config.dynamic
        return find_dynamic_boundaries(
            samples,
            window_size=dyn.window_size if window_size is None else window_size,
            step_size=dyn.step_size if step_size is None else step_size,
            target_atr_move=dyn.target_atr_move,
            regime_change_ratio=dyn.regime_change_ratio,
        )

    # ── Validation ───────────────────────────────────────────────────

    def validate_boundaries(
        self, boundaries: Sequence[OptimalBoundary], test_samples: Sequence[PriceMovement]
    ) -> ValidationResult:
        opt = self.config.optimization
        return validate_boundaries(
            boundaries,
            test_samples,
            degradation_threshold=opt.performance_degradation_threshold,
            overfitting_degradation=opt.overfitting_degradation,
        )

    def _service(self) -> CrossValidationService:
        return CrossValidationService(self.config.cross_validation, self.config.ml_optimization)

    @staticmethod
    def _require_samples(samples: Sequence[PriceMovement], operation: str) -> None:
        if not samples:
            raise InsufficientDataError(operation, required=1, actual=0)

    def k_fold_cross_validation(
        self,
        samples: Sequence[PriceMovement],
        k: int = 5,
        seed: Optional[int] = None,
        method: Optional[OptimizationMethod] = None,
    ) -> CrossValidationResult:
        """Random k-fold CV; ``seed=None`` shuffles without a fixed seed."""
        self._require_samples(samples, "k-fold cross-validation")
        if k <= 1:
            raise InvalidArgumentError("k", k, "must be greater than 1")
        cv = replace(
            self.config.cross_validation,
            k_folds=k,
            strategy=CrossValidationMethod.KFOLD,
            random_seed=seed,
        )
        strategy = KFoldValidationStrategy(cv, self.config.ml_optimization)
        return self._service().perform(samples, method or SlidingWindowMethod(), strategy)

    def time_series_k_fold(
        self,
        samples: Sequence[PriceMovement],
        k: int = 5,
        method: Optional[OptimizationMethod] = None,
    ) -> TimeSeriesCrossValidationResult:
        """Expanding-window CV starting at 30% of the data with steps of ``1/k``."""
        self._require_samples(samples, "time-series cross-validation")
        if k <= 1:
            raise InvalidArgumentError("k", k, "must be greater than 1")
        return self.expanding_window_validation(samples, 0.3, 1.0 / k, method)

    def expanding_window_validation(
        self,
        samples: Sequence[PriceMovement],
        initial_size: float,
        step_size: float,
        method: Optional[OptimizationMethod] = None,
    ) -> TimeSeriesCrossValidationResult:
        self._require_samples(samples, "expanding window validation")
        _check_open_fraction("initial_size", initial_size)
        _check_open_fraction("step_size", step_size)
        cv = replace(
            self.config.cross_validation,
            strategy=CrossValidationMethod.TIME_SERIES_EXPANDING,
            min_train_window=initial_size,
            step_size=step_size,
        )
        strategy = ExpandingWindowValidationStrategy(cv, self.config.ml_optimization)
        return self._service().perform(samples, method or SlidingWindowMethod(), strategy)

    def rolling_window_validation(
        self,
        samples: Sequence[PriceMovement],
        window_size: float,
        step_size: float,
        method: Optional[OptimizationMethod] = None,
    ) -> TimeSeriesCrossValidationResult:
        self._require_samples(samples, "rolling window validation")
        _check_open_fraction("window_size", window_size)
        _check_open_fraction("step_size", step_size)
        cv = replace(
            self.config.cross_validation,
            strategy=CrossValidationMethod.TIME_SERIES_ROLLING,
            rolling_window=window_size,
            step_size=step_size,
        )
        strategy = RollingWindowValidationStrategy(cv, self.config.ml_optimization)
        return self._service().perform(samples, method or SlidingWindowMethod(), strategy)
