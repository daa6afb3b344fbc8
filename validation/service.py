"""
Cross-validation service: pick a validation scheme from config, run it,
and enrich the result with bias/variance and data-quality metrics.

Usage::

    service = CrossValidationService(CrossValidationConfig(k_folds=5, random_seed=42))
    result = service.perform(samples)
    result.metrics["OverfittingRisk"]
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional, Sequence

import numpy as np

from ..config_structured import CrossValidationConfig, CrossValidationMethod, MLOptimizationConfig
from ..data.samples import PriceMovement
from ..errors import (
    BoundaryEngineError,
    ConvergenceFailureReason,
    InsufficientDataError,
    OptimizationConvergenceError,
)
from ..optimization.types import OptimizationTarget
from ..utils.stats import sample_std
from .base import ValidationStrategy
from .expanding_window import ExpandingWindowValidationStrategy
from .kfold import KFoldValidationStrategy
from .methods import OptimizationMethod, SlidingWindowMethod
from .results import CrossValidationResult
from .rolling_window import RollingWindowValidationStrategy

logger = logging.getLogger(__name__)

_STRATEGIES = {
    CrossValidationMethod.KFOLD: KFoldValidationStrategy,
    CrossValidationMethod.TIME_SERIES_EXPANDING: ExpandingWindowValidationStrategy,
    CrossValidationMethod.TIME_SERIES_ROLLING: RollingWindowValidationStrategy,
}

_SCORE_FLOOR = 0.001


def create_validation_strategy(
    config: CrossValidationConfig, ml_config: Optional[MLOptimizationConfig] = None
) -> ValidationStrategy:
    """Instantiate the strategy named by ``config.strategy``."""
    return _STRATEGIES[config.strategy](config, ml_config)


def additional_metrics(
    result: CrossValidationResult, samples: Sequence[PriceMovement]
) -> Dict[str, float]:
    """Bias/variance, stability, sample-efficiency and data-quality metrics."""
    metrics: Dict[str, float] = {}
    folds = result.fold_results
    if folds:
        train = [f.training_score for f in folds]
        val = [f.validation_score for f in folds]
        train_mean = float(np.mean(train))
        val_mean = float(np.mean(val))
        gap = train_mean - val_mean
        stability = 1.0 - result.std_dev_score / max(abs(result.mean_score), _SCORE_FLOOR)
        avg_train_size = float(np.mean([f.training_sample_count for f in folds]))
        metrics.update({
            "TrainMean": train_mean,
            "TrainStdDev": sample_std(train),
            "ValidationMean": val_mean,
            "ValidationStdDev": sample_std(val),
            "BiasVarianceGap": gap,
            "OverfittingRisk": max(0.0, gap / max(train_mean, _SCORE_FLOOR)),
            "CVStability": min(1.0, max(0.0, stability)),
            "AvgTrainSampleSize": avg_train_size,
            "AvgValSampleSize": float(np.mean([f.validation_sample_count for f in folds])),
            "SampleEfficiency": result.mean_score / max(avg_train_size, 1.0),
        })
    unique = len({s.measurement_value for s in samples})
    metrics["DataSize"] = float(len(samples))
    metrics["UniqueValues"] = float(unique)
    metrics["DataSparsity"] = unique / len(samples) if samples else 0.0
    return metrics


class CrossValidationService:
    """Runs a configured cross-validation scheme against an optimization method."""

    def __init__(
        self,
        config: Optional[CrossValidationConfig] = None,
        ml_config: Optional[MLOptimizationConfig] = None,
    ) -> None:
        self.config = config or CrossValidationConfig()
        self.ml_config = ml_config or MLOptimizationConfig()

    def perform(
        self,
        samples: Sequence[PriceMovement],
        method: Optional[OptimizationMethod] = None,
        strategy: Optional[ValidationStrategy] = None,
    ) -> CrossValidationResult:
        """Validate *method* (sliding-window search by default).

        Raises
        ------
        InsufficientDataError
            Fewer samples than the strategy's fold count.
        OptimizationConvergenceError
            Any non-engine exception raised inside the strategy, wrapped
            with reason ``ALGORITHM_ERROR``.
        """
        strategy = strategy or create_validation_strategy(self.config, self.ml_config)
        method = method or SlidingWindowMethod()
        k = strategy.config.k_folds
        if len(samples) < k:
            raise InsufficientDataError(
                "cross-validation",
                required=k,
                actual=len(samples),
                guidance=f"Need at least {k} samples for {k}-fold cross-validation",
            )

        logger.info("Running %s on %d samples", strategy.name, len(samples))
        try:
            result = strategy.validate(samples, method)
        except BoundaryEngineError:
            raise
        except Exception as exc:
            raise OptimizationConvergenceError(
                target=OptimizationTarget.HIGHEST_WIN_RATE.value,
                completed_iterations=0,
                max_iterations=k,
                final_value=float("nan"),
                threshold=self.ml_config.convergence_threshold,
                reason=ConvergenceFailureReason.ALGORITHM_ERROR,
                message=f"Cross-validation failed using strategy '{strategy.name}': {exc}",
            ) from exc

        metrics = dict(result.metrics)
        metrics.update(additional_metrics(result, samples))
        return replace(result, metrics=metrics)

    # ── Factory helpers ──────────────────────────────────────────────

    def create_kfold_strategy(self, k: int = 5, random_seed: Optional[int] = None) -> KFoldValidationStrategy:
        config = replace(
            self.config, k_folds=k, strategy=CrossValidationMethod.KFOLD, random_seed=random_seed
        )
        return KFoldValidationStrategy(config, self.ml_config)

    def create_expanding_window_strategy(
        self, initial_window: float = 0.3, step_size: float = 0.1
    ) -> ExpandingWindowValidationStrategy:
        config = replace(
            self.config,
            strategy=CrossValidationMethod.TIME_SERIES_EXPANDING,
            min_train_window=initial_window,
            step_size=step_size,
        )
        return ExpandingWindowValidationStrategy(config, self.ml_config)

    def create_rolling_window_strategy(
        self, window_size: float = 0.5, step_size: float = 0.1
    ) -> RollingWindowValidationStrategy:
        config = replace(
            self.config,
            strategy=CrossValidationMethod.TIME_SERIES_ROLLING,
            rolling_window=window_size,
            step_size=step_size,
        )
        return RollingWindowValidationStrategy(config, self.ml_config)
