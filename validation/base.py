"""
Abstract base for cross-validation strategies.

Concrete strategies decide how samples are split into folds; this module
runs a single fold (train, score on both sides, validate boundaries) and
turns a list of folds into the aggregate statistics every strategy
reports.  ``TimeSeriesValidationStrategy`` adds chronological ordering,
temporal degradation, stationarity and lookback estimation.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..config_structured import CrossValidationConfig, MLOptimizationConfig
from ..data.samples import PriceMovement, sort_by_time
from ..errors import InsufficientDataError
from ..utils.stats import confidence_interval, sample_std
from .boundary_validator import validate_boundaries
from .methods import OptimizationMethod
from .metrics import fold_score_metrics, optimal_lookback, temporal_degradation
from .results import CrossValidationFold, CrossValidationResult, TimeSeriesCrossValidationResult

logger = logging.getLogger(__name__)

Split = Tuple[List[PriceMovement], List[PriceMovement]]


class ValidationStrategy(ABC):
    """Cross-validation scheme: split samples, train and score each fold."""

    def __init__(
        self,
        config: Optional[CrossValidationConfig] = None,
        ml_config: Optional[MLOptimizationConfig] = None,
    ) -> None:
        self.config = config or CrossValidationConfig()
        self.ml_config = ml_config or MLOptimizationConfig()

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable strategy name."""

    @abstractmethod
    def validate(
        self, samples: Sequence[PriceMovement], method: OptimizationMethod
    ) -> CrossValidationResult:
        """Run every fold of this scheme and aggregate the scores."""

    # ── Shared fold machinery ────────────────────────────────────────

    def _run_fold(
        self,
        index: int,
        method: OptimizationMethod,
        train: Sequence[PriceMovement],
        test: Sequence[PriceMovement],
        date_range: Optional[Tuple[datetime, datetime]] = None,
    ) -> CrossValidationFold:
        boundaries = list(method.train(train, self.ml_config))
        train_score = method.evaluate(boundaries, train, self.ml_config)
        val_score = method.evaluate(boundaries, test, self.ml_config)
        logger.debug(
            "%s fold %d: %d train / %d test, %d boundaries, train=%.4f val=%.4f",
            self.name, index, len(train), len(test), len(boundaries), train_score, val_score,
        )
        return CrossValidationFold(
            fold_index=index,
            training_score=train_score,
            validation_score=val_score,
            boundaries=tuple(boundaries),
            validation_result=validate_boundaries(boundaries, test),
            training_sample_count=len(train),
            validation_sample_count=len(test),
            date_range=date_range,
        )

    def _summary(self, folds: Sequence[CrossValidationFold]) -> Dict[str, object]:
        """Fields common to every cross-validation result."""
        scores = tuple(f.validation_score for f in folds)
        avg_train = float(np.mean([f.training_score for f in folds]))
        avg_val = float(np.mean(scores))
        return {
            "fold_results": tuple(folds),
            "fold_scores": scores,
            "mean_score": avg_val,
            "std_dev_score": sample_std(scores),
            "confidence_interval": confidence_interval(scores, self.config.confidence_level),
            "is_overfitting": avg_train > avg_val + self.config.overfitting_gap,
            "config": self.config,
        }

    def _require_folds(self, folds: Sequence[CrossValidationFold], n_samples: int) -> None:
        if not folds:
            raise InsufficientDataError(
                f"{self.name} cross-validation",
                required=n_samples + 1,
                actual=n_samples,
                guidance="No train/validation split fits the configured window sizes",
            )


class TimeSeriesValidationStrategy(ValidationStrategy):
    """Chronological cross-validation.

    Subclasses yield ``(train, test)`` splits over time-sorted samples in
    which every training timestamp precedes every validation timestamp.
    """

    stationarity_std: float = 0.2

    @abstractmethod
    def _windows(self, ordered: List[PriceMovement]) -> Iterator[Split]:
        """Yield successive ``(train, test)`` splits."""

    def _is_stationary(self, std: float, degradation: float) -> bool:
        return std < self.stationarity_std

    def _stationarity_tests(self, scores: Sequence[float], std: float, degradation: float) -> Dict[str, float]:
        return {"PerformanceVariance": std, "TemporalTrend": degradation}

    def _extra_metrics(self, scores: Sequence[float]) -> Dict[str, float]:
        return {}

    def validate(self, samples, method):
        ordered = sort_by_time(samples)
        folds: List[CrossValidationFold] = []
        for index, (train, test) in enumerate(self._windows(ordered)):
            date_range = (train[0].start_timestamp, test[-1].start_timestamp)
            folds.append(self._run_fold(index, method, train, test, date_range))
        self._require_folds(folds, len(ordered))

        summary = self._summary(folds)
        scores = summary["fold_scores"]
        std = summary["std_dev_score"]
        degradation = temporal_degradation(scores)
        lookback = optimal_lookback(folds, ordered)

        metrics = fold_score_metrics(folds, count_key="WindowCount")
        metrics["TemporalDegradation"] = degradation
        metrics.update(self._extra_metrics(scores))
        metrics["EstimatedOptimalLookbackDays"] = lookback.total_seconds() / 86400.0

        result = TimeSeriesCrossValidationResult(
            **summary,
            metrics=metrics,
            is_stationary=self._is_stationary(std, degradation),
            stationarity_tests=self._stationarity_tests(scores, std, degradation),
            temporal_degradation=degradation,
            optimal_lookback=lookback,
        )
        logger.info(
            "%s: %d windows, mean=%.4f std=%.4f degradation=%.4f stationary=%s",
            self.name, len(folds), result.mean_score, std, degradation, result.is_stationary,
        )
        return result
