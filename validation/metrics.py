"""
Fold-level aggregate metrics shared by the cross-validation strategies.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Dict, Sequence

import numpy as np

from ..config import DEFAULT_LOOKBACK_DAYS
from ..data.samples import PriceMovement
from ..utils.stats import least_squares_slope, population_std
from .results import CrossValidationFold

WINDOW_CONSISTENCY_FLOOR = 0.001


def temporal_degradation(scores: Sequence[float]) -> float:
    """Decline in validation score per fold; 0.0 when flat or improving."""
    if len(scores) < 2:
        return 0.0
    return max(0.0, -least_squares_slope(scores))


def window_consistency(scores: Sequence[float]) -> float:
    """``1 - std/mean`` of the fold scores, clipped to [0, 1]."""
    if len(scores) < 2:
        return 1.0
    mean = float(np.mean(scores))
    return max(0.0, 1.0 - population_std(scores) / max(mean, WINDOW_CONSISTENCY_FLOOR))


def optimal_lookback(
    folds: Sequence[CrossValidationFold],
    ordered_samples: Sequence[PriceMovement],
) -> timedelta:
    """Time span implied by the best fold's share of the training data."""
    if len(folds) < 2 or not ordered_samples:
        return timedelta(days=DEFAULT_LOOKBACK_DAYS)
    best = max(folds, key=lambda f: f.validation_score)
    span = ordered_samples[-1].start_timestamp - ordered_samples[0].start_timestamp
    return span * (best.training_sample_count / len(ordered_samples))


def fold_score_metrics(folds: Sequence[CrossValidationFold], count_key: str = "FoldCount") -> Dict[str, float]:
    avg_train = float(np.mean([f.training_score for f in folds])) if folds else 0.0
    avg_val = float(np.mean([f.validation_score for f in folds])) if folds else 0.0
    return {
        count_key: float(len(folds)),
        "AvgTrainingScore": avg_train,
        "AvgValidationScore": avg_val,
        "TrainValGap": avg_train - avg_val,
    }
