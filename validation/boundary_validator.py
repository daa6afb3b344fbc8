"""
Out-of-sample check of a fixed boundary set.

Each boundary is re-scored on the test samples using its own
``expected_atr_move`` as the hit threshold, so the check tests the claim
the boundary made when it was trained rather than a new target.

Usage::

    result = validate_boundaries(boundaries, holdout)
    if result.is_overfitted:
        ...
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..config import OVERFITTING_DEGRADATION, PERFORMANCE_DEGRADATION_THRESHOLD
from ..data.samples import PriceMovement, measurement_values, movements
from ..optimization.objectives import hit_rate, in_range_mask
from ..optimization.types import OptimalBoundary
from ..utils.stats import sqrt_weighted_mean
from .results import BoundaryValidation, ValidationResult

logger = logging.getLogger(__name__)


def relative_degradation(in_sample: float, out_of_sample: float) -> float:
    """``|in - out| / in``; 1.0 when there is no in-sample performance."""
    if in_sample <= 0:
        return 1.0
    return abs(in_sample - out_of_sample) / in_sample


def validate_boundaries(
    boundaries: Sequence[OptimalBoundary],
    test_samples: Sequence[PriceMovement],
    degradation_threshold: Optional[float] = None,
    overfitting_degradation: Optional[float] = None,
) -> ValidationResult:
    """Compare each boundary's recorded hit rate with its hit rate on *test_samples*.

    Parameters
    ----------
    boundaries : sequence of OptimalBoundary
        Trained boundaries; ``hit_rate`` is the in-sample figure.
    test_samples : sequence of PriceMovement
        Held-out samples.
    degradation_threshold : float, optional
        A boundary is stable when its degradation is below this
        (``PERFORMANCE_DEGRADATION_THRESHOLD`` by default).
    overfitting_degradation : float, optional
        The set is overfitted when aggregate degradation exceeds this
        (``OVERFITTING_DEGRADATION`` by default).

    Returns
    -------
    ValidationResult
        Empty boundaries or samples give zero performance, degradation 1.0
        and ``is_overfitted=True``.
    """
    if not boundaries or not test_samples:
        return ValidationResult()

    stable_below = (
        PERFORMANCE_DEGRADATION_THRESHOLD if degradation_threshold is None else degradation_threshold
    )
    overfit_above = (
        OVERFITTING_DEGRADATION if overfitting_degradation is None else overfitting_degradation
    )

    values = measurement_values(test_samples)
    moves = movements(test_samples)

    details: List[BoundaryValidation] = []
    for boundary in boundaries:
        inside = moves[in_range_mask(values, boundary.range_low, boundary.range_high)]
        out_rate = hit_rate(inside, boundary.expected_atr_move) if inside.size else 0.0
        in_rate = boundary.hit_rate
        degradation = relative_degradation(in_rate, out_rate)
        details.append(
            BoundaryValidation(
                boundary=boundary,
                in_sample_hit_rate=in_rate,
                out_of_sample_hit_rate=out_rate,
                degradation=degradation,
                is_stable=degradation < stable_below,
                stability_score=max(0.0, 1.0 - degradation),
            )
        )

    counts = [d.boundary.sample_count for d in details]
    in_perf = sqrt_weighted_mean([d.in_sample_hit_rate for d in details], counts)
    out_perf = sqrt_weighted_mean([d.out_of_sample_hit_rate for d in details], counts)
    overall = relative_degradation(in_perf, out_perf)

    result = ValidationResult(
        in_sample_performance=in_perf,
        out_of_sample_performance=out_perf,
        performance_degradation=overall,
        boundary_performance=tuple(details),
        is_overfitted=overall > overfit_above,
        metrics={
            "StableBoundariesPct": sum(d.is_stable for d in details) / len(details),
            "AverageStabilityScore": float(np.mean([d.stability_score for d in details])),
            "TestSampleSize": float(len(test_samples)),
        },
    )
    logger.debug(
        "Validated %d boundaries on %d samples: in=%.4f out=%.4f degradation=%.4f",
        len(details), len(test_samples), in_perf, out_perf, overall,
    )
    return result
