"""
Range filters, hit rates and objective functions shared by every search.

All range tests are inclusive on both ends.
"""
from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np

from ..data.samples import PriceMovement, measurement_values, movements
from ..utils.stats import population_std
from .types import OptimalBoundary, OptimizationObjective, OptimizationTarget

logger = logging.getLogger(__name__)


def in_range_mask(values: np.ndarray, low: float, high: float) -> np.ndarray:
    return (values >= low) & (values <= high)


def hit_rate(moves: np.ndarray, target: float) -> float:
    """Fraction of *moves* whose absolute value is at least *target*."""
    if moves.size == 0:
        return 0.0
    return float(np.mean(np.abs(moves) >= target))


def range_movements(
    samples: Sequence[PriceMovement], low: float, high: float
) -> np.ndarray:
    values = measurement_values(samples)
    moves = movements(samples)
    return moves[in_range_mask(values, low, high)]


def calculate_objective_value(
    samples: Sequence[PriceMovement],
    value_range: Tuple[float, float],
    objective: OptimizationObjective,
) -> float:
    """Score the samples inside *value_range* under *objective*.

    Returns 0.0 when the range holds no samples.
    """
    low, high = value_range
    moves = range_movements(samples, low, high)
    return objective_from_movements(moves, objective)


def objective_from_movements(moves: np.ndarray, objective: OptimizationObjective) -> float:
    if moves.size == 0:
        return 0.0
    target = objective.target
    if target is OptimizationTarget.HIGHEST_WIN_RATE:
        return float(np.mean(moves > 0))
    if target is OptimizationTarget.LARGE_MOVE_PROBABILITY:
        return hit_rate(moves, objective.min_atr_move)
    if target is OptimizationTarget.CONSISTENT_RESULTS:
        return 1.0 / (1.0 + population_std(np.abs(moves)))
    return float(np.mean(np.abs(moves)))


def average_hit_rate(
    boundaries: Sequence[OptimalBoundary],
    samples: Sequence[PriceMovement],
    target: float,
) -> float:
    """Plain mean of per-boundary hit rates over boundaries that hold samples."""
    if not boundaries or not samples:
        return 0.0
    values = measurement_values(samples)
    moves = movements(samples)
    rates = []
    for b in boundaries:
        inside = moves[in_range_mask(values, b.range_low, b.range_high)]
        if inside.size:
            rates.append(hit_rate(inside, target))
    return float(np.mean(rates)) if rates else 0.0


def weighted_validation_score(
    boundaries: Sequence[OptimalBoundary],
    samples: Sequence[PriceMovement],
    target: float,
) -> float:
    """Held-out score used to rank strategies.

    Each boundary contributes the hit rate of the held-out samples it
    contains, weighted by the square root of that count.  Boundaries that
    contain no held-out samples carry zero weight.
    """
    if not boundaries or not samples:
        return 0.0
    values = measurement_values(samples)
    moves = movements(samples)
    total = 0.0
    weight_sum = 0.0
    for b in boundaries:
        inside = moves[in_range_mask(values, b.range_low, b.range_high)]
        if inside.size == 0:
            continue
        w = float(np.sqrt(inside.size))
        total += hit_rate(inside, target) * w
        weight_sum += w
    return total / weight_sum if weight_sum > 0 else 0.0


def range_stats(
    values: np.ndarray, moves: np.ndarray, low: float, high: float, target: float
) -> Tuple[int, float, float, float]:
    """``(count, hit_rate, mean |move|, P(move > 0))`` for samples in ``[low, high]``."""
    inside = moves[in_range_mask(values, low, high)]
    if inside.size == 0:
        return 0, 0.0, 0.0, 0.0
    return (
        int(inside.size),
        hit_rate(inside, target),
        float(np.abs(inside).mean()),
        float(np.mean(inside > 0)),
    )
