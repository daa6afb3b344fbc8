"""
Optimization methods that cross-validation can train and score.

A method is anything with ``train(samples, config)`` and
``evaluate(boundaries, samples, config)``; cross-validation strategies
only talk to that protocol.
"""
from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from ..config_structured import MLOptimizationConfig
from ..data.samples import PriceMovement
from ..optimization.combined import run_combined_optimization
from ..optimization.objectives import weighted_validation_score
from ..optimization.sliding_window import find_optimal_boundaries
from ..optimization.types import OptimalBoundary
from .boundary_validator import validate_boundaries

logger = logging.getLogger(__name__)


class OptimizationMethod(Protocol):
    """Protocol for a boundary search under cross-validation."""

    def train(
        self, samples: Sequence[PriceMovement], config: MLOptimizationConfig
    ) -> List[OptimalBoundary]:
        """Fit boundaries on *samples*."""
        ...

    def evaluate(
        self,
        boundaries: Sequence[OptimalBoundary],
        samples: Sequence[PriceMovement],
        config: MLOptimizationConfig,
    ) -> float:
        """Score *boundaries* on *samples* (higher is better)."""
        ...


class SlidingWindowMethod:
    """Sliding-window search scored by out-of-sample boundary validation.

    The training target and range count are fixed by the method, not by
    the config passed at call time.
    """

    def __init__(self, target_atr_move: float = 1.5, max_ranges: int = 5) -> None:
        self.target_atr_move = target_atr_move
        self.max_ranges = max_ranges

    def train(self, samples, config):
        return find_optimal_boundaries(samples, self.target_atr_move, self.max_ranges)

    def evaluate(self, boundaries, samples, config):
        if not boundaries or not samples:
            return 0.0
        return validate_boundaries(boundaries, samples).out_of_sample_performance


class CombinedOptimizationMethod:
    """Full multi-strategy optimization as the method under test.

    Scored with the same held-out evaluator the orchestrator uses to rank
    strategies, at ``config.target_atr_move``.
    """

    def train(self, samples, config):
        result = run_combined_optimization(samples, config)
        logger.debug("Fold trained with %s (%d boundaries)", result.best_method, len(result.optimal_boundaries))
        return list(result.optimal_boundaries)

    def evaluate(self, boundaries, samples, config):
        return weighted_validation_score(boundaries, samples, config.target_atr_move)
