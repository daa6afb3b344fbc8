"""Decision-tree boundary strategy.

Fits a depth-limited ``DecisionTreeClassifier`` on measurement value with
labels ``|movement| >= target`` and turns consecutive tree thresholds
(bracketed by the data minimum and maximum) into candidate ranges.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import numpy as np

from ...data.samples import PriceMovement
from ..objectives import range_stats
from ..splits import tree_thresholds
from ..types import OptimalBoundary
from .base import MIN_BOUNDARY_HIT_RATE, BoundaryStrategy, parameter

logger = logging.getLogger(__name__)


class DecisionTreeStrategy(BoundaryStrategy):
    """Boundaries between consecutive decision-tree split thresholds."""

    DEFAULT_MAX_DEPTH = 5
    DEFAULT_MIN_SAMPLES_PER_LEAF = 10

    def __init__(self, ml_config=None, optimization_config=None) -> None:
        super().__init__(ml_config, optimization_config)
        params = self.ml_config.algorithm_parameters
        self.max_depth = min(
            parameter(params, "DecisionTreeMaxDepth", self.DEFAULT_MAX_DEPTH),
            self.optimization_config.max_depth,
        )
        self.min_samples_per_leaf = parameter(
            params, "DecisionTreeMinSamplesPerLeaf", self.DEFAULT_MIN_SAMPLES_PER_LEAF
        )

    @property
    def name(self) -> str:
        return "DecisionTree"

    @property
    def is_enabled(self) -> bool:
        return self.ml_config.use_decision_tree

    @property
    def minimum_sample_size(self) -> int:
        return self.min_samples_per_leaf * 4

    @property
    def recommended_sample_size(self) -> int:
        return self.minimum_sample_size * 5

    def parameters(self) -> Dict[str, Any]:
        return {
            "MaxDepth": self.max_depth,
            "MinimumSamplesPerLeaf": self.min_samples_per_leaf,
            "IsEnabled": self.is_enabled,
            "Algorithm": "scikit-learn DecisionTreeClassifier",
        }

    def _validate_specific(self, samples, target, errors, warnings) -> None:
        values = np.array([s.measurement_value for s in samples], dtype=float)
        if values.max() - values.min() == 0:
            errors.append(
                "All measurement values are identical - decision tree cannot create meaningful splits"
            )
        large = sum(1 for s in samples if abs(s.atr_movement) >= target)
        small = len(samples) - large
        if large == 0:
            errors.append(
                "No large price movements found in training data - decision tree has no "
                "positive examples to learn from"
            )
        elif small == 0:
            warnings.append("No small price movements found - decision tree may overfit to positive examples")
        elif large < self.min_samples_per_leaf or small < self.min_samples_per_leaf:
            warnings.append(
                f"Imbalanced dataset may lead to poor decision tree performance. "
                f"Large moves: {large}, Small moves: {small}"
            )

    def _execute(
        self,
        samples: Sequence[PriceMovement],
        target: float,
        diagnostics: List[str],
    ) -> List[OptimalBoundary]:
        values = np.array([s.measurement_value for s in samples], dtype=float)
        moves = np.array([s.atr_movement for s in samples], dtype=float)

        thresholds = tree_thresholds(
            values,
            moves,
            max_depth=self.max_depth,
            label_threshold=target,
            min_samples_leaf=self.min_samples_per_leaf,
            random_state=self.ml_config.random_seed,
        )
        diagnostics.append(f"Extracted {len(thresholds)} split points from decision tree")

        edges = sorted({float(values.min()), *thresholds, float(values.max())})
        boundaries: List[OptimalBoundary] = []
        for low, high in zip(edges[:-1], edges[1:]):
            n, hr, expected, p_up = range_stats(values, moves, low, high, target)
            if n < self.min_samples_per_leaf or hr <= MIN_BOUNDARY_HIT_RATE:
                continue
            boundaries.append(
                OptimalBoundary(
                    range_low=low,
                    range_high=high,
                    confidence=(min(1.0, n / 100.0) + max(hr, 0.5)) / 2.0,
                    expected_atr_move=expected,
                    sample_count=n,
                    hit_rate=hr,
                    probability_up=p_up,
                    method=self.name,
                )
            )
        diagnostics.append(f"Generated {len(boundaries)} boundaries from tree splits")
        return boundaries
