"""Gradient-search boundary strategy.

Starts several overlapping ranges across the value span and moves each
edge along a finite-difference gradient of a size-weighted hit rate.
Ranges that end up overlapping are resolved in favour of the higher hit
rate.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ...data.samples import PriceMovement
from ..objectives import hit_rate, in_range_mask, range_stats
from ..types import OptimalBoundary
from .base import MIN_BOUNDARY_HIT_RATE, BoundaryStrategy, imbalance_ratio, parameter

logger = logging.getLogger(__name__)

GRADIENT_EPSILON = 0.01
MIN_RANGE_SAMPLES = 5
FULL_WEIGHT_SAMPLES = 30.0
CONSECUTIVE_CONVERGED = 5


def remove_overlaps(boundaries: Sequence[OptimalBoundary]) -> List[OptimalBoundary]:
    """Sweep left to right; an overlapping boundary replaces its predecessor only if it hits more often."""
    ordered = sorted(boundaries, key=lambda b: b.range_low)
    kept: List[OptimalBoundary] = []
    for b in ordered:
        if kept and b.range_low < kept[-1].range_high:
            if b.hit_rate > kept[-1].hit_rate:
                kept[-1] = b
        else:
            kept.append(b)
    return kept


class GradientSearchStrategy(BoundaryStrategy):
    """Finite-difference ascent on several seeded value ranges."""

    def __init__(self, ml_config=None, optimization_config=None) -> None:
        super().__init__(ml_config, optimization_config)
        params = self.ml_config.algorithm_parameters
        self.max_iterations = parameter(params, "GradientMaxIterations", self.ml_config.max_iterations)
        self.convergence_threshold = parameter(
            params, "GradientConvergenceThreshold", self.ml_config.convergence_threshold, kind=float
        )
        self.learning_rate = parameter(params, "GradientLearningRate", 0.01, kind=float)

    @property
    def name(self) -> str:
        return "GradientSearch"

    @property
    def is_enabled(self) -> bool:
        return self.ml_config.use_gradient_search

    @property
    def minimum_sample_size(self) -> int:
        return 30

    @property
    def recommended_sample_size(self) -> int:
        return 100

    def parameters(self) -> Dict[str, Any]:
        return {
            "MaxIterations": self.max_iterations,
            "ConvergenceThreshold": self.convergence_threshold,
            "LearningRate": self.learning_rate,
            "IsEnabled": self.is_enabled,
            "Algorithm": "Gradient Search",
        }

    def _validate_specific(self, samples, target, errors, warnings) -> None:
        values = np.sort(np.array([s.measurement_value for s in samples], dtype=float))
        if values[-1] - values[0] == 0:
            errors.append(
                "All measurement values are identical - gradient search cannot optimize boundaries"
            )
        large = sum(1 for s in samples if abs(s.atr_movement) >= target)
        small = len(samples) - large
        if large == 0 or small == 0:
            errors.append(
                "All price movements are of the same magnitude - gradient search has no "
                "variation to optimize"
            )
        else:
            ratio = imbalance_ratio(large, small)
            if ratio < 0.1:
                warnings.append(
                    f"Highly imbalanced data (ratio: {ratio:.2f}) may cause gradient search instability"
                )
        n = values.size
        typical_range = values[int(n * 0.75)] - values[int(n * 0.25)]
        if self.learning_rate * typical_range > 1.0:
            warnings.append(
                f"Learning rate {self.learning_rate} may be too aggressive for data scale "
                f"(typical range: {typical_range:.2f})"
            )

    # ── Search ───────────────────────────────────────────────────────

    @staticmethod
    def _objective(values: np.ndarray, moves: np.ndarray, low: float, high: float, target: float) -> float:
        inside = moves[in_range_mask(values, low, high)]
        if inside.size < MIN_RANGE_SAMPLES:
            return 0.0
        return hit_rate(inside, target) * min(1.0, inside.size / FULL_WEIGHT_SAMPLES)

    def _gradients(self, values, moves, low, high, target) -> Tuple[float, float]:
        eps = GRADIENT_EPSILON
        f = self._objective
        g_low = (f(values, moves, low + eps, high, target) - f(values, moves, low - eps, high, target)) / (2 * eps)
        g_high = (f(values, moves, low, high + eps, target) - f(values, moves, low, high - eps, target)) / (2 * eps)
        return g_low, g_high

    def _optimize_range(
        self,
        values: np.ndarray,
        moves: np.ndarray,
        target: float,
        low: float,
        high: float,
        diagnostics: List[str],
    ) -> Optional[Tuple[float, float, float]]:
        vmin, vmax = float(values.min()), float(values.max())
        best_score, best_low, best_high = 0.0, low, high
        previous = float("-inf")
        converged_count = 0

        for iteration in range(self.max_iterations):
            low = max(vmin, min(low, high - 0.01))
            high = min(vmax, max(high, low + 0.01))
            score = self._objective(values, moves, low, high, target)
            if score > best_score:
                best_score, best_low, best_high = score, low, high

            if abs(score - previous) < self.convergence_threshold:
                converged_count += 1
                if converged_count >= CONSECUTIVE_CONVERGED:
                    diagnostics.append(
                        f"Range optimization converged at iteration {iteration} with score {best_score:.4f}"
                    )
                    break
            else:
                converged_count = 0

            g_low, g_high = self._gradients(values, moves, low, high, target)
            low += self.learning_rate * g_low
            high += self.learning_rate * g_high
            previous = score

        if best_score > MIN_BOUNDARY_HIT_RATE:
            return best_low, best_high, best_score
        return None

    def _execute(
        self,
        samples: Sequence[PriceMovement],
        target: float,
        diagnostics: List[str],
    ) -> List[OptimalBoundary]:
        values = np.array([s.measurement_value for s in samples], dtype=float)
        moves = np.array([s.atr_movement for s in samples], dtype=float)
        vmin, vmax = float(values.min()), float(values.max())
        n_ranges = min(5, len(samples) // 20)
        diagnostics.append(
            f"Optimizing {n_ranges} boundary ranges across data range [{vmin:.2f}, {vmax:.2f}]"
        )

        found: List[OptimalBoundary] = []
        size = (vmax - vmin) / (n_ranges + 1)
        for i in range(n_ranges):
            initial_low = vmin + i * size
            result = self._optimize_range(
                values, moves, target, initial_low, initial_low + 1.5 * size, diagnostics
            )
            if result is None:
                continue
            low, high, _ = result
            n, hr, expected, p_up = range_stats(values, moves, low, high, target)
            found.append(
                OptimalBoundary(
                    range_low=low,
                    range_high=high,
                    confidence=(min(1.0, n / 50.0) + min(1.0, hr * 1.5)) / 2.0,
                    expected_atr_move=expected,
                    sample_count=n,
                    hit_rate=hr,
                    probability_up=p_up,
                    method=self.name,
                )
            )

        kept = remove_overlaps(found)
        diagnostics.append(f"Generated {len(kept)} optimized boundaries after overlap removal")
        return kept
