"""Clustering boundary strategy (1-D k-means on measurement value)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import numpy as np

from ...data.samples import PriceMovement
from ..clustering import kmeans_1d
from ..objectives import hit_rate
from ..types import OptimalBoundary
from .base import MIN_BOUNDARY_HIT_RATE, BoundaryStrategy, parameter

logger = logging.getLogger(__name__)

MIN_CLUSTER_MEMBERS = 5
CONFIDENCE_WEIGHTS = (0.4, 0.3, 0.2, 0.1)


def cluster_confidence(n: int, hr: float, avg_distance: float, density: float) -> float:
    """Blend of size, hit rate, cohesion and density factors."""
    factors = (
        min(1.0, n / 50.0),
        min(1.0, hr * 2.0),
        max(0.1, 1.0 / (1.0 + avg_distance)),
        min(1.0, density / 10.0),
    )
    return float(sum(w * f for w, f in zip(CONFIDENCE_WEIGHTS, factors)))


class ClusteringStrategy(BoundaryStrategy):
    """One boundary per well-populated k-means cluster that hits often enough."""

    DEFAULT_CLUSTER_COUNT = 5
    CLUSTER_CAP = 10

    def __init__(self, ml_config=None, optimization_config=None) -> None:
        super().__init__(ml_config, optimization_config)
        params = self.ml_config.algorithm_parameters
        self.n_clusters = min(
            parameter(params, "ClusterCount", self.DEFAULT_CLUSTER_COUNT), self.CLUSTER_CAP
        )
        self.max_iterations = parameter(params, "ClusterMaxIterations", 100)
        self.convergence_threshold = parameter(
            params, "ClusterConvergenceThreshold", 0.001, kind=float
        )

    @property
    def name(self) -> str:
        return "Clustering"

    @property
    def is_enabled(self) -> bool:
        return self.ml_config.use_clustering

    @property
    def minimum_sample_size(self) -> int:
        return self.n_clusters * 5

    @property
    def recommended_sample_size(self) -> int:
        return self.n_clusters * 20

    def parameters(self) -> Dict[str, Any]:
        return {
            "NumberOfClusters": self.n_clusters,
            "MaxIterations": self.max_iterations,
            "ConvergenceThreshold": self.convergence_threshold,
            "IsEnabled": self.is_enabled,
            "Algorithm": "K-Means Clustering",
        }

    def effective_cluster_count(self, n_samples: int) -> int:
        return min(self.n_clusters, n_samples // MIN_CLUSTER_MEMBERS)

    def _validate_specific(self, samples, target, errors, warnings) -> None:
        effective = self.effective_cluster_count(len(samples))
        if effective < 2:
            errors.append(
                "Insufficient data for meaningful clustering - need at least 2 clusters "
                "with minimum 5 samples each"
            )
        elif effective < self.n_clusters:
            warnings.append(
                f"Reducing cluster count from {self.n_clusters} to {effective} due to limited data"
            )

        values = np.sort(np.array([s.measurement_value for s in samples], dtype=float))
        if values[-1] - values[0] == 0:
            errors.append(
                "All measurement values are identical - clustering cannot create meaningful groups"
            )
        n = values.size
        iqr = values[int(n * 0.75)] - values[int(n * 0.25)]
        if iqr == 0:
            warnings.append("Data has very limited spread (IQR = 0) - clustering may not be effective")

    def _execute(
        self,
        samples: Sequence[PriceMovement],
        target: float,
        diagnostics: List[str],
    ) -> List[OptimalBoundary]:
        values = np.array([s.measurement_value for s in samples], dtype=float)
        moves = np.array([s.atr_movement for s in samples], dtype=float)
        k = max(2, self.effective_cluster_count(len(samples)))
        diagnostics.append(f"Using {k} clusters for {len(samples)} data points")

        try:
            labels, centers = kmeans_1d(
                values,
                k,
                max_iter=self.max_iterations,
                tol=self.convergence_threshold,
                random_state=self.ml_config.random_seed,
            )
        except (ValueError, FloatingPointError) as exc:
            logger.warning("k-means failed (%s); using contiguous value chunks", exc)
            diagnostics.append("k-means failed; fell back to value-sorted chunks")
            labels, centers = _chunk_labels(values, k)

        boundaries: List[OptimalBoundary] = []
        for label in np.unique(labels):
            member = labels == label
            n = int(member.sum())
            if n < MIN_CLUSTER_MEMBERS:
                diagnostics.append(f"Skipping cluster {label} - insufficient samples ({n})")
                continue
            cluster_values = values[member]
            cluster_moves = moves[member]
            low, high = float(cluster_values.min()), float(cluster_values.max())
            hr = hit_rate(cluster_moves, target)
            avg_distance = float(np.abs(cluster_values - centers[label]).mean())
            density = n / max(1.0, high - low)
            if hr <= MIN_BOUNDARY_HIT_RATE:
                continue
            boundaries.append(
                OptimalBoundary(
                    range_low=low,
                    range_high=high,
                    confidence=cluster_confidence(n, hr, avg_distance, density),
                    expected_atr_move=float(np.abs(cluster_moves).mean()),
                    sample_count=n,
                    hit_rate=hr,
                    probability_up=float(np.mean(cluster_moves > 0)),
                    method=self.name,
                )
            )
        boundaries.sort(key=lambda b: b.range_low)
        diagnostics.append(f"Generated {len(boundaries)} boundaries from clustering analysis")
        return boundaries


def _chunk_labels(values: np.ndarray, k: int):
    order = np.argsort(values, kind="stable")
    size = len(values) // k
    labels = np.empty(len(values), dtype=int)
    for i in range(k):
        end = len(values) if i == k - 1 else (i + 1) * size
        labels[order[i * size:end]] = i
    centers = np.array([values[labels == i].mean() for i in range(k)])
    return labels, centers
