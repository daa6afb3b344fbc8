"""
K-means clustering of samples into behaviour groups.

``optimize_with_clustering`` clusters on the 2-D feature
``[measurement_value, atr_movement]`` and reports each cluster's centre,
average movement and a ``centre ± 1.5·σ`` value range.  ``kmeans_1d`` is
the measurement-value-only variant used by the clustering strategy.

Both accept ``random_state``; ``None`` runs the unseeded path.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from sklearn.cluster import KMeans

from ..config import DEFAULT_CLUSTER_COUNT, MAX_CLUSTERS
from ..data.samples import PriceMovement, sort_by_value
from ..errors import InvalidArgumentError, NumericalFailureError
from ..reproducibility import sklearn_random_state
from .types import ClusterResult

logger = logging.getLogger(__name__)

RANGE_STDDEVS = 1.5


def kmeans_labels(
    features: np.ndarray,
    k: int,
    max_iter: int = 300,
    tol: float = 1e-4,
    random_state: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Fit k-means and return ``(labels, centers)``.

    Raises ``ValueError`` from scikit-learn on non-finite input.
    """
    if features.ndim == 1:
        features = features.reshape(-1, 1)
    model = KMeans(
        n_clusters=k,
        n_init=10,
        max_iter=max_iter,
        tol=tol,
        random_state=sklearn_random_state(random_state),
    )
    labels = model.fit_predict(features)
    return labels, model.cluster_centers_


def kmeans_1d(
    values: np.ndarray,
    k: int,
    max_iter: int = 100,
    tol: float = 0.001,
    random_state: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Cluster measurement values alone; centres are returned flattened."""
    labels, centers = kmeans_labels(
        np.asarray(values, dtype=float), k, max_iter=max_iter, tol=tol, random_state=random_state
    )
    return labels, centers.ravel()


def _cluster_from_members(members: List[PriceMovement]) -> ClusterResult:
    values = np.array([m.measurement_value for m in members], dtype=float)
    moves = np.array([m.atr_movement for m in members], dtype=float)
    center = float(values.mean())
    variance = float(np.mean((values - center) ** 2))
    std = math.sqrt(variance)
    return ClusterResult(
        center=center,
        avg_movement=float(moves.mean()),
        count=len(members),
        members=tuple(members),
        variance=variance,
        boundary_range=(max(0.0, center - RANGE_STDDEVS * std), center + RANGE_STDDEVS * std),
    )


def chunk_clusters(samples: Sequence[PriceMovement], k: int) -> List[ClusterResult]:
    """Fallback grouping: *k* contiguous chunks of value-sorted samples.

    The last chunk absorbs the remainder.  Variance is reported as 0 and the
    range spans the chunk's first and last value.
    """
    ordered = sort_by_value(samples)
    size = len(ordered) // k
    out: List[ClusterResult] = []
    for i in range(k):
        start = i * size
        end = len(ordered) if i == k - 1 else (i + 1) * size
        chunk = ordered[start:end]
        if not chunk:
            continue
        values = [m.measurement_value for m in chunk]
        out.append(
            ClusterResult(
                center=float(np.mean(values)),
                avg_movement=float(np.mean([m.atr_movement for m in chunk])),
                count=len(chunk),
                members=tuple(chunk),
                variance=0.0,
                boundary_range=(chunk[0].measurement_value, chunk[-1].measurement_value),
            )
        )
    return out


def optimize_with_clustering(
    samples: Sequence[PriceMovement],
    n_clusters: int = DEFAULT_CLUSTER_COUNT,
    max_clusters: Optional[int] = None,
    random_state: Optional[int] = None,
) -> List[ClusterResult]:
    """Group samples by (value, movement) behaviour.

    Parameters
    ----------
    samples : sequence of PriceMovement
    n_clusters : int
        Requested cluster count (``DEFAULT_CLUSTER_COUNT`` by default);
        positive, at most ``len(samples)`` and at most *max_clusters*
        (``MAX_CLUSTERS`` by default).
    random_state : int, optional
        k-means initialisation seed.

    Returns
    -------
    list of ClusterResult
        Non-empty clusters sorted by centre.  Empty when there are fewer
        than ``2 * n_clusters`` samples.

    Raises
    ------
    NumericalFailureError
        ``ZERO_VARIANCE`` when every measurement value is identical.
    """
    ceiling = MAX_CLUSTERS if max_clusters is None else max_clusters
    if n_clusters <= 0:
        raise InvalidArgumentError("n_clusters", n_clusters, "must be positive")
    if n_clusters > len(samples):
        raise InvalidArgumentError(
            "n_clusters", n_clusters, f"cannot exceed the number of samples ({len(samples)})"
        )
    if n_clusters > ceiling:
        raise InvalidArgumentError("n_clusters", n_clusters, f"cannot exceed {ceiling}")
    if len(samples) < 2 * n_clusters:
        return []

    features = np.array(
        [[s.measurement_value, s.atr_movement] for s in samples], dtype=float
    )
    if np.ptp(features[:, 0]) == 0:
        raise NumericalFailureError.diagnose(
            "All measurement values are identical; clusters would collapse to one point",
            features[:, 0],
        )
    try:
        labels, _ = kmeans_labels(features, n_clusters, random_state=random_state)
    except (ValueError, FloatingPointError) as exc:
        logger.warning("k-means failed (%s); falling back to value-sorted chunks", exc)
        return chunk_clusters(samples, n_clusters)

    results = []
    for label in range(n_clusters):
        idx = np.nonzero(labels == label)[0]
        if idx.size == 0:
            continue
        results.append(_cluster_from_members([samples[i] for i in idx]))
    results.sort(key=lambda c: c.center)
    return results
