"""
Decision-tree-style split detection over measurement value.

Split points come from two detectors run over value-sorted samples:

1. gaps wider than ``GAP_THRESHOLD`` between neighbouring values
2. abrupt changes in average movement between adjacent windows

Gap splits take priority; when there are at least two of them they are
used on their own.  When the detectors yield fewer than two splits a
scikit-learn ``DecisionTreeClassifier`` fit on ``|movement| >= 1`` labels
supplies its internal thresholds instead.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
from sklearn.tree import DecisionTreeClassifier

from ..config import MAX_DEPTH
from ..data.samples import PriceMovement, sort_by_value
from ..errors import InsufficientDataError, InvalidArgumentError
from ..reproducibility import sklearn_random_state

logger = logging.getLogger(__name__)

GAP_THRESHOLD = 5.0
BEHAVIOR_CHANGE_THRESHOLD = 1.0
LARGE_MOVE_LABEL = 1.0
MIN_TREE_SAMPLES = 10


def gap_splits(values: np.ndarray) -> List[float]:
    """Midpoints of neighbouring sorted values further apart than the gap threshold."""
    if values.size < 2:
        return []
    gaps = np.diff(values)
    idx = np.nonzero(gaps > GAP_THRESHOLD)[0]
    return [float((values[i] + values[i + 1]) / 2.0) for i in idx]


def behavior_splits(values: np.ndarray, moves: np.ndarray) -> List[float]:
    """Split wherever mean movement jumps between adjacent windows."""
    n = values.size
    window = min(2, n // 4)
    if window < 1:
        return []
    out = []
    for i in range(window, n - window):
        left = moves[i - window:i].mean()
        right = moves[i:i + window].mean()
        if abs(left - right) > BEHAVIOR_CHANGE_THRESHOLD:
            out.append(float((values[i - 1] + values[i]) / 2.0))
    return out


def tree_thresholds(
    values: np.ndarray,
    moves: np.ndarray,
    max_depth: int,
    label_threshold: float = LARGE_MOVE_LABEL,
    min_samples_leaf: int = 1,
    random_state: Optional[int] = None,
) -> List[float]:
    """Internal-node thresholds of a tree classifying large vs small moves.

    Returns an empty list when every sample carries the same label.
    """
    labels = (np.abs(moves) >= label_threshold).astype(int)
    if labels.min() == labels.max():
        return []
    tree = DecisionTreeClassifier(
        max_depth=max_depth,
        min_samples_leaf=min_samples_leaf,
        random_state=sklearn_random_state(random_state),
    )
    tree.fit(values.reshape(-1, 1), labels)
    internal = tree.tree_.children_left != -1
    return sorted(float(t) for t in tree.tree_.threshold[internal])


def select_significant_splits(
    splits: Sequence[float],
    values: np.ndarray,
    moves: np.ndarray,
    max_splits: int,
) -> List[float]:
    """Keep the *max_splits* splits that best separate mean movement.

    A split's score is ``|mean(move below) - mean(move at or above)|``
    (0 when either side is empty).  Ties favour the lower split.
    """
    scored = []
    for position, split in enumerate(sorted(splits)):
        below = moves[values < split]
        above = moves[values >= split]
        score = 0.0
        if below.size and above.size:
            score = float(abs(below.mean() - above.mean()))
        scored.append((score, position, split))
    scored.sort(key=lambda t: (-t[0], t[1]))
    return sorted(split for _, _, split in scored[:max_splits])


def optimize_with_decision_tree(
    samples: Sequence[PriceMovement],
    max_depth: int,
    max_depth_ceiling: Optional[int] = None,
    random_state: Optional[int] = None,
) -> List[float]:
    """Return ordered split points over measurement value.

    Parameters
    ----------
    samples : sequence of PriceMovement
        At least two samples.
    max_depth : int
        Maximum number of split points, in ``[1, max_depth_ceiling]``.
    max_depth_ceiling : int, optional
        Defaults to ``MAX_DEPTH``.
    random_state : int, optional
        Seed for the tree fallback's tie-breaking.

    Raises
    ------
    InvalidArgumentError
        *max_depth* outside its range.
    InsufficientDataError
        Fewer than two samples.
    """
    ceiling = MAX_DEPTH if max_depth_ceiling is None else max_depth_ceiling
    if max_depth <= 0 or max_depth > ceiling:
        raise InvalidArgumentError("max_depth", max_depth, f"must be between 1 and {ceiling}")
    if len(samples) < 2:
        raise InsufficientDataError(
            "decision tree analysis",
            required=2,
            actual=len(samples),
            guidance="Split detection needs at least 2 samples to find a boundary",
        )

    ordered = sort_by_value(samples)
    values = np.array([s.measurement_value for s in ordered], dtype=float)
    moves = np.array([s.atr_movement for s in ordered], dtype=float)

    gaps = gap_splits(values)
    if len(gaps) >= 2:
        splits = gaps
    else:
        splits = list(gaps)
        for split in behavior_splits(values, moves):
            if all(abs(split - g) >= GAP_THRESHOLD for g in gaps):
                splits.append(split)
        splits = sorted(set(splits))

        if len(splits) < 2 and values.size > MIN_TREE_SAMPLES:
            fitted = tree_thresholds(values, moves, max_depth, random_state=random_state)
            logger.debug("Split detectors found %d splits; tree fallback added %d",
                         len(splits), len(fitted))
            splits = sorted(set(splits) | set(fitted))

    if len(splits) > max_depth:
        splits = select_significant_splits(splits, values, moves, max_depth)
    return [float(s) for s in splits]
