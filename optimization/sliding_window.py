"""
Sliding-window boundary scan.

Exhaustive coarse grid over ``[low, high]`` windows of the measurement
value.  The grid step is one fifteenth of the value range (at least 1), so
the scan stays cheap on sparse or noisy data.

Usage::

    boundaries = find_optimal_boundaries(samples, target_atr_move=1.5, max_ranges=5)
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from ..config import MAX_RANGES
from ..data.samples import PriceMovement, sort_by_value
from ..errors import InvalidArgumentError
from .types import OptimalBoundary

logger = logging.getLogger(__name__)

GRID_DIVISIONS = 15
MIN_WINDOW_SAMPLES = 3
METHOD_NAME = "SlidingWindow"


def find_optimal_boundaries(
    samples: Sequence[PriceMovement],
    target_atr_move: float,
    max_ranges: int,
    max_ranges_ceiling: Optional[int] = None,
) -> List[OptimalBoundary]:
    """Rank value windows by how reliably they precede large moves.

    Parameters
    ----------
    samples : sequence of PriceMovement
        Training samples, in any order.
    target_atr_move : float
        A sample "hits" when ``|atr_movement| >= target_atr_move``.
    max_ranges : int
        Number of boundaries to return; must be in ``[1, max_ranges_ceiling]``.
    max_ranges_ceiling : int, optional
        Hard ceiling on *max_ranges* (defaults to ``MAX_RANGES``).

    Returns
    -------
    list of OptimalBoundary
        At most *max_ranges* windows holding at least three samples, sorted
        by ``confidence = hit_rate * sqrt(n) / 3`` descending.
    """
    ceiling = MAX_RANGES if max_ranges_ceiling is None else max_ranges_ceiling
    if max_ranges <= 0 or max_ranges > ceiling:
        raise InvalidArgumentError(
            "max_ranges", max_ranges, f"must be between 1 and {ceiling}"
        )
    if not samples:
        return []

    ordered = sort_by_value(samples)
    values = np.array([s.measurement_value for s in ordered], dtype=float)
    moves = np.array([s.atr_movement for s in ordered], dtype=float)
    abs_moves = np.abs(moves)

    vmin, vmax = float(values[0]), float(values[-1])
    step = max(1.0, (vmax - vmin) / GRID_DIVISIONS)

    candidates: List[OptimalBoundary] = []
    i = 0
    while True:
        low = vmin + i * step
        if low >= vmax - step:
            break
        lo_idx = int(np.searchsorted(values, low, side="left"))
        j = 2
        while True:
            high = low + j * step
            if high > vmax:
                break
            hi_idx = int(np.searchsorted(values, high, side="right"))
            n = hi_idx - lo_idx
            if n >= MIN_WINDOW_SAMPLES:
                window_abs = abs_moves[lo_idx:hi_idx]
                hr = float(np.mean(window_abs >= target_atr_move))
                candidates.append(
                    OptimalBoundary(
                        range_low=low,
                        range_high=high,
                        confidence=hr * math.sqrt(n) / 3.0,
                        expected_atr_move=float(window_abs.mean()),
                        sample_count=n,
                        hit_rate=hr,
                        probability_up=float(np.mean(moves[lo_idx:hi_idx] > 0)),
                        method=METHOD_NAME,
                    )
                )
            j += 1
        i += 1

    candidates.sort(key=lambda b: b.confidence, reverse=True)
    logger.debug(
        "Sliding window scanned %d candidate windows (step=%.4f)", len(candidates), step
    )
    return candidates[:max_ranges]
