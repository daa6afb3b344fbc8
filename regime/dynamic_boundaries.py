"""
Dynamic boundaries — re-optimize over sliding time windows and flag shifts.

The samples are sorted by timestamp and cut into overlapping windows.
Each window gets its single best sliding-window boundary; consecutive
boundaries are compared and a large relative move of the edges marks a
regime change.

Usage::

    windows = find_dynamic_boundaries(samples, window_size=100, step_size=20)
    shifts = [w for w in windows if w.regime_change]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from ..config import (
    DYNAMIC_STEP_SIZE,
    DYNAMIC_TARGET_ATR_MOVE,
    DYNAMIC_WINDOW_SIZE,
    REGIME_CHANGE_RATIO,
)
from ..data.samples import PriceMovement, sort_by_time
from ..errors import InvalidArgumentError
from ..optimization.sliding_window import find_optimal_boundaries
from ..optimization.types import OptimalRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DynamicBoundaryWindow:
    """Best boundary of one time window.

    Attributes
    ----------
    start_time, end_time : datetime
        Timestamps of the first and last sample in the window.
    boundary : OptimalRange
        Best range; ``objective_value`` carries the boundary confidence.
    confidence : float
        Sliding-window confidence of the boundary.
    sample_size : int
        Samples in the window.
    regime_change : bool
        Edges moved by more than the regime-change ratio relative to the
        previous kept window.
    stability_score : float
        ``max(0, 1 - change_ratio)``; 1.0 for the first window.
    """

    start_time: datetime
    end_time: datetime
    boundary: OptimalRange
    confidence: float
    sample_size: int
    regime_change: bool = False
    stability_score: float = 1.0


def boundary_change_ratio(previous: OptimalRange, current: OptimalRange) -> Optional[float]:
    """Total edge displacement relative to the mean width of both ranges.

    Returns ``None`` when the mean width is not positive.
    """
    moved = abs(current.low - previous.low) + abs(current.high - previous.high)
    avg_width = ((current.high - current.low) + (previous.high - previous.low)) / 2.0
    if avg_width <= 0:
        return None
    return moved / avg_width


def find_dynamic_boundaries(
    samples: Sequence[PriceMovement],
    window_size: int = DYNAMIC_WINDOW_SIZE,
    step_size: int = DYNAMIC_STEP_SIZE,
    target_atr_move: float = DYNAMIC_TARGET_ATR_MOVE,
    regime_change_ratio: float = REGIME_CHANGE_RATIO,
) -> List[DynamicBoundaryWindow]:
    """Track the best boundary through time.

    Parameters
    ----------
    samples : sequence of PriceMovement
    window_size : int
        Samples per window (positive).
    step_size : int
        Samples between window starts (positive).
    target_atr_move : float
        Hit threshold for the per-window search.
    regime_change_ratio : float
        Change ratio above which a window is flagged as a regime change.

    Returns
    -------
    list of DynamicBoundaryWindow
        One entry per window that produced a boundary, in time order.
        Empty when there are fewer samples than *window_size*.
    """
    if window_size <= 0:
        raise InvalidArgumentError("window_size", window_size, "must be positive")
    if step_size <= 0:
        raise InvalidArgumentError("step_size", step_size, "must be positive")
    if len(samples) < window_size:
        return []

    ordered = sort_by_time(samples)
    windows: List[DynamicBoundaryWindow] = []
    for start in range(0, len(ordered) - window_size + 1, step_size):
        window = ordered[start:start + window_size]
        found = find_optimal_boundaries(window, target_atr_move, 1)
        if not found:
            logger.debug("No boundary in window starting at %s", window[0].start_timestamp)
            continue
        best = found[0]
        current = OptimalRange(
            low=best.range_low, high=best.range_high, objective_value=best.confidence
        )

        regime_change, stability = False, 1.0
        if windows:
            ratio = boundary_change_ratio(windows[-1].boundary, current)
            if ratio is not None:
                regime_change = ratio > regime_change_ratio
                stability = max(0.0, 1.0 - ratio)

        windows.append(
            DynamicBoundaryWindow(
                start_time=window[0].start_timestamp,
                end_time=window[-1].start_timestamp,
                boundary=current,
                confidence=best.confidence,
                sample_size=window_size,
                regime_change=regime_change,
                stability_score=stability,
            )
        )

    logger.info(
        "Dynamic boundaries: %d windows, %d regime changes",
        len(windows), sum(w.regime_change for w in windows),
    )
    return windows
