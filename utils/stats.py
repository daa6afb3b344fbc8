"""
Shared numeric helpers: dispersion, Student-t critical values, confidence
intervals and trend slopes.

Stateless and dependency-light so the optimizers, the validators and the
external correlation collaborator can all reuse them.
"""
from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from scipy import stats

# Beyond this many degrees of freedom the t distribution is replaced by
# the normal distribution.
NORMAL_APPROX_DF = 100


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation (ddof=1); 0.0 for fewer than two values."""
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return 0.0
    return float(np.std(arr, ddof=1))


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0); 0.0 for an empty input."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.std(arr))


def t_critical_value(df: int, confidence: float = 0.95) -> float:
    """Two-sided critical value for a Student-t interval.

    Parameters
    ----------
    df : int
        Degrees of freedom (must be >= 1).
    confidence : float
        Coverage probability in (0, 1).

    Returns
    -------
    float
        ``t_{1-alpha/2, df}`` for ``df < 100``; the normal quantile
        ``z_{1-alpha/2}`` otherwise.
    """
    if df < 1:
        raise ValueError(f"degrees of freedom must be >= 1, got {df}")
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    q = 1.0 - (1.0 - confidence) / 2.0
    if df >= NORMAL_APPROX_DF:
        return float(stats.norm.ppf(q))
    return float(stats.t.ppf(q, df))


def confidence_interval(values: Sequence[float], confidence: float = 0.95) -> Tuple[float, float]:
    """Mean ± t·SE interval; ``(0.0, 0.0)`` for fewer than two values."""
    arr = np.asarray(values, dtype=float)
    n = arr.size
    if n < 2:
        return 0.0, 0.0
    mean = float(arr.mean())
    margin = t_critical_value(n - 1, confidence) * sample_std(arr) / math.sqrt(n)
    return mean - margin, mean + margin


def least_squares_slope(values: Sequence[float]) -> float:
    """Slope of an OLS fit of *values* against their index 0..n-1."""
    y = np.asarray(values, dtype=float)
    n = y.size
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    dx = x - x.mean()
    denom = float((dx ** 2).sum())
    if denom == 0:
        return 0.0
    return float((dx * (y - y.mean())).sum() / denom)


def sqrt_weighted_mean(values: Sequence[float], counts: Sequence[int]) -> float:
    """Mean of *values* weighted by ``sqrt(count)``; 0.0 when all weights vanish."""
    v = np.asarray(values, dtype=float)
    w = np.sqrt(np.asarray(counts, dtype=float))
    total = float(w.sum())
    if total <= 0:
        return 0.0
    return float((v * w).sum() / total)
