"""
Multi-objective boundary search with Pareto filtering.

Candidates come from three independent sources:

* gradient search once per objective, seeded at the wide quantile range
* sliding-window scans at targets 1.0 / 1.5 / 2.0 (top 3 each)
* static tertile and inter-quartile ranges

Every candidate is scored against every objective.  Non-dominated
candidates are ranked and returned best total score first.  A failing
source is logged and skipped.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..config import QUANTILES
from ..config_structured import QuantileRanges
from ..data.samples import PriceMovement
from ..errors import BoundaryEngineError
from .gradient_search import optimize_with_gradient_search
from .objectives import calculate_objective_value, range_stats
from .sliding_window import find_optimal_boundaries
from .types import OptimalBoundary, OptimizationObjective, ParetoSolution

logger = logging.getLogger(__name__)

SLIDING_TARGETS = (1.0, 1.5, 2.0)
SLIDING_PER_TARGET = 3
QUANTILE_TARGET = 1.5
QUANTILE_MIN_SAMPLES = 5
MAX_SOLUTIONS = 10

_SOURCE_ERRORS = (BoundaryEngineError, ValueError, ArithmeticError)


def dominates(a: ParetoSolution, b: ParetoSolution) -> bool:
    """Strict Pareto dominance on weighted scores."""
    strictly_better = False
    for sa, sb in zip(a.scores, b.scores):
        if sa < sb:
            return False
        if sa > sb:
            strictly_better = True
    return strictly_better


def pareto_front(candidates: Sequence[ParetoSolution]) -> List[ParetoSolution]:
    """Annotate dominance and rank; return only the non-dominated solutions.

    Ranks are 1..k in candidate order.  Inputs are not modified.
    """
    annotated = [
        replace(c, is_dominated=any(o is not c and dominates(o, c) for o in candidates))
        for c in candidates
    ]
    front = [c for c in annotated if not c.is_dominated]
    return [replace(c, domination_rank=i + 1) for i, c in enumerate(front)]


def _collect(source: str, build: Callable[[], List[OptimalBoundary]]) -> List[OptimalBoundary]:
    try:
        return build()
    except _SOURCE_ERRORS as exc:
        logger.warning("Pareto candidate source '%s' failed: %s", source, exc)
        return []


def _gradient_candidates(
    samples: Sequence[PriceMovement],
    objectives: Sequence[OptimizationObjective],
    sorted_values: np.ndarray,
    quantiles: QuantileRanges,
) -> List[OptimalBoundary]:
    n = sorted_values.size
    lo_q, hi_q = quantiles.wide
    seed = (float(sorted_values[int(n * lo_q)]), float(sorted_values[min(n - 1, int(n * hi_q))]))
    values = np.array([s.measurement_value for s in samples], dtype=float)
    moves = np.array([s.atr_movement for s in samples], dtype=float)
    out: List[OptimalBoundary] = []
    for objective in objectives:
        def build(objective=objective):
            found = optimize_with_gradient_search(samples, replace(objective, initial_range=seed))
            count, hr, expected, p_up = range_stats(
                values, moves, found.low, found.high, objective.min_atr_move
            )
            return [OptimalBoundary(
                range_low=found.low,
                range_high=found.high,
                confidence=found.objective_value,
                expected_atr_move=expected,
                sample_count=count,
                hit_rate=hr,
                probability_up=p_up,
                method=f"MultiObj_{objective.target.value}",
            )]
        out.extend(_collect(f"gradient:{objective.target.value}", build))
    return out


def _sliding_candidates(samples: Sequence[PriceMovement]) -> List[OptimalBoundary]:
    out: List[OptimalBoundary] = []
    for target in SLIDING_TARGETS:
        out.extend(_collect(
            f"sliding:{target}",
            lambda target=target: find_optimal_boundaries(samples, target, 5)[:SLIDING_PER_TARGET],
        ))
    return out


def _quantile_candidates(
    samples: Sequence[PriceMovement],
    sorted_values: np.ndarray,
    quantiles: QuantileRanges,
) -> List[OptimalBoundary]:
    n = sorted_values.size

    def at(q: float) -> float:
        return float(sorted_values[min(n - 1, int(n * q))])

    t1, t2 = quantiles.tertiles
    q1, q3 = quantiles.standard
    ranges = [
        (float(sorted_values[0]), at(t1)),
        (at(t1), at(t2)),
        (at(t2), float(sorted_values[-1])),
        (at(q1), at(q3)),
    ]
    values = np.array([s.measurement_value for s in samples], dtype=float)
    moves = np.array([s.atr_movement for s in samples], dtype=float)
    out: List[OptimalBoundary] = []
    for low, high in ranges:
        count, hr, expected, p_up = range_stats(values, moves, low, high, QUANTILE_TARGET)
        if count < QUANTILE_MIN_SAMPLES:
            continue
        out.append(OptimalBoundary(
            range_low=low,
            range_high=high,
            confidence=hr,
            expected_atr_move=expected,
            sample_count=count,
            hit_rate=hr,
            probability_up=p_up,
            method="Quartile",
        ))
    return out


def optimize_for_multiple_objectives(
    samples: Sequence[PriceMovement],
    objectives: Sequence[OptimizationObjective],
    quantiles: Optional[QuantileRanges] = None,
    max_solutions: int = MAX_SOLUTIONS,
) -> List[ParetoSolution]:
    """Return up to *max_solutions* Pareto-optimal boundaries.

    Parameters
    ----------
    samples : sequence of PriceMovement
    objectives : sequence of OptimizationObjective
        Each objective's ``weight`` scales its score; ``initial_range`` is
        ignored (searches are seeded from the data's wide quantiles).
    quantiles : QuantileRanges, optional
        Defaults to the configured ``QUANTILES``.

    Returns
    -------
    list of ParetoSolution
        Non-dominated solutions sorted by total weighted score, descending.
    """
    if not samples or not objectives:
        return []
    quantiles = quantiles or QUANTILES
    sorted_values = np.sort(np.array([s.measurement_value for s in samples], dtype=float))

    boundaries: List[OptimalBoundary] = []
    boundaries.extend(_gradient_candidates(samples, objectives, sorted_values, quantiles))
    boundaries.extend(_sliding_candidates(samples))
    boundaries.extend(_collect(
        "quantile", lambda: _quantile_candidates(samples, sorted_values, quantiles)
    ))

    candidates: List[ParetoSolution] = []
    for boundary in boundaries:
        scores = []
        raw = {}
        for objective in objectives:
            value = calculate_objective_value(
                samples, (boundary.range_low, boundary.range_high), objective
            )
            scores.append(value * objective.weight)
            raw[objective.target.value] = value
        candidates.append(ParetoSolution(boundary=boundary, scores=tuple(scores), objective_values=raw))

    front = pareto_front(candidates)
    logger.info(
        "Pareto search: %d candidates, %d on the front", len(candidates), len(front)
    )
    front.sort(key=lambda s: s.total_score, reverse=True)
    return front[:max_solutions]
