"""
Hill-climbing search for the value range that maximises an objective.

Each iteration evaluates six unit-step neighbours of the current range
(move either edge, expand both, shrink both) and moves to the best
strictly-improving one.  The search stops when the improvement falls below
the convergence threshold.  Every other exit raises
``OptimizationConvergenceError`` carrying the improvement history.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from ..config import CONVERGENCE_THRESHOLD, MAX_ITERATIONS, STAGNATION_WINDOW
from ..data.samples import PriceMovement, measurement_values, movements
from ..errors import ConvergenceFailureReason, OptimizationConvergenceError
from .objectives import in_range_mask, objective_from_movements
from .types import OptimalRange, OptimizationObjective

logger = logging.getLogger(__name__)

STEP_SIZE = 1.0


def _neighbours(low: float, high: float, step: float) -> List[Tuple[float, float]]:
    return [
        (low - step, high),
        (low + step, high),
        (low, high - step),
        (low, high + step),
        (low - step, high + step),
        (low + step, high - step),
    ]


def optimize_with_gradient_search(
    samples: Sequence[PriceMovement],
    objective: OptimizationObjective,
    max_iterations: Optional[int] = None,
    convergence_threshold: Optional[float] = None,
    stagnation_window: Optional[int] = None,
    step_size: float = STEP_SIZE,
) -> OptimalRange:
    """Climb from ``objective.initial_range`` to a local optimum.

    Parameters
    ----------
    samples : sequence of PriceMovement
    objective : OptimizationObjective
        Target metric and the starting range.
    max_iterations, convergence_threshold, stagnation_window : optional
        Override the configured budgets.
    step_size : float
        Distance each edge moves per neighbour.

    Returns
    -------
    OptimalRange
        Converged range.  An empty sample list returns a zero range with
        ``converged=False``.

    Raises
    ------
    OptimizationConvergenceError
        ``INVALID_OBJECTIVE`` on a NaN/inf objective, ``NO_IMPROVEMENT`` on
        stagnation and ``MAX_ITERATIONS_REACHED`` when the budget runs out.
    """
    if not samples:
        return OptimalRange(low=0.0, high=0.0, objective_value=0.0, converged=False)

    max_iterations = MAX_ITERATIONS if max_iterations is None else max_iterations
    threshold = CONVERGENCE_THRESHOLD if convergence_threshold is None else convergence_threshold
    stagnation = STAGNATION_WINDOW if stagnation_window is None else stagnation_window
    target_name = objective.target.value

    values = measurement_values(samples)
    moves = movements(samples)

    def evaluate(low: float, high: float) -> float:
        return objective_from_movements(moves[in_range_mask(values, low, high)], objective)

    low, high = (float(v) for v in objective.initial_range)
    current = evaluate(low, high)
    history: List[float] = []
    last_improvement = 0
    converged = False
    iteration = 0

    for iteration in range(max_iterations):
        best, best_low, best_high = current, low, high
        for test_low, test_high in _neighbours(low, high, step_size):
            if test_low >= test_high:
                continue
            value = evaluate(test_low, test_high)
            if math.isnan(value) or math.isinf(value):
                raise OptimizationConvergenceError(
                    target=target_name,
                    completed_iterations=iteration,
                    max_iterations=max_iterations,
                    final_value=value,
                    threshold=threshold,
                    reason=ConvergenceFailureReason.INVALID_OBJECTIVE,
                    error_history=history,
                    message="Objective function returned a non-finite value during optimization",
                )
            if value > best:
                best, best_low, best_high = value, test_low, test_high
                last_improvement = iteration

        improvement = abs(best - current)
        history.append(improvement)

        if improvement < threshold:
            converged = True
            break

        if iteration - last_improvement > stagnation:
            raise OptimizationConvergenceError(
                target=target_name,
                completed_iterations=iteration,
                max_iterations=max_iterations,
                final_value=current,
                threshold=threshold,
                reason=ConvergenceFailureReason.NO_IMPROVEMENT,
                error_history=history,
                message=f"No improvement for {iteration - last_improvement} iterations",
            )

        low, high, current = best_low, best_high, best

    if not converged:
        raise OptimizationConvergenceError(
            target=target_name,
            completed_iterations=max_iterations,
            max_iterations=max_iterations,
            final_value=current,
            threshold=threshold,
            reason=ConvergenceFailureReason.MAX_ITERATIONS_REACHED,
            error_history=history,
            message="Optimization reached maximum iterations without convergence",
        )

    logger.debug(
        "Gradient search (%s) converged after %d iterations at [%.4f, %.4f] value=%.6f",
        target_name, iteration, low, high, current,
    )
    return OptimalRange(
        low=low,
        high=high,
        objective_value=current,
        iterations_used=iteration,
        converged=True,
        additional_metrics={
            "FinalStepSize": float(step_size),
            "ConvergenceThreshold": float(threshold),
        },
    )
