"""
Boundary search algorithms and the combined optimizer.

Modules:
    sliding_window  — grid scan of value windows ranked by hit rate
    splits          — gap / behaviour / tree split detection
    clustering      — 2-D k-means over (value, movement)
    gradient_search — hill climbing on a single objective
    combined        — train/validate orchestration of all strategies
    pareto          — multi-objective candidate pool and Pareto front
    optimizer       — BoundaryOptimizer facade
"""
from .clustering import optimize_with_clustering
from .combined import run_combined_optimization
from .gradient_search import optimize_with_gradient_search
from .objectives import calculate_objective_value
from .pareto import optimize_for_multiple_objectives
from .sliding_window import find_optimal_boundaries
from .splits import optimize_with_decision_tree
from .types import (
    ClusterResult,
    CombinedOptimizationResult,
    MethodResult,
    OptimalBoundary,
    OptimalRange,
    OptimizationObjective,
    OptimizationTarget,
    ParetoSolution,
    StrategyResult,
    TrainingDataValidation,
)


# The facade pulls in the validation package, which itself imports from
# this package; resolve it on first access.
def __getattr__(name):
    """Lazy import for the BoundaryOptimizer facade."""
    if name == "BoundaryOptimizer":
        from .optimizer import BoundaryOptimizer
        globals()["BoundaryOptimizer"] = BoundaryOptimizer
        return BoundaryOptimizer
    raise AttributeError(f"module 'optimization' has no attribute {name!r}")


__all__ = [
    "BoundaryOptimizer",
    "ClusterResult",
    "CombinedOptimizationResult",
    "MethodResult",
    "OptimalBoundary",
    "OptimalRange",
    "OptimizationObjective",
    "OptimizationTarget",
    "ParetoSolution",
    "StrategyResult",
    "TrainingDataValidation",
    "calculate_objective_value",
    "find_optimal_boundaries",
    "optimize_for_multiple_objectives",
    "optimize_with_clustering",
    "optimize_with_decision_tree",
    "optimize_with_gradient_search",
    "run_combined_optimization",
]
