"""
Value objects produced by the boundary searches.

Every type here is frozen: strategies build them once and nothing
downstream mutates them.  Ranking and Pareto annotation produce new
instances via ``dataclasses.replace``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..data.samples import PriceMovement


@dataclass(frozen=True)
class OptimalBoundary:
    """A closed interval ``[range_low, range_high]`` over measurement value.

    ``hit_rate`` is the fraction of in-range training samples whose absolute
    movement met the target; ``expected_atr_move`` is their mean absolute
    movement.  ``method`` names the producing strategy.
    """

    range_low: float
    range_high: float
    confidence: float = 0.0
    expected_atr_move: float = 0.0
    sample_count: int = 0
    hit_rate: float = 0.0
    probability_up: float = 0.0
    method: str = ""

    def contains(self, value: float) -> bool:
        return self.range_low <= value <= self.range_high


@dataclass(frozen=True)
class ClusterResult:
    """One k-means cluster and the boundary range derived from it."""

    center: float
    avg_movement: float
    count: int
    members: Tuple[PriceMovement, ...] = ()
    variance: float = 0.0
    boundary_range: Tuple[float, float] = (0.0, 0.0)


class OptimizationTarget(Enum):
    HIGHEST_WIN_RATE = "HighestWinRate"
    LARGE_MOVE_PROBABILITY = "LargeMoveProbability"
    CONSISTENT_RESULTS = "ConsistentResults"
    AVERAGE_MOVEMENT = "AverageMovement"


@dataclass(frozen=True)
class OptimizationObjective:
    """What a gradient or Pareto search maximises.

    ``min_atr_move`` is only read by ``LARGE_MOVE_PROBABILITY``.
    ``weight`` scales the objective when several are combined.
    """

    target: OptimizationTarget = OptimizationTarget.AVERAGE_MOVEMENT
    min_atr_move: float = 1.0
    initial_range: Tuple[float, float] = (0.0, 0.0)
    weight: float = 1.0

    def __post_init__(self):
        if isinstance(self.target, str):
            object.__setattr__(self, "target", OptimizationTarget(self.target))


@dataclass(frozen=True)
class OptimalRange:
    """Result of a gradient search."""

    low: float
    high: float
    objective_value: float = 0.0
    iterations_used: int = 0
    converged: bool = False
    additional_metrics: Dict[str, float] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class ParetoSolution:
    """A candidate boundary scored against several objectives.

    ``scores`` holds the weighted score per objective in the order the
    objectives were supplied; ``objective_values`` holds the raw values
    keyed by target name.  ``is_dominated`` and ``domination_rank`` are set
    by the Pareto filter, which returns new instances.
    """

    boundary: OptimalBoundary
    scores: Tuple[float, ...] = ()
    objective_values: Dict[str, float] = field(default_factory=dict, compare=False, hash=False)
    is_dominated: bool = False
    domination_rank: int = 0

    @property
    def total_score(self) -> float:
        return float(sum(self.scores))


@dataclass(frozen=True)
class TrainingDataValidation:
    """Outcome of a strategy's pre-flight check on its training data."""

    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    recommended_sample_size: int = 0


@dataclass(frozen=True)
class StrategyResult:
    strategy_name: str
    success: bool
    boundaries: Tuple[OptimalBoundary, ...] = ()
    diagnostics: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    execution_time: float = 0.0


@dataclass(frozen=True)
class MethodResult:
    """Per-strategy entry in a combined optimization run."""

    method_name: str
    boundaries: Tuple[OptimalBoundary, ...] = ()
    validation_score: float = 0.0
    execution_time: float = 0.0
    parameters: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    diagnostics: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class CombinedOptimizationResult:
    """Winner of a combined run plus every strategy's result for comparison.

    ``optimal_boundaries`` is always ``method_results[best_method].boundaries``
    when at least one strategy ran; otherwise ``best_method`` is ``"None"``.
    """

    optimal_boundaries: Tuple[OptimalBoundary, ...] = ()
    best_method: str = "None"
    best_score: float = 0.0
    method_results: Dict[str, MethodResult] = field(default_factory=dict, compare=False, hash=False)
    train_size: int = 0
    validation_size: int = 0

    def ranking(self) -> List[Tuple[str, float]]:
        """Strategies ordered by validation score, best first."""
        return sorted(
            ((name, r.validation_score) for name, r in self.method_results.items()),
            key=lambda kv: kv[1],
            reverse=True,
        )

    def get(self, method_name: str) -> Optional[MethodResult]:
        return self.method_results.get(method_name)
