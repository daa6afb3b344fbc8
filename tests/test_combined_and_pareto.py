"""Tests for the combined optimization orchestrator and Pareto search."""

import numpy as np
import pytest

from boundary_engine.config_structured import MLOptimizationConfig, QuantileRanges
from boundary_engine.optimization.combined import run_combined_optimization, train_validation_split
from boundary_engine.optimization.objectives import hit_rate, range_movements
from boundary_engine.optimization.pareto import (
    _gradient_candidates,
    dominates,
    optimize_for_multiple_objectives,
    pareto_front,
)
from boundary_engine.optimization.strategies import DecisionTreeStrategy
from boundary_engine.optimization.types import (
    OptimalBoundary,
    OptimizationObjective,
    OptimizationTarget,
    ParetoSolution,
)
from boundary_engine.validation import validate_boundaries


class _ExplodingStrategy(DecisionTreeStrategy):
    @property
    def name(self):
        return "Exploding"

    def optimize(self, samples):
        raise RuntimeError("boom")


class TestCombinedOptimization:

    def test_all_enabled_strategies_reported(self, large_samples):
        result = run_combined_optimization(large_samples, MLOptimizationConfig(random_seed=42))
        assert set(result.method_results) == {"DecisionTree", "Clustering", "GradientSearch"}
        assert result.optimal_boundaries == result.method_results[result.best_method].boundaries
        assert result.best_score == max(r.validation_score for r in result.method_results.values())
        assert result.train_size == 480
        assert result.validation_size == 120

    def test_only_enabled_strategies_run(self, large_samples):
        config = MLOptimizationConfig(use_decision_tree=False, use_gradient_search=False, random_seed=1)
        result = run_combined_optimization(large_samples, config)
        assert list(result.method_results) == ["Clustering"]

    def test_failing_strategy_scored_zero(self, large_samples):
        config = MLOptimizationConfig(random_seed=42)
        strategies = [_ExplodingStrategy(config), DecisionTreeStrategy(config)]
        result = run_combined_optimization(large_samples, config, strategies=strategies)
        exploded = result.method_results["Exploding"]
        assert exploded.validation_score == 0.0
        assert "boom" in exploded.diagnostics["Error"]
        assert result.best_method == "DecisionTree"

    def test_insufficient_data_degrades_every_strategy(self, samples):
        result = run_combined_optimization(samples[:30], MLOptimizationConfig())
        assert len(result.method_results) == 3
        for method in result.method_results.values():
            assert method.validation_score == 0.0
            assert "Error" in method.diagnostics
        assert result.best_score == 0.0

    def test_no_strategies(self, samples):
        result = run_combined_optimization(samples, strategies=[])
        assert result.best_method == "None"
        assert result.optimal_boundaries == ()

    def test_split_preserves_order(self, samples):
        train, validation = train_validation_split(samples, 0.25)
        assert train + validation == list(samples)
        assert len(train) == 150


class TestParetoFront:

    @staticmethod
    def _solution(*scores):
        return ParetoSolution(boundary=OptimalBoundary(range_low=0, range_high=1), scores=tuple(scores))

    def test_dominance_is_strict(self):
        a, b = self._solution(1.0, 1.0), self._solution(1.0, 1.0)
        assert not dominates(a, b)
        assert dominates(self._solution(2.0, 1.0), b)
        assert not dominates(self._solution(2.0, 0.5), b)

    def test_front_ranks_survivors_without_mutating_inputs(self):
        candidates = [
            self._solution(1, 1),
            self._solution(2, 2),
            self._solution(2, 1),
            self._solution(0, 3),
        ]
        front = pareto_front(candidates)
        assert [s.scores for s in front] == [(2, 2), (0, 3)]
        assert [s.domination_rank for s in front] == [1, 2]
        assert all(not s.is_dominated for s in front)
        assert all(c.domination_rank == 0 and not c.is_dominated for c in candidates)


class TestMultiObjectiveSearch:

    @pytest.fixture
    def objectives(self):
        return [
            OptimizationObjective(target=OptimizationTarget.LARGE_MOVE_PROBABILITY, min_atr_move=1.5),
            OptimizationObjective(target=OptimizationTarget.HIGHEST_WIN_RATE, weight=2.0),
        ]

    def test_empty_inputs(self, samples, objectives):
        assert optimize_for_multiple_objectives([], objectives) == []
        assert optimize_for_multiple_objectives(samples, []) == []

    def test_returns_ranked_front(self, samples, objectives):
        front = optimize_for_multiple_objectives(samples, objectives)
        assert 0 < len(front) <= 10
        totals = [s.total_score for s in front]
        assert totals == sorted(totals, reverse=True)
        ranks = [s.domination_rank for s in front]
        assert len(set(ranks)) == len(ranks) and min(ranks) >= 1
        for s in front:
            assert not s.is_dominated
            assert len(s.scores) == 2
            assert set(s.objective_values) == {"LargeMoveProbability", "HighestWinRate"}
            assert s.scores[1] == pytest.approx(2.0 * s.objective_values["HighestWinRate"])
        for a in front:
            assert not any(dominates(b, a) for b in front)

    def test_candidate_sources_are_labelled(self, samples, objectives):
        front = optimize_for_multiple_objectives(samples, objectives, max_solutions=100)
        methods = {s.boundary.method for s in front}
        assert methods <= {
            "SlidingWindow",
            "Quartile",
            "MultiObj_LargeMoveProbability",
            "MultiObj_HighestWinRate",
        }

    def test_gradient_candidates_carry_hit_rate(self, samples, objectives):
        sorted_values = np.sort([s.measurement_value for s in samples])
        candidates = _gradient_candidates(samples, objectives[:1], sorted_values, QuantileRanges())
        assert [c.method for c in candidates] == ["MultiObj_LargeMoveProbability"]
        boundary = candidates[0]
        inside = range_movements(samples, boundary.range_low, boundary.range_high)
        assert boundary.sample_count == inside.size > 0
        assert boundary.hit_rate == pytest.approx(hit_rate(inside, 1.5))
        assert boundary.hit_rate > 0.0

        result = validate_boundaries([boundary], samples)
        assert result.in_sample_performance == pytest.approx(boundary.hit_rate)
        assert result.performance_degradation < 1.0
