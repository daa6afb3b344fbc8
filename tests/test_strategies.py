"""Tests for the pluggable boundary strategies and their factory."""

import pytest

from boundary_engine.config_structured import MLOptimizationConfig
from boundary_engine.optimization.strategies import (
    ClusteringStrategy,
    DecisionTreeStrategy,
    GradientSearchStrategy,
    create_strategies,
    create_strategy,
    supported_strategies,
)
from boundary_engine.optimization.strategies.clustering import cluster_confidence
from boundary_engine.optimization.strategies.gradient import remove_overlaps
from boundary_engine.optimization.types import OptimalBoundary


class TestFactory:

    def test_supported_names(self):
        assert supported_strategies() == ["DecisionTree", "Clustering", "GradientSearch"]

    def test_create_by_name_is_case_insensitive(self):
        assert isinstance(create_strategy("decisiontree"), DecisionTreeStrategy)
        assert isinstance(create_strategy("Gradient Search"), GradientSearchStrategy)
        assert isinstance(create_strategy("CLUSTERING"), ClusteringStrategy)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            create_strategy("random_forest")

    def test_disabled_strategies_are_skipped(self):
        config = MLOptimizationConfig(use_clustering=False, use_gradient_search=False)
        names = [s.name for s in create_strategies(config)]
        assert names == ["DecisionTree"]


class TestTrainingDataValidation:

    def test_empty_samples_invalid(self):
        result = DecisionTreeStrategy().validate([])
        assert not result.is_valid
        assert "empty" in result.errors[0]

    def test_below_minimum_is_error(self, samples):
        result = DecisionTreeStrategy().validate(samples[:20])
        assert not result.is_valid
        assert any("Insufficient training data" in e for e in result.errors)

    def test_below_recommended_is_warning(self, samples):
        result = DecisionTreeStrategy().validate(samples[:100])
        assert result.is_valid
        assert result.recommended_sample_size == 200
        assert any("below recommended" in w for w in result.warnings)

    def test_identical_values_rejected(self, movement_factory):
        data = [movement_factory(50.0, 2.0 if i % 2 else 0.1, minutes=i) for i in range(60)]
        result = GradientSearchStrategy().validate(data)
        assert not result.is_valid
        assert any("identical" in e for e in result.errors)

    def test_two_unique_values_is_error(self, movement_factory):
        data = [movement_factory(40.0 + 20.0 * (i % 2), 2.0 if i % 3 else 0.1, minutes=i) for i in range(60)]
        result = GradientSearchStrategy().validate(data)
        assert not result.is_valid
        assert any("unique measurement values, got 2" in e for e in result.errors)

    def test_decision_tree_imbalance_below_leaf_size(self, movement_factory):
        strategy = DecisionTreeStrategy()
        data = [
            movement_factory(30.0 + 0.25 * i, 2.0 if i < strategy.min_samples_per_leaf - 1 else 0.1, minutes=i)
            for i in range(200)
        ]
        result = strategy.validate(data)
        assert result.is_valid
        assert any("Imbalanced dataset" in w for w in result.warnings)

    def test_clustering_reduces_cluster_count(self, samples):
        strategy = ClusteringStrategy()
        assert strategy.effective_cluster_count(15) == 3
        result = strategy.validate(samples[:15])
        assert any("Reducing cluster count from 5 to 3" in w for w in result.warnings)
        assert not result.is_valid

    def test_gradient_needs_both_move_sizes(self, movement_factory):
        data = [movement_factory(30.0 + i, 3.0, minutes=i) for i in range(40)]
        result = GradientSearchStrategy().validate(data)
        assert not result.is_valid


class TestStrategyExecution:

    @pytest.mark.parametrize("cls", [DecisionTreeStrategy, ClusteringStrategy, GradientSearchStrategy])
    def test_strategy_finds_hitting_boundaries(self, large_samples, cls):
        strategy = cls(MLOptimizationConfig(random_seed=42))
        result = strategy.optimize(large_samples)
        assert result.success, result.errors
        assert result.strategy_name == strategy.name
        for b in result.boundaries:
            assert b.range_low <= b.range_high
            assert b.hit_rate > 0.1
            assert 0.0 <= b.confidence <= 1.0
            assert b.method == strategy.name
        assert "Parameters" in result.diagnostics

    def test_decision_tree_isolates_band(self, large_samples):
        result = DecisionTreeStrategy(MLOptimizationConfig(random_seed=42)).optimize(large_samples)
        assert any(b.contains(65.0) and b.hit_rate > 0.8 for b in result.boundaries)

    def test_failed_validation_returns_unsuccessful_result(self, samples):
        result = DecisionTreeStrategy().optimize(samples[:5])
        assert not result.success
        assert result.boundaries == ()
        assert result.errors

    def test_algorithm_parameters_override_defaults(self):
        config = MLOptimizationConfig(algorithm_parameters={"DecisionTreeMaxDepth": 50, "ClusterCount": 20})
        assert DecisionTreeStrategy(config).max_depth == 20
        assert ClusteringStrategy(config).n_clusters == 10


class TestStrategyHelpers:

    def test_remove_overlaps_keeps_higher_hit_rate(self):
        a = OptimalBoundary(range_low=10, range_high=20, hit_rate=0.4)
        b = OptimalBoundary(range_low=15, range_high=25, hit_rate=0.6)
        c = OptimalBoundary(range_low=30, range_high=40, hit_rate=0.2)
        assert remove_overlaps([c, a, b]) == [b, c]

    def test_cluster_confidence_bounded(self):
        assert cluster_confidence(1000, 1.0, 0.0, 1000.0) == pytest.approx(1.0)
        assert 0.0 < cluster_confidence(5, 0.2, 10.0, 0.5) < 0.5
