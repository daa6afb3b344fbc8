"""Tests for boundary validation and the cross-validation strategies."""

from datetime import timedelta

import pytest

from boundary_engine.config_structured import (
    CrossValidationConfig,
    CrossValidationMethod,
    MLOptimizationConfig,
)
from boundary_engine.errors import (
    ConvergenceFailureReason,
    InsufficientDataError,
    InvalidArgumentError,
    OptimizationConvergenceError,
)
from boundary_engine.optimization import BoundaryOptimizer
from boundary_engine.optimization.types import OptimalBoundary
from boundary_engine.validation import (
    CombinedOptimizationMethod,
    CrossValidationService,
    ExpandingWindowValidationStrategy,
    KFoldValidationStrategy,
    RollingWindowValidationStrategy,
    SlidingWindowMethod,
    TimeSeriesCrossValidationResult,
    create_validation_strategy,
    validate_boundaries,
)
from boundary_engine.validation.boundary_validator import relative_degradation
from boundary_engine.validation.expanding_window import expanding_splits
from boundary_engine.validation.kfold import make_folds
from boundary_engine.validation.metrics import temporal_degradation, window_consistency
from boundary_engine.validation.rolling_window import rolling_splits


class _BrokenMethod:
    def train(self, samples, config):
        raise RuntimeError("training blew up")

    def evaluate(self, boundaries, samples, config):
        return 0.0


class _ConstantMethod:
    """Returns one fixed boundary and scores every fold the same."""

    def __init__(self, score=0.5):
        self.score = score

    def train(self, samples, config):
        return [OptimalBoundary(range_low=0.0, range_high=100.0, hit_rate=0.5, sample_count=len(samples))]

    def evaluate(self, boundaries, samples, config):
        return self.score


class TestBoundaryValidator:

    def test_identical_performance_is_stable(self, movement_factory):
        test = [movement_factory(5.0 + i, 2.0, minutes=i) for i in range(4)]
        boundary = OptimalBoundary(
            range_low=0.0, range_high=10.0, hit_rate=1.0, expected_atr_move=1.5, sample_count=4
        )
        result = validate_boundaries([boundary], test)
        assert result.performance_degradation == pytest.approx(0.0)
        assert not result.is_overfitted
        assert len(result.stable_boundaries) == 1
        assert result.metrics["StableBoundariesPct"] == 1.0
        assert result.metrics["TestSampleSize"] == 4.0

    def test_collapsed_boundary_flags_overfitting(self, movement_factory):
        test = [movement_factory(5.0 + i, 0.1, minutes=i) for i in range(4)]
        boundary = OptimalBoundary(
            range_low=0.0, range_high=10.0, hit_rate=0.8, expected_atr_move=1.5, sample_count=9
        )
        result = validate_boundaries([boundary], test)
        detail = result.boundary_performance[0]
        assert detail.out_of_sample_hit_rate == 0.0
        assert detail.degradation == pytest.approx(1.0)
        assert detail.stability_score == 0.0
        assert not detail.is_stable
        assert result.is_overfitted

    def test_empty_inputs_are_overfitted(self, samples):
        result = validate_boundaries([], samples)
        assert result.is_overfitted
        assert result.performance_degradation == 1.0
        assert result.in_sample_performance == 0.0

    def test_aggregate_weighted_by_sample_count(self, movement_factory):
        test = [movement_factory(5.0, 2.0), movement_factory(50.0, 0.0, minutes=1)]
        big = OptimalBoundary(range_low=0, range_high=10, hit_rate=1.0, expected_atr_move=1.0, sample_count=100)
        small = OptimalBoundary(range_low=40, range_high=60, hit_rate=1.0, expected_atr_move=1.0, sample_count=1)
        result = validate_boundaries([big, small], test)
        assert result.out_of_sample_performance == pytest.approx(10.0 / 11.0)

    def test_relative_degradation(self):
        assert relative_degradation(0.0, 0.5) == 1.0
        assert relative_degradation(0.5, 0.25) == pytest.approx(0.5)
        assert relative_degradation(0.5, 0.75) == pytest.approx(0.5)


class TestKFold:

    def test_folds_partition_samples(self, samples):
        folds = make_folds(samples[:203] + samples[:3], 5, seed=1)
        sizes = [len(f) for f in folds]
        assert sum(sizes) == 203
        assert sizes == [41, 41, 41, 40, 40]

    def test_seeded_folds_reproducible(self, samples):
        a = make_folds(samples, 4, seed=9)
        b = make_folds(samples, 4, seed=9)
        assert a == b

    @pytest.mark.parametrize("k", [0, 1])
    def test_invalid_k(self, samples, k):
        with pytest.raises(InvalidArgumentError):
            make_folds(samples, k)

    def test_strategy_runs_every_fold(self, samples):
        strategy = KFoldValidationStrategy(CrossValidationConfig(k_folds=5, random_seed=42))
        result = strategy.validate(samples, SlidingWindowMethod())
        assert result.fold_count == 5
        assert sum(f.validation_sample_count for f in result.fold_results) == len(samples)
        assert all(f.training_sample_count == 160 for f in result.fold_results)
        assert result.metrics["FoldCount"] == 5.0
        assert result.best_fold.validation_score == max(result.fold_scores)
        low, high = result.confidence_interval
        assert low <= result.mean_score <= high

    def test_fewer_samples_than_folds(self, samples):
        strategy = KFoldValidationStrategy(CrossValidationConfig(k_folds=5))
        with pytest.raises(InsufficientDataError):
            strategy.validate(samples[:3], SlidingWindowMethod())

    def test_overfitting_flag_uses_gap(self, samples):
        class Overfit(_ConstantMethod):
            def evaluate(self, boundaries, data, config):
                return 0.9 if len(data) > 100 else 0.1

        result = KFoldValidationStrategy(CrossValidationConfig(random_seed=3)).validate(samples, Overfit())
        assert result.is_overfitting
        assert result.metrics["TrainValGap"] == pytest.approx(0.8)

    def test_combined_orchestrator_as_method(self, samples):
        strategy = KFoldValidationStrategy(
            CrossValidationConfig(k_folds=3, random_seed=7),
            ml_config=MLOptimizationConfig(random_seed=7),
        )
        result = strategy.validate(samples, CombinedOptimizationMethod())
        assert result.fold_count == 3
        assert sum(f.validation_sample_count for f in result.fold_results) == len(samples)
        for fold in result.fold_results:
            assert 0.0 <= fold.validation_score <= 1.0
            assert 0.0 <= fold.training_score <= 1.0


class TestTimeSeriesSplits:

    def test_expanding_splits_grow(self):
        pairs = expanding_splits(200, 0.3, 0.1)
        assert pairs[0] == (60, 80)
        assert pairs[-1] == (180, 200)
        assert len(pairs) == 7

    def test_expanding_small_sample_fallback(self):
        assert expanding_splits(20, 0.3, 0.1)[0] == (10, 12)

    def test_rolling_splits_constant_train(self):
        triples = rolling_splits(200, 0.5, 0.1)
        assert len(triples) == 5
        assert {end - start for start, end, _ in triples} == {100}
        assert triples[-1][2] == 200

    def test_no_split_fits(self):
        assert rolling_splits(1, 0.5, 0.1) == []


class TestTimeSeriesStrategies:

    def test_expanding_respects_time_order(self, samples):
        strategy = ExpandingWindowValidationStrategy(CrossValidationConfig())
        result = strategy.validate(list(reversed(samples)), SlidingWindowMethod())
        assert isinstance(result, TimeSeriesCrossValidationResult)
        counts = [f.training_sample_count for f in result.fold_results]
        assert counts == sorted(counts)
        for fold in result.fold_results:
            start, end = fold.date_range
            assert start == samples[0].start_timestamp
            assert start < end
        assert result.metrics["WindowCount"] == 7.0
        assert "EstimatedOptimalLookbackDays" in result.metrics
        assert set(result.stationarity_tests) == {"PerformanceVariance", "TemporalTrend"}

    def test_rolling_constant_window_and_consistency(self, samples):
        strategy = RollingWindowValidationStrategy(CrossValidationConfig())
        result = strategy.validate(samples, _ConstantMethod(0.5))
        assert {f.training_sample_count for f in result.fold_results} == {100}
        assert result.metrics["WindowConsistency"] == pytest.approx(1.0)
        assert result.stationarity_tests["WindowConsistency"] == pytest.approx(1.0)
        assert result.is_stationary
        assert result.temporal_degradation == 0.0

    def test_declining_scores_break_stationarity(self, samples):
        origin = samples[0].start_timestamp

        class Declining(_ConstantMethod):
            def evaluate(self, boundaries, data, config):
                minutes = (data[0].start_timestamp - origin).total_seconds() / 60.0
                return 1.0 - minutes / 1000.0

        result = ExpandingWindowValidationStrategy(CrossValidationConfig()).validate(samples, Declining())
        assert result.fold_scores == pytest.approx((0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1))
        assert result.temporal_degradation == pytest.approx(0.1)
        assert not result.is_stationary
        assert temporal_degradation([0.9, 0.6, 0.3]) == pytest.approx(0.3)

    def test_no_window_fits_raises(self, samples):
        strategy = RollingWindowValidationStrategy(CrossValidationConfig(rolling_window=0.9, step_size=0.5))
        with pytest.raises(InsufficientDataError):
            strategy.validate(samples, SlidingWindowMethod())

    def test_window_consistency(self):
        assert window_consistency([0.5]) == 1.0
        assert window_consistency([0.0, 0.0]) == 1.0
        assert window_consistency([0.2, 0.6]) == pytest.approx(0.5)


class TestCrossValidationService:

    def test_strategy_chosen_from_config(self):
        config = CrossValidationConfig(strategy=CrossValidationMethod.TIME_SERIES_ROLLING)
        assert isinstance(create_validation_strategy(config), RollingWindowValidationStrategy)

    def test_enriched_metrics(self, samples):
        service = CrossValidationService(CrossValidationConfig(random_seed=42))
        result = service.perform(samples)
        for key in ("TrainMean", "ValidationMean", "BiasVarianceGap", "OverfittingRisk",
                    "CVStability", "SampleEfficiency", "DataSize", "UniqueValues", "DataSparsity"):
            assert key in result.metrics
        assert result.metrics["DataSize"] == 200.0
        assert 0.0 <= result.metrics["CVStability"] <= 1.0
        assert result.metrics["OverfittingRisk"] >= 0.0

    def test_too_few_samples(self, samples):
        with pytest.raises(InsufficientDataError):
            CrossValidationService().perform(samples[:4])

    def test_unexpected_failure_wrapped(self, samples):
        service = CrossValidationService(CrossValidationConfig(random_seed=1))
        with pytest.raises(OptimizationConvergenceError) as exc_info:
            service.perform(samples, _BrokenMethod())
        err = exc_info.value
        assert err.reason is ConvergenceFailureReason.ALGORITHM_ERROR
        assert isinstance(err.__cause__, RuntimeError)
        assert "K-Fold" in str(err)

    def test_factory_helpers(self):
        service = CrossValidationService()
        kfold = service.create_kfold_strategy(k=3, random_seed=5)
        assert kfold.config.k_folds == 3 and kfold.config.random_seed == 5
        expanding = service.create_expanding_window_strategy(0.4, 0.2)
        assert expanding.config.min_train_window == 0.4
        rolling = service.create_rolling_window_strategy(0.6, 0.05)
        assert rolling.config.rolling_window == 0.6 and rolling.config.step_size == 0.05


class TestOptimizerCrossValidation:

    def test_k_fold_seeded_reproducible(self, samples):
        optimizer = BoundaryOptimizer()
        a = optimizer.k_fold_cross_validation(samples, k=4, seed=11)
        b = optimizer.k_fold_cross_validation(samples, k=4, seed=11)
        assert a.fold_scores == b.fold_scores
        assert a.fold_count == 4

    def test_k_fold_argument_checks(self, samples):
        optimizer = BoundaryOptimizer()
        with pytest.raises(InvalidArgumentError):
            optimizer.k_fold_cross_validation(samples, k=1)
        with pytest.raises(InsufficientDataError):
            optimizer.k_fold_cross_validation([], k=5)

    def test_time_series_k_fold_steps_by_one_over_k(self, samples):
        result = BoundaryOptimizer().time_series_k_fold(samples, k=5)
        assert [f.training_sample_count for f in result.fold_results] == [60, 100, 140]

    @pytest.mark.parametrize("fraction", [0.0, 1.0, -0.2, 1.5])
    def test_window_fractions_must_be_open_unit(self, samples, fraction):
        optimizer = BoundaryOptimizer()
        with pytest.raises(InvalidArgumentError):
            optimizer.expanding_window_validation(samples, fraction, 0.1)
        with pytest.raises(InvalidArgumentError):
            optimizer.rolling_window_validation(samples, 0.5, fraction)

    def test_rolling_lookback_positive(self, samples):
        result = BoundaryOptimizer().rolling_window_validation(samples, 0.5, 0.1)
        assert result.fold_count == 5
        assert result.optimal_lookback > timedelta(0)
