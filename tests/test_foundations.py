"""Tests for configuration, errors, samples, statistics and metric emission."""

import json
import logging
import math

import numpy as np
import pandas as pd
import pytest
from scipy import stats as sp_stats

from boundary_engine.config import validate_config
from boundary_engine.config_structured import (
    CrossValidationConfig,
    CrossValidationMethod,
    MLOptimizationConfig,
    OptimizationConfig,
    QuantileRanges,
    get_config,
)
from boundary_engine.data.samples import PriceDirection, samples_from_frame, samples_to_frame
from boundary_engine.errors import (
    BoundaryEngineError,
    ConvergenceFailureReason,
    DataValidationError,
    InsufficientDataError,
    InvalidArgumentError,
    NumericalFailureError,
    NumericalFailureKind,
    OptimizationConvergenceError,
)
from boundary_engine.optimization.types import CombinedOptimizationResult, MethodResult
from boundary_engine.reproducibility import make_generator, seeded_generator, sklearn_random_state
from boundary_engine.utils.logging import OptimizationMetricsEmitter, StructuredFormatter
from boundary_engine.utils.stats import (
    confidence_interval,
    least_squares_slope,
    sample_std,
    sqrt_weighted_mean,
    t_critical_value,
)
from boundary_engine.validation import enforce_sample_preconditions, validate_samples
from boundary_engine.validation.results import CrossValidationResult


class TestConfig:

    def test_singleton(self):
        assert get_config() is get_config()

    def test_defaults(self):
        cfg = get_config()
        assert cfg.cross_validation.k_folds == 5
        assert cfg.cross_validation.strategy is CrossValidationMethod.KFOLD
        assert cfg.ml_optimization.enabled_strategy_names == ("DecisionTree", "Clustering", "GradientSearch")

    def test_strategy_accepts_string(self):
        assert CrossValidationConfig(strategy="rolling").strategy is CrossValidationMethod.TIME_SERIES_ROLLING

    @pytest.mark.parametrize("kwargs", [
        {"k_folds": 1},
        {"step_size": 0.0},
        {"rolling_window": 1.0},
        {"overfitting_gap": -0.1},
    ])
    def test_invalid_cross_validation_config(self, kwargs):
        with pytest.raises(ValueError):
            CrossValidationConfig(**kwargs)

    def test_default_config_only_warns(self):
        issues = validate_config()
        assert all(issue["level"] == "WARNING" for issue in issues)
        assert any("random seed" in issue["message"] for issue in issues)

    def test_invalid_ml_config(self):
        with pytest.raises(ValueError):
            MLOptimizationConfig(target_atr_move=0.0)
        with pytest.raises(ValueError):
            MLOptimizationConfig(validation_ratio=1.0)

    def test_invalid_limits(self):
        with pytest.raises(ValueError):
            OptimizationConfig(default_cluster_count=60)
        with pytest.raises(ValueError):
            QuantileRanges(standard=(0.8, 0.2))


class TestErrors:

    def test_invalid_argument_is_value_error(self):
        err = InvalidArgumentError("k", 0, "must be greater than 1")
        assert isinstance(err, ValueError)
        assert isinstance(err, BoundaryEngineError)
        assert err.context == {"parameter": "k", "value": 0}

    def test_insufficient_data_guidance(self):
        err = InsufficientDataError("k-fold", required=10, actual=4)
        assert err.shortfall == 6
        assert "6 more samples" in err.recommended_action
        report = err.to_report()
        assert report["error_code"] == "INSUFFICIENT_DATA"
        json.dumps(report)

    def test_numerical_failure_diagnosis(self):
        assert NumericalFailureError.diagnose("x", [1.0, float("nan")]).kind is NumericalFailureKind.NAN
        assert NumericalFailureError.diagnose("x", [1.0, float("inf")]).kind is NumericalFailureKind.INFINITY
        assert NumericalFailureError.diagnose("x", [2.0, 2.0]).kind is NumericalFailureKind.ZERO_VARIANCE
        assert NumericalFailureError.diagnose("x", [1.0, 2.0]).kind is NumericalFailureKind.OTHER

    def test_convergence_error_diagnostics(self):
        err = OptimizationConvergenceError(
            target="AverageMovement",
            completed_iterations=50,
            max_iterations=100,
            final_value=0.4,
            threshold=0.001,
            reason=ConvergenceFailureReason.NO_IMPROVEMENT,
            error_history=[0.1, 0.2, 0.3],
        )
        assert err.convergence_rate == 0.5
        assert err.error_trend == pytest.approx(0.1)
        suggestions = err.tuning_suggestions()
        assert "Widen the initial search range" in suggestions
        assert any("trending upward" in s for s in suggestions)
        assert err.to_report()["error_history"] == [0.1, 0.2, 0.3]


class TestSamples:

    def test_direction(self, movement_factory):
        assert movement_factory(1.0, 0.5).direction is PriceDirection.UP
        assert movement_factory(1.0, -0.5).direction is PriceDirection.DOWN
        assert movement_factory(1.0, 0.0).direction is PriceDirection.FLAT

    def test_range_and_magnitude(self, movement_factory):
        sample = movement_factory(10.0, -1.25)
        assert sample.abs_movement == 1.25
        assert sample.is_within(10.0, 10.0)
        assert not sample.is_within(10.5, 20.0)

    def test_frame_conversion_drops_missing_rows(self):
        df = pd.DataFrame({
            "start_timestamp": pd.date_range("2024-01-02", periods=4, freq="5min"),
            "measurement_value": [10.0, np.nan, 30.0, 40.0],
            "atr_movement": [1.0, 2.0, np.nan, -0.5],
            "volume": [100.0, 200.0, 300.0, np.nan],
        })
        samples = samples_from_frame(df, context_cols=["volume"])
        assert [s.measurement_value for s in samples] == [10.0, 40.0]
        assert samples[0].contextual_data == {"volume": 100.0}
        assert samples[1].contextual_data == {}
        back = samples_to_frame(samples)
        assert list(back["atr_movement"]) == [1.0, -0.5]

    def test_missing_column(self):
        with pytest.raises(KeyError):
            samples_from_frame(pd.DataFrame({"measurement_value": [1.0]}))

    def test_preconditions(self, samples, movement_factory):
        ok, msg = validate_samples(samples)
        assert ok and "200" in msg
        assert validate_samples([]) == (False, "Sample set is empty")
        bad = list(samples[:3]) + [movement_factory(float("nan"), 1.0)]
        ok, msg = validate_samples(bad)
        assert not ok
        assert "non-finite measurement" in msg
        with pytest.raises(DataValidationError):
            enforce_sample_preconditions(bad)


class TestStats:

    def test_t_critical_matches_scipy(self):
        assert t_critical_value(4) == pytest.approx(sp_stats.t.ppf(0.975, 4))
        assert t_critical_value(150) == pytest.approx(1.959964, abs=1e-5)

    @pytest.mark.parametrize("df, conf", [(0, 0.95), (5, 1.0), (5, 0.0)])
    def test_t_critical_domain(self, df, conf):
        with pytest.raises(ValueError):
            t_critical_value(df, conf)

    def test_confidence_interval(self):
        low, high = confidence_interval([1.0, 2.0, 3.0])
        margin = sp_stats.t.ppf(0.975, 2) * 1.0 / math.sqrt(3)
        assert low == pytest.approx(2.0 - margin)
        assert high == pytest.approx(2.0 + margin)
        assert confidence_interval([1.0]) == (0.0, 0.0)

    def test_dispersion_and_slope(self):
        assert sample_std([1.0]) == 0.0
        assert sample_std([1.0, 3.0]) == pytest.approx(math.sqrt(2.0))
        assert least_squares_slope([3.0, 2.0, 1.0]) == pytest.approx(-1.0)
        assert sqrt_weighted_mean([1.0, 0.0], [100, 1]) == pytest.approx(10.0 / 11.0)
        assert sqrt_weighted_mean([1.0], [0]) == 0.0


class TestReproducibility:

    def test_seeded_streams_match(self):
        assert list(make_generator(3).permutation(10)) == list(seeded_generator(3).permutation(10))

    def test_seed_type_checked(self):
        with pytest.raises(TypeError):
            seeded_generator(True)

    def test_sklearn_state(self):
        assert sklearn_random_state(None) is None
        assert sklearn_random_state(np.int64(5)) == 5


class TestMetricsEmitter:

    def test_combined_payload(self):
        result = CombinedOptimizationResult(
            best_method="Clustering",
            best_score=0.42,
            method_results={
                "Clustering": MethodResult(method_name="Clustering", validation_score=0.42),
                "DecisionTree": MethodResult(method_name="DecisionTree", diagnostics={"Error": "x"}),
            },
        )
        metrics = OptimizationMetricsEmitter().emit_combined_metrics(result)
        assert metrics["best_method"] == "Clustering"
        assert metrics["failed_methods"] == ["DecisionTree"]

    def test_alerts(self):
        result = CrossValidationResult(
            fold_scores=(0.1, 0.1),
            mean_score=0.1,
            is_overfitting=True,
            metrics={"TrainValGap": 0.5},
        )
        emitter = OptimizationMetricsEmitter(min_validation_score=0.2, max_train_val_gap=0.1)
        alerts = emitter.check_alerts(result)
        assert any("overfitting" in a for a in alerts)
        assert not any("Mean validation score" in a for a in alerts)

    def test_structured_formatter_emits_json(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        record.metrics = {"a": 1}
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "hello"
        assert payload["metrics"] == {"a": 1}
