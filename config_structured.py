"""
Structured configuration for the boundary engine using typed dataclasses.

This is the AUTHORITATIVE source of truth for all configuration values.
``config.py`` derives its flat constants from here.

Each subsystem gets its own dataclass.  Values are validated in
``__post_init__`` so a bad configuration fails at construction time,
before any search or validation runs.  No file or environment parsing
happens here: callers build the objects directly.

Usage:
    from boundary_engine.config_structured import get_config
    cfg = get_config()
    cfg.optimization.max_ranges        # hard ceiling for sliding-window output
    cfg.cross_validation.k_folds       # default fold count
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 < value < 1.0:
        raise ValueError(f"{name} must be strictly between 0 and 1, got {value}")


# ── Enums ────────────────────────────────────────────────────────────


class CrossValidationMethod(Enum):
    """Cross-validation scheme selected by ``CrossValidationConfig``."""
    KFOLD = "kfold"
    TIME_SERIES_EXPANDING = "expanding"
    TIME_SERIES_ROLLING = "rolling"


# ── Quantiles ────────────────────────────────────────────────────────


@dataclass
class QuantileRanges:
    """Quantile pairs used to seed searches and build static candidate ranges."""

    standard: Tuple[float, float] = (0.25, 0.75)
    wide: Tuple[float, float] = (0.20, 0.80)
    tertiles: Tuple[float, float] = (0.33, 0.66)

    def __post_init__(self):
        for name in ("standard", "wide", "tertiles"):
            lower, upper = getattr(self, name)
            if not 0.0 <= lower < upper <= 1.0:
                raise ValueError(
                    f"Quantile pair '{name}' must satisfy 0 <= lower < upper <= 1, "
                    f"got ({lower}, {upper})"
                )


# ── Optimizer limits ─────────────────────────────────────────────────


@dataclass
class OptimizationConfig:
    """Hard limits and thresholds shared by every boundary search."""

    max_iterations: int = 1000
    convergence_threshold: float = 0.001
    default_cluster_count: int = 3
    max_ranges: int = 100
    max_depth: int = 20
    max_clusters: int = 50
    stagnation_window: int = 50
    performance_degradation_threshold: float = 0.3
    overfitting_degradation: float = 0.5
    quantiles: QuantileRanges = field(default_factory=QuantileRanges)

    def __post_init__(self):
        for name in ("max_iterations", "default_cluster_count", "max_ranges",
                     "max_depth", "max_clusters", "stagnation_window"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value}")
        if self.convergence_threshold <= 0:
            raise ValueError(
                f"convergence_threshold must be positive, got {self.convergence_threshold}"
            )
        if self.default_cluster_count > self.max_clusters:
            raise ValueError(
                f"default_cluster_count={self.default_cluster_count} exceeds "
                f"max_clusters={self.max_clusters}"
            )
        _check_fraction("performance_degradation_threshold", self.performance_degradation_threshold)
        if self.overfitting_degradation <= 0:
            raise ValueError(
                f"overfitting_degradation must be positive, got {self.overfitting_degradation}"
            )


@dataclass
class MLOptimizationConfig:
    """Per-run settings for the combined multi-strategy optimization.

    ``algorithm_parameters`` carries strategy-specific knobs by name, e.g.
    ``{"ClusterCount": 4, "MaxDepth": 6}``.  ``random_seed`` is forwarded to
    any strategy that draws random numbers; ``None`` selects the unseeded
    path.
    """

    use_decision_tree: bool = True
    use_clustering: bool = True
    use_gradient_search: bool = True
    target_atr_move: float = 1.5
    max_ranges: int = 5
    validation_ratio: float = 0.2
    max_iterations: int = 1000
    convergence_threshold: float = 0.001
    algorithm_parameters: Dict[str, Any] = field(default_factory=dict)
    random_seed: Optional[int] = None

    def __post_init__(self):
        if self.target_atr_move <= 0:
            raise ValueError(f"target_atr_move must be positive, got {self.target_atr_move}")
        if not isinstance(self.max_ranges, int) or self.max_ranges < 1:
            raise ValueError(f"max_ranges must be a positive integer, got {self.max_ranges}")
        _check_fraction("validation_ratio", self.validation_ratio)
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.convergence_threshold <= 0:
            raise ValueError(
                f"convergence_threshold must be positive, got {self.convergence_threshold}"
            )

    @property
    def enabled_strategy_names(self) -> Tuple[str, ...]:
        names = []
        if self.use_decision_tree:
            names.append("DecisionTree")
        if self.use_clustering:
            names.append("Clustering")
        if self.use_gradient_search:
            names.append("GradientSearch")
        return tuple(names)


@dataclass
class CrossValidationConfig:
    """Cross-validation scheme and its window parameters.

    For the rolling scheme ``rolling_window`` is the fixed training
    fraction; for the expanding scheme ``min_train_window`` is the initial
    training fraction.  Both schemes advance by ``step_size``.
    """

    k_folds: int = 5
    strategy: CrossValidationMethod = CrossValidationMethod.KFOLD
    random_seed: Optional[int] = None
    min_train_window: float = 0.3
    step_size: float = 0.1
    rolling_window: float = 0.5
    confidence_level: float = 0.95
    overfitting_gap: float = 0.1

    def __post_init__(self):
        if isinstance(self.strategy, str):
            self.strategy = CrossValidationMethod(self.strategy)
        if not isinstance(self.k_folds, int) or self.k_folds < 2:
            raise ValueError(f"k_folds must be an integer greater than 1, got {self.k_folds}")
        _check_fraction("min_train_window", self.min_train_window)
        _check_fraction("step_size", self.step_size)
        _check_fraction("rolling_window", self.rolling_window)
        _check_fraction("confidence_level", self.confidence_level)
        if self.overfitting_gap < 0:
            raise ValueError(f"overfitting_gap must be non-negative, got {self.overfitting_gap}")


@dataclass
class DynamicBoundaryConfig:
    """Rolling re-optimization used to detect boundary regime changes."""

    window_size: int = 100
    step_size: int = 20
    target_atr_move: float = 1.5
    regime_change_ratio: float = 0.5

    def __post_init__(self):
        if self.window_size < 1 or self.step_size < 1:
            raise ValueError(
                f"window_size and step_size must be positive, got "
                f"{self.window_size}/{self.step_size}"
            )
        if self.regime_change_ratio <= 0:
            raise ValueError(
                f"regime_change_ratio must be positive, got {self.regime_change_ratio}"
            )


@dataclass
class AlertConfig:
    """Thresholds for the optimization metrics emitter."""

    min_validation_score: float = 0.2
    max_temporal_degradation: float = 0.05
    max_train_val_gap: float = 0.1


@dataclass
class SystemConfig:
    """Top-level configuration aggregating all subsystems.

    Usage::

        cfg = SystemConfig()
        cfg.optimization.max_depth
        cfg.cross_validation.strategy
    """

    optimization: OptimizationConfig = field(default_factory=OptimizationConfig)
    ml_optimization: MLOptimizationConfig = field(default_factory=MLOptimizationConfig)
    cross_validation: CrossValidationConfig = field(default_factory=CrossValidationConfig)
    dynamic: DynamicBoundaryConfig = field(default_factory=DynamicBoundaryConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)


_config_instance: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """Return the singleton SystemConfig instance.

    On first call, instantiates the default SystemConfig.  Subsequent
    calls return the same object.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SystemConfig()
    return _config_instance
