"""
Central configuration for the boundary engine.

Flat-constant interface.  Every value is derived from the structured
config singleton in ``config_structured.py`` so there is a single source
of truth.

Config Status Legend
====================
Each constant is annotated with one of the following statuses:

  ACTIVE      — Imported and used by running code.  Changing the value
                affects behaviour.
  PLACEHOLDER — Defined for future use; not yet read by running code.

Search for ``# STATUS:`` to locate all annotations.
"""
from typing import Dict, List

from .config_structured import get_config as _get_config

_cfg = _get_config()

# ── Optimizer limits ──────────────────────────────────────────────────
MAX_ITERATIONS = _cfg.optimization.max_iterations                    # STATUS: ACTIVE — gradient_search.py iteration budget
CONVERGENCE_THRESHOLD = _cfg.optimization.convergence_threshold      # STATUS: ACTIVE — gradient_search.py improvement floor
DEFAULT_CLUSTER_COUNT = _cfg.optimization.default_cluster_count      # STATUS: ACTIVE — optimization/clustering.py default n_clusters
MAX_RANGES = _cfg.optimization.max_ranges                            # STATUS: ACTIVE — sliding_window.py output ceiling
MAX_DEPTH = _cfg.optimization.max_depth                              # STATUS: ACTIVE — splits.py / decision_tree strategy ceiling
MAX_CLUSTERS = _cfg.optimization.max_clusters                        # STATUS: ACTIVE — clustering.py ceiling on k
STAGNATION_WINDOW = _cfg.optimization.stagnation_window              # STATUS: ACTIVE — gradient_search.py no-improvement budget
PERFORMANCE_DEGRADATION_THRESHOLD = _cfg.optimization.performance_degradation_threshold  # STATUS: ACTIVE — boundary_validator.py stability cut
OVERFITTING_DEGRADATION = _cfg.optimization.overfitting_degradation  # STATUS: ACTIVE — boundary_validator.py overfit flag
QUANTILES = _cfg.optimization.quantiles                              # STATUS: ACTIVE — pareto.py seed/static ranges

# ── Combined optimization ─────────────────────────────────────────────
TARGET_ATR_MOVE = _cfg.ml_optimization.target_atr_move               # STATUS: ACTIVE — run_boundary_search.py --target default

# ── Cross-validation ──────────────────────────────────────────────────
CV_K_FOLDS = _cfg.cross_validation.k_folds                           # STATUS: ACTIVE — run_boundary_search.py --folds default
CV_MIN_TRAIN_WINDOW = _cfg.cross_validation.min_train_window         # STATUS: ACTIVE — expanding window initial fraction
CV_STEP_SIZE = _cfg.cross_validation.step_size                       # STATUS: ACTIVE — expanding/rolling step fraction
CV_ROLLING_WINDOW = _cfg.cross_validation.rolling_window             # STATUS: ACTIVE — rolling window training fraction

# Stationarity cut-offs on the standard deviation of fold validation scores.
STATIONARITY_STD_EXPANDING = 0.2                  # STATUS: ACTIVE — validation/expanding_window.py
STATIONARITY_STD_ROLLING = 0.25                   # STATUS: ACTIVE — validation/rolling_window.py
STATIONARITY_MAX_DEGRADATION = 0.3                # STATUS: ACTIVE — validation/expanding_window.py
STATIONARITY_MAX_DEGRADATION_ROLLING = 0.2        # STATUS: ACTIVE — validation/rolling_window.py
DEFAULT_LOOKBACK_DAYS = 30                        # STATUS: ACTIVE — validation/metrics.py when fewer than two folds

# ── Dynamic boundaries ────────────────────────────────────────────────
DYNAMIC_WINDOW_SIZE = _cfg.dynamic.window_size    # STATUS: ACTIVE — regime/dynamic_boundaries.py
DYNAMIC_STEP_SIZE = _cfg.dynamic.step_size        # STATUS: ACTIVE — regime/dynamic_boundaries.py
DYNAMIC_TARGET_ATR_MOVE = _cfg.dynamic.target_atr_move        # STATUS: ACTIVE — regime/dynamic_boundaries.py
REGIME_CHANGE_RATIO = _cfg.dynamic.regime_change_ratio        # STATUS: ACTIVE — regime/dynamic_boundaries.py

# ── Alerts ────────────────────────────────────────────────────────────
ALERT_MIN_VALIDATION_SCORE = _cfg.alerts.min_validation_score            # STATUS: ACTIVE — utils/logging.py
ALERT_MAX_TEMPORAL_DEGRADATION = _cfg.alerts.max_temporal_degradation    # STATUS: ACTIVE — utils/logging.py
ALERT_MAX_TRAIN_VAL_GAP = _cfg.alerts.max_train_val_gap                  # STATUS: ACTIVE — utils/logging.py


def validate_config() -> List[Dict[str, str]]:
    """Check config for combinations that are legal but likely mistakes.

    Returns a list of dicts: [{"level": "WARNING"|"ERROR", "message": str}].
    Called by ``run_boundary_search.py`` before a run starts.
    """
    issues: List[Dict[str, str]] = []

    if MAX_ITERATIONS <= STAGNATION_WINDOW:
        issues.append({
            "level": "WARNING",
            "message": (
                f"MAX_ITERATIONS={MAX_ITERATIONS} does not exceed "
                f"STAGNATION_WINDOW={STAGNATION_WINDOW}; gradient search can "
                "never report stagnation."
            ),
        })

    if CV_MIN_TRAIN_WINDOW + CV_STEP_SIZE > 1.0:
        issues.append({
            "level": "ERROR",
            "message": (
                f"CV_MIN_TRAIN_WINDOW + CV_STEP_SIZE = "
                f"{CV_MIN_TRAIN_WINDOW + CV_STEP_SIZE:.2f} > 1; expanding-window "
                "validation cannot produce a single fold."
            ),
        })

    if CV_ROLLING_WINDOW + CV_STEP_SIZE > 1.0:
        issues.append({
            "level": "ERROR",
            "message": (
                f"CV_ROLLING_WINDOW + CV_STEP_SIZE = "
                f"{CV_ROLLING_WINDOW + CV_STEP_SIZE:.2f} > 1; rolling-window "
                "validation cannot produce a single fold."
            ),
        })

    if _cfg.ml_optimization.random_seed is None or _cfg.cross_validation.random_seed is None:
        issues.append({
            "level": "WARNING",
            "message": (
                "No random seed configured; k-fold shuffling and k-means "
                "initialisation are not reproducible across runs."
            ),
        })

    if not any((
        _cfg.ml_optimization.use_decision_tree,
        _cfg.ml_optimization.use_clustering,
        _cfg.ml_optimization.use_gradient_search,
    )):
        issues.append({
            "level": "ERROR",
            "message": "All boundary strategies are disabled; combined optimization has nothing to run.",
        })

    return issues
