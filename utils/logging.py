"""
Structured logging for the boundary engine.

Provides:
    - StructuredFormatter: JSON formatter for machine-parseable log output.
    - get_logger: Factory for structured loggers.
    - OptimizationMetricsEmitter: Emit run metrics and check alert thresholds.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from ..optimization.types import CombinedOptimizationResult
    from ..validation.results import CrossValidationResult


class StructuredFormatter(logging.Formatter):
    """JSON formatter for machine-parseable log output.

    Each log record is serialised as a single JSON line containing at minimum:
        timestamp, level, module, message.
    If the record carries a ``metrics`` attribute (set via ``extra={"metrics": {...}}``),
    those key-value pairs are included under the ``"metrics"`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }
        if hasattr(record, "metrics"):
            log_entry["metrics"] = record.metrics
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Get a structured logger for the boundary engine.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__`` of the calling module).
    level : str
        Minimum log level.  One of DEBUG, INFO, WARNING, ERROR, CRITICAL.

    Returns
    -------
    logging.Logger
        Logger with a ``StructuredFormatter`` handler attached.  Repeated
        calls do not add duplicate handlers.
    """
    logger = logging.getLogger(name)
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(numeric_level)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

    return logger


class OptimizationMetricsEmitter:
    """Emit structured metrics for optimization and validation runs.

    Usage::

        emitter = OptimizationMetricsEmitter()
        emitter.emit_combined_metrics(combined_result)
        alerts = emitter.check_alerts(cv_result)
    """

    def __init__(
        self,
        logger_name: str = "boundary_engine.metrics",
        min_validation_score: Optional[float] = None,
        max_temporal_degradation: Optional[float] = None,
        max_train_val_gap: Optional[float] = None,
    ) -> None:
        from ..config import (
            ALERT_MAX_TEMPORAL_DEGRADATION,
            ALERT_MAX_TRAIN_VAL_GAP,
            ALERT_MIN_VALIDATION_SCORE,
        )

        self.logger = get_logger(logger_name)
        self.min_validation_score = (
            ALERT_MIN_VALIDATION_SCORE if min_validation_score is None else min_validation_score
        )
        self.max_temporal_degradation = (
            ALERT_MAX_TEMPORAL_DEGRADATION
            if max_temporal_degradation is None else max_temporal_degradation
        )
        self.max_train_val_gap = (
            ALERT_MAX_TRAIN_VAL_GAP if max_train_val_gap is None else max_train_val_gap
        )

    def emit_combined_metrics(self, result: "CombinedOptimizationResult") -> Dict[str, Any]:
        """Log one payload summarising a combined optimization run."""
        metrics: Dict[str, Any] = {
            "best_method": result.best_method,
            "best_score": round(result.best_score, 6),
            "n_boundaries": len(result.optimal_boundaries),
            "method_scores": {
                name: round(m.validation_score, 6) for name, m in result.method_results.items()
            },
            "failed_methods": [
                name for name, m in result.method_results.items() if "Error" in m.diagnostics
            ],
        }
        self.logger.info("combined_optimization_metrics", extra={"metrics": metrics})
        return metrics

    def emit_cross_validation_metrics(self, result: "CrossValidationResult") -> Dict[str, Any]:
        """Log one payload summarising a cross-validation run."""
        metrics: Dict[str, Any] = {
            "n_folds": len(result.fold_results),
            "mean_score": round(result.mean_score, 6),
            "std_score": round(result.std_dev_score, 6),
            "ci": [round(result.confidence_interval[0], 6), round(result.confidence_interval[1], 6)],
            "is_overfitting": result.is_overfitting,
        }
        degradation = getattr(result, "temporal_degradation", None)
        if degradation is not None:
            metrics["temporal_degradation"] = round(degradation, 6)
            metrics["is_stationary"] = result.is_stationary
        self.logger.info("cross_validation_metrics", extra={"metrics": metrics})
        return metrics

    def check_alerts(self, result: "CrossValidationResult") -> List[str]:
        """Check alert thresholds against a cross-validation result.

        Returns
        -------
        list of str
            Human-readable alert messages for each threshold breach.
        """
        alerts: List[str] = []
        if result.fold_results and result.mean_score < self.min_validation_score:
            alerts.append(
                f"Mean validation score below {self.min_validation_score:.2f}: "
                f"{result.mean_score:.4f}"
            )
        gap = result.metrics.get("TrainValGap", 0.0)
        if result.is_overfitting or gap > self.max_train_val_gap:
            alerts.append(f"Train/validation gap indicates overfitting: {gap:.4f}")
        degradation = getattr(result, "temporal_degradation", None)
        if degradation is not None and degradation > self.max_temporal_degradation:
            alerts.append(f"Temporal degradation per fold: {degradation:.4f}")

        for alert in alerts:
            self.logger.warning(alert, extra={"metrics": {"alert": alert}})
        return alerts
