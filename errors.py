"""Exception taxonomy for the boundary engine.

Four failure families are distinguished so callers can tell "no signal"
from "algorithm broke":

    InvalidArgumentError          — bad parameters, raised before any computation
    InsufficientDataError         — too few samples for an operation
    NumericalFailureError         — NaN / infinity / zero variance
    OptimizationConvergenceError  — iterative search did not converge

All of them derive from ``BoundaryEngineError`` and carry a machine
readable ``error_code`` plus a ``context`` dict for diagnostics.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np


class BoundaryEngineError(Exception):
    """Base class for every error raised by the boundary engine."""

    error_code = "BOUNDARY_ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.user_message = user_message or message
        self.context: Dict[str, Any] = dict(context or {})
        self.occurred_at = datetime.now(timezone.utc)

    def to_report(self) -> Dict[str, Any]:
        """Return a JSON-serialisable summary of the error."""
        return {
            "error_code": self.error_code,
            "error_type": type(self).__name__,
            "message": str(self),
            "user_message": self.user_message,
            "occurred_at": self.occurred_at.isoformat(),
            "context": {k: v for k, v in self.context.items()},
        }


class InvalidArgumentError(BoundaryEngineError, ValueError):
    """A parameter is outside its documented domain."""

    error_code = "INVALID_ARGUMENT"

    def __init__(self, parameter: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{parameter}': {value!r} ({reason})",
            user_message=f"Parameter '{parameter}' is invalid: {reason}",
            context={"parameter": parameter, "value": value},
        )
        self.parameter = parameter
        self.value = value


class DataValidationError(BoundaryEngineError):
    """Input samples failed an integrity check."""

    error_code = "DATA_VALIDATION_FAILED"


class InsufficientDataError(BoundaryEngineError):
    """Not enough samples to run an operation meaningfully."""

    error_code = "INSUFFICIENT_DATA"

    def __init__(
        self,
        operation: str,
        required: int,
        actual: int,
        guidance: Optional[str] = None,
    ) -> None:
        message = (
            f"Insufficient data for {operation}: requires at least {required} "
            f"samples, got {actual}"
        )
        super().__init__(
            message,
            user_message=guidance or message,
            context={"operation": operation, "required": required, "actual": actual},
        )
        self.operation = operation
        self.required = required
        self.actual = actual
        self.guidance = guidance

    @property
    def shortfall(self) -> int:
        return max(0, self.required - self.actual)

    @property
    def recommended_action(self) -> str:
        return (
            f"Collect at least {self.shortfall} more samples, or widen the "
            f"time range used for {self.operation}."
        )


class NumericalFailureKind(Enum):
    NAN = "nan"
    INFINITY = "infinity"
    ZERO_VARIANCE = "zero_variance"
    OTHER = "other"


class NumericalFailureError(BoundaryEngineError):
    """A computation produced a non-finite or degenerate value."""

    error_code = "NUMERICAL_FAILURE"

    def __init__(
        self,
        message: str,
        kind: NumericalFailureKind,
        offending_values: Optional[Sequence[float]] = None,
    ) -> None:
        values = list(offending_values or [])
        super().__init__(message, context={"kind": kind.value, "offending_values": values})
        self.kind = kind
        self.offending_values = values

    @classmethod
    def diagnose(cls, message: str, values: Sequence[float]) -> "NumericalFailureError":
        """Build an error whose kind reflects the worst value in *values*."""
        arr = np.asarray(list(values), dtype=float)
        if np.isnan(arr).any():
            kind = NumericalFailureKind.NAN
        elif np.isinf(arr).any():
            kind = NumericalFailureKind.INFINITY
        elif arr.size > 1 and np.ptp(arr) == 0:
            kind = NumericalFailureKind.ZERO_VARIANCE
        else:
            kind = NumericalFailureKind.OTHER
        return cls(message, kind=kind, offending_values=arr.tolist())


class ConvergenceFailureReason(Enum):
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    ERROR_INCREASING = "error_increasing"
    NO_IMPROVEMENT = "no_improvement"
    NUMERICAL_INSTABILITY = "numerical_instability"
    INVALID_OBJECTIVE = "invalid_objective"
    ALGORITHM_ERROR = "algorithm_error"
    UNKNOWN = "unknown"


_TUNING_SUGGESTIONS: Dict[ConvergenceFailureReason, List[str]] = {
    ConvergenceFailureReason.MAX_ITERATIONS_REACHED: [
        "Increase max_iterations",
        "Relax convergence_threshold",
        "Start from an initial range closer to the expected optimum",
    ],
    ConvergenceFailureReason.ERROR_INCREASING: [
        "Reduce the step size",
        "Check the objective for discontinuities",
    ],
    ConvergenceFailureReason.NO_IMPROVEMENT: [
        "Widen the initial search range",
        "Try a different objective or a larger sample",
        "Relax convergence_threshold",
    ],
    ConvergenceFailureReason.NUMERICAL_INSTABILITY: [
        "Remove non-finite samples before optimizing",
        "Rescale measurement values",
    ],
    ConvergenceFailureReason.INVALID_OBJECTIVE: [
        "Verify the objective returns finite values for every range",
        "Filter NaN/inf movements upstream",
    ],
    ConvergenceFailureReason.ALGORITHM_ERROR: [
        "Inspect the chained exception for the underlying failure",
    ],
    ConvergenceFailureReason.UNKNOWN: [
        "Enable DEBUG logging and rerun",
    ],
}


class OptimizationConvergenceError(BoundaryEngineError):
    """An iterative search stopped without converging.

    Carries everything needed to diagnose the run: the iteration count,
    the last objective value and the full per-iteration improvement
    history.
    """

    error_code = "OPTIMIZATION_CONVERGENCE_FAILED"

    def __init__(
        self,
        target: str,
        completed_iterations: int,
        max_iterations: int,
        final_value: float,
        threshold: float,
        reason: ConvergenceFailureReason,
        error_history: Optional[Sequence[float]] = None,
        message: Optional[str] = None,
    ) -> None:
        history = [float(v) for v in (error_history or [])]
        text = message or (
            f"{target} optimization did not converge after "
            f"{completed_iterations}/{max_iterations} iterations "
            f"(reason={reason.value}, final_value={final_value}, threshold={threshold})"
        )
        super().__init__(
            text,
            context={
                "target": target,
                "completed_iterations": completed_iterations,
                "max_iterations": max_iterations,
                "final_value": final_value,
                "threshold": threshold,
                "reason": reason.value,
                "history_length": len(history),
            },
        )
        self.target = target
        self.completed_iterations = completed_iterations
        self.max_iterations = max_iterations
        self.final_value = final_value
        self.threshold = threshold
        self.reason = reason
        self.error_history = history

    @property
    def convergence_rate(self) -> float:
        """Fraction of the iteration budget that was consumed."""
        if self.max_iterations <= 0:
            return 0.0
        return self.completed_iterations / self.max_iterations

    @property
    def error_trend(self) -> float:
        """Least-squares slope over the last ten history entries."""
        recent = self.error_history[-10:]
        if len(recent) < 2:
            return 0.0
        x = np.arange(len(recent), dtype=float)
        y = np.asarray(recent, dtype=float)
        denom = float(((x - x.mean()) ** 2).sum())
        if denom == 0:
            return 0.0
        return float(((x - x.mean()) * (y - y.mean())).sum() / denom)

    def tuning_suggestions(self) -> List[str]:
        suggestions = list(_TUNING_SUGGESTIONS.get(self.reason, []))
        if self.error_trend > 0 and self.reason != ConvergenceFailureReason.ERROR_INCREASING:
            suggestions.append("Improvement history is trending upward; consider a smaller step")
        return suggestions

    def to_report(self) -> Dict[str, Any]:
        report = super().to_report()
        report["error_history"] = list(self.error_history)
        report["tuning_suggestions"] = self.tuning_suggestions()
        return report
