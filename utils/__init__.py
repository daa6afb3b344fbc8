"""
Utilities — structured logging and shared numeric helpers.
"""
from .logging import OptimizationMetricsEmitter, StructuredFormatter, get_logger
from .stats import (
    confidence_interval,
    least_squares_slope,
    population_std,
    sample_std,
    sqrt_weighted_mean,
    t_critical_value,
)

__all__ = [
    "OptimizationMetricsEmitter",
    "StructuredFormatter",
    "get_logger",
    "confidence_interval",
    "least_squares_slope",
    "population_std",
    "sample_std",
    "sqrt_weighted_mean",
    "t_critical_value",
]
