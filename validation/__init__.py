"""
Validation layer — out-of-sample checks and cross-validation.

Modules:
    boundary_validator — in-sample vs out-of-sample boundary stability
    kfold              — random k-fold cross-validation
    expanding_window   — time-series CV with a growing training window
    rolling_window     — time-series CV with a fixed training window
    service            — strategy selection and metric enrichment
    preconditions      — sample integrity checks
"""
from .base import TimeSeriesValidationStrategy, ValidationStrategy
from .boundary_validator import validate_boundaries
from .expanding_window import ExpandingWindowValidationStrategy
from .kfold import KFoldValidationStrategy, make_folds
from .methods import CombinedOptimizationMethod, OptimizationMethod, SlidingWindowMethod
from .preconditions import enforce_sample_preconditions, validate_samples
from .results import (
    BoundaryValidation,
    CrossValidationFold,
    CrossValidationResult,
    TimeSeriesCrossValidationResult,
    ValidationResult,
)
from .rolling_window import RollingWindowValidationStrategy
from .service import CrossValidationService, create_validation_strategy

__all__ = [
    "BoundaryValidation",
    "CombinedOptimizationMethod",
    "CrossValidationFold",
    "CrossValidationResult",
    "CrossValidationService",
    "ExpandingWindowValidationStrategy",
    "KFoldValidationStrategy",
    "OptimizationMethod",
    "RollingWindowValidationStrategy",
    "SlidingWindowMethod",
    "TimeSeriesCrossValidationResult",
    "TimeSeriesValidationStrategy",
    "ValidationResult",
    "ValidationStrategy",
    "create_validation_strategy",
    "enforce_sample_preconditions",
    "make_folds",
    "validate_boundaries",
    "validate_samples",
]
