"""
Strategy registry: build the boundary strategies a run has enabled.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ...config_structured import MLOptimizationConfig, OptimizationConfig
from .base import BoundaryStrategy
from .clustering import ClusteringStrategy
from .decision_tree import DecisionTreeStrategy
from .gradient import GradientSearchStrategy

StrategyFactory = Callable[..., BoundaryStrategy]

_REGISTRY: Dict[str, StrategyFactory] = {
    "decisiontree": DecisionTreeStrategy,
    "clustering": ClusteringStrategy,
    "gradientsearch": GradientSearchStrategy,
}

# Canonical names in execution order.
_SUPPORTED = ["DecisionTree", "Clustering", "GradientSearch"]


def _key(name: str) -> str:
    return str(name).lower().replace("_", "").replace(" ", "").strip()


def create_strategy(
    name: str,
    ml_config: Optional[MLOptimizationConfig] = None,
    optimization_config: Optional[OptimizationConfig] = None,
) -> BoundaryStrategy:
    """Construct a registered strategy by (case-insensitive) name."""
    key = _key(name)
    if key not in _REGISTRY:
        available = ", ".join(_SUPPORTED)
        raise ValueError(f"Unknown strategy '{name}'. Available: {available}")
    return _REGISTRY[key](ml_config, optimization_config)


def create_strategies(
    ml_config: MLOptimizationConfig,
    optimization_config: Optional[OptimizationConfig] = None,
) -> List[BoundaryStrategy]:
    """Instantiate every supported strategy and keep the enabled ones."""
    strategies = [create_strategy(n, ml_config, optimization_config) for n in _SUPPORTED]
    return [s for s in strategies if s.is_enabled]


def supported_strategies() -> List[str]:
    return list(_SUPPORTED)
