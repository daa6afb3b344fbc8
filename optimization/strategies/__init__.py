"""
Pluggable boundary strategies.

Modules:
    base          — BoundaryStrategy base class and shared validation
    decision_tree — tree-split ranges
    clustering    — k-means cluster ranges
    gradient      — finite-difference range ascent
    factory       — registry keyed by strategy name
"""
from .base import BoundaryStrategy
from .clustering import ClusteringStrategy
from .decision_tree import DecisionTreeStrategy
from .factory import create_strategies, create_strategy, supported_strategies
from .gradient import GradientSearchStrategy

__all__ = [
    "BoundaryStrategy",
    "ClusteringStrategy",
    "DecisionTreeStrategy",
    "GradientSearchStrategy",
    "create_strategies",
    "create_strategy",
    "supported_strategies",
]
