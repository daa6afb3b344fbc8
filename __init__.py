"""
boundary_engine — discovery and validation of indicator value boundaries.

Subpackages:
    data          — PriceMovement sample model and DataFrame adapters
    optimization  — sliding window, split detection, clustering, gradient
                    search, combined orchestration and Pareto search
    regime        — rolling re-optimization and boundary regime changes
    validation    — k-fold / expanding / rolling cross-validation and the
                    out-of-sample boundary validator
    utils         — structured logging and shared numeric helpers
"""

__version__ = "0.1.0"
