"""
Random number sources for the boundary engine.

K-fold shuffling and k-means initialisation are the only randomised steps.
Both take an explicit seed.  Reproducible runs go through
``seeded_generator``; ``unseeded_generator`` is the separate, explicitly
non-reproducible path and logs that it was used.

Usage::

    rng = make_generator(seed)          # seeded when seed is not None
    order = rng.permutation(n)
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


def seeded_generator(seed: int) -> np.random.Generator:
    """Deterministic generator; identical seeds give identical streams."""
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise TypeError(f"seed must be an integer, got {type(seed).__name__}")
    return np.random.default_rng(int(seed))


def unseeded_generator() -> np.random.Generator:
    """Generator seeded from OS entropy.  Results are not reproducible."""
    logger.debug("Using unseeded random generator; results will not be reproducible")
    return np.random.default_rng()


def make_generator(seed: Optional[int]) -> np.random.Generator:
    """Dispatch to the seeded or unseeded path."""
    if seed is None:
        return unseeded_generator()
    return seeded_generator(seed)


def sklearn_random_state(seed: Optional[int]) -> Optional[int]:
    """Translate an engine seed into a scikit-learn ``random_state``.

    scikit-learn treats ``None`` as "use the global numpy state", which is
    the unseeded path.
    """
    if seed is None:
        logger.debug("scikit-learn estimator running without random_state")
        return None
    return int(seed)
