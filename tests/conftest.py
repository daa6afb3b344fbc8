"""Shared test fixtures for the boundary_engine test suite."""
from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np
import pytest

from boundary_engine.data.samples import PriceMovement

START = datetime(2024, 1, 2, 9, 30)


def make_samples(n: int = 200, seed: int = 42):
    """Synthetic samples with a strong 60-70 band of large moves.

    value ~ U[30, 90); move = 1.5+U in [60, 70), -1+U below 50, else -0.5+U.
    Timestamps are 5 minutes apart.
    """
    rng = np.random.default_rng(seed)
    samples = []
    for i in range(n):
        value = 30.0 + rng.random() * 60.0
        u = rng.random()
        if 60.0 <= value < 70.0:
            move = 1.5 + u
        elif value < 50.0:
            move = -1.0 + u
        else:
            move = -0.5 + u
        samples.append(
            PriceMovement(
                start_timestamp=START + timedelta(minutes=5 * i),
                measurement_value=float(value),
                atr_movement=float(move),
            )
        )
    return samples


def make_movement(value: float, move: float, minutes: int = 0) -> PriceMovement:
    return PriceMovement(
        start_timestamp=START + timedelta(minutes=minutes),
        measurement_value=float(value),
        atr_movement=float(move),
    )


# ── Data fixtures ────────────────────────────────────────────────────


@pytest.fixture
def samples():
    """200 synthetic samples from ``make_samples``."""
    return make_samples(200, seed=42)


@pytest.fixture
def large_samples():
    """600 synthetic samples; enough for every strategy's recommended size."""
    return make_samples(600, seed=7)


@pytest.fixture
def gap_samples():
    """Values clustered at 30-35 and 62-68 with opposite behaviour."""
    values = [30, 31, 32, 33, 34, 35, 62, 63, 64, 65, 66, 67, 68]
    moves = [-0.5, -0.4, -0.6, -0.5, -0.3, -0.4, 2.0, 1.8, 2.2, 1.9, 2.1, 2.0, 1.7]
    return [make_movement(v, m, minutes=5 * i) for i, (v, m) in enumerate(zip(values, moves))]


@pytest.fixture
def three_cluster_samples():
    """Three well-separated groups near 35, 65 and 90 with distinct moves."""
    rng = np.random.default_rng(42)
    out = []
    i = 0
    for center, move in ((35.0, -1.0), (65.0, 2.0), (90.0, 0.5)):
        for _ in range(30):
            out.append(
                make_movement(
                    center + rng.normal(0, 1.0),
                    move + rng.normal(0, 0.1),
                    minutes=5 * i,
                )
            )
            i += 1
    return out


@pytest.fixture
def sample_factory():
    """Factory for synthetic samples of any size and seed."""
    return make_samples


@pytest.fixture
def movement_factory():
    """Factory for a single hand-built sample."""
    return make_movement
