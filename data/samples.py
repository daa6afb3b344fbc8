"""
Sample model: one (measurement value, normalized movement, timestamp) record.

Samples are produced upstream by the correlation / price-movement
calculator and consumed read-only here.  ``PriceMovement`` is frozen so
nothing in the engine can mutate a caller's data.

Usage::

    samples = samples_from_frame(df, value_col="rsi", movement_col="atr_move")
    values = measurement_values(samples)      # numpy view for vectorised work
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class PriceDirection(Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


@dataclass(frozen=True)
class PriceMovement:
    """A single indicator reading and the price move that followed it.

    Attributes
    ----------
    start_timestamp : datetime
        When the indicator reading was taken.
    measurement_value : float
        Indicator value at ``start_timestamp``.
    atr_movement : float
        Subsequent price change in ATR units (signed).
    contextual_data : dict
        Optional extra fields carried through untouched.
    """

    start_timestamp: datetime
    measurement_value: float
    atr_movement: float
    contextual_data: Dict[str, float] = field(default_factory=dict, compare=False, hash=False)

    @property
    def direction(self) -> PriceDirection:
        if self.atr_movement > 0:
            return PriceDirection.UP
        if self.atr_movement < 0:
            return PriceDirection.DOWN
        return PriceDirection.FLAT

    @property
    def abs_movement(self) -> float:
        return abs(self.atr_movement)

    def is_within(self, low: float, high: float) -> bool:
        """Inclusive range test on the measurement value."""
        return low <= self.measurement_value <= high


# ── Vectorised views ─────────────────────────────────────────────────


def measurement_values(samples: Sequence[PriceMovement]) -> np.ndarray:
    return np.fromiter((s.measurement_value for s in samples), dtype=float, count=len(samples))


def movements(samples: Sequence[PriceMovement]) -> np.ndarray:
    return np.fromiter((s.atr_movement for s in samples), dtype=float, count=len(samples))


def sort_by_value(samples: Sequence[PriceMovement]) -> List[PriceMovement]:
    return sorted(samples, key=lambda s: s.measurement_value)


def sort_by_time(samples: Sequence[PriceMovement]) -> List[PriceMovement]:
    return sorted(samples, key=lambda s: s.start_timestamp)


# ── DataFrame adapters ───────────────────────────────────────────────


def samples_from_frame(
    df: pd.DataFrame,
    value_col: str = "measurement_value",
    movement_col: str = "atr_movement",
    timestamp_col: Optional[str] = "start_timestamp",
    context_cols: Optional[Sequence[str]] = None,
) -> List[PriceMovement]:
    """Convert a DataFrame from the sample source into ``PriceMovement`` records.

    Parameters
    ----------
    df : pd.DataFrame
        One row per sample.
    value_col, movement_col : str
        Column names for the measurement value and ATR movement.
    timestamp_col : str or None
        Timestamp column.  ``None`` uses the index, which must be datetime-like.
    context_cols : sequence of str, optional
        Extra numeric columns copied into ``contextual_data``.

    Returns
    -------
    list of PriceMovement
        Rows with a missing value or movement are dropped (and logged).
    """
    missing = [c for c in (value_col, movement_col) if c not in df.columns]
    if timestamp_col is not None and timestamp_col not in df.columns:
        missing.append(timestamp_col)
    if missing:
        raise KeyError(f"Sample frame is missing required columns: {missing}")

    if timestamp_col is None:
        timestamps = pd.Series(pd.to_datetime(df.index), index=df.index)
    else:
        timestamps = pd.to_datetime(df[timestamp_col])

    keep = df[value_col].notna() & df[movement_col].notna()
    dropped = int((~keep).sum())
    if dropped:
        logger.warning("Dropped %d sample rows with missing value or movement", dropped)

    frame = df.loc[keep]
    timestamps = timestamps.loc[keep]
    context_cols = list(context_cols or [])

    out: List[PriceMovement] = []
    for i in range(len(frame)):
        context = {}
        for c in context_cols:
            v = frame[c].iloc[i]
            if pd.notna(v):
                context[c] = float(v)
        out.append(
            PriceMovement(
                start_timestamp=pd.Timestamp(timestamps.iloc[i]).to_pydatetime(),
                measurement_value=float(frame[value_col].iloc[i]),
                atr_movement=float(frame[movement_col].iloc[i]),
                contextual_data=context,
            )
        )
    return out


def samples_to_frame(samples: Sequence[PriceMovement]) -> pd.DataFrame:
    """Inverse of ``samples_from_frame`` (context columns are flattened)."""
    rows = []
    for s in samples:
        row = {
            "start_timestamp": s.start_timestamp,
            "measurement_value": s.measurement_value,
            "atr_movement": s.atr_movement,
        }
        row.update(s.contextual_data)
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=["start_timestamp", "measurement_value", "atr_movement"])
    return pd.DataFrame(rows)
