"""
Data subpackage — the sample model consumed by every search and validator.
"""
from .samples import (
    PriceDirection,
    PriceMovement,
    measurement_values,
    movements,
    samples_from_frame,
    samples_to_frame,
    sort_by_time,
    sort_by_value,
)

__all__ = [
    "PriceDirection",
    "PriceMovement",
    "measurement_values",
    "movements",
    "samples_from_frame",
    "samples_to_frame",
    "sort_by_time",
    "sort_by_value",
]
