"""
Sample integrity preconditions.

Checks that every sample carries finite measurement and movement values
and a timestamp before it reaches an optimizer.  Entry points do not call
this implicitly; pipelines that ingest external data should.

Usage:
    ok, msg = validate_samples(samples)
    if not ok:
        raise DataValidationError(msg)
"""
import logging
import math
from typing import Sequence, Tuple

from ..data.samples import PriceMovement
from ..errors import DataValidationError

logger = logging.getLogger(__name__)


def validate_samples(samples: Sequence[PriceMovement]) -> Tuple[bool, str]:
    """Check sample integrity.

    Returns
    -------
    tuple[bool, str]
        ``(True, summary_string)`` on success, ``(False, error_message)``
        on failure.
    """
    if not samples:
        return False, "Sample set is empty"

    bad_values = [i for i, s in enumerate(samples) if not math.isfinite(s.measurement_value)]
    bad_moves = [i for i, s in enumerate(samples) if not math.isfinite(s.atr_movement)]
    missing_ts = [i for i, s in enumerate(samples) if s.start_timestamp is None]

    problems = []
    if bad_values:
        problems.append(f"{len(bad_values)} non-finite measurement values (first at index {bad_values[0]})")
    if bad_moves:
        problems.append(f"{len(bad_moves)} non-finite movements (first at index {bad_moves[0]})")
    if missing_ts:
        problems.append(f"{len(missing_ts)} samples without a timestamp (first at index {missing_ts[0]})")
    if problems:
        msg = "Sample validation failed: " + "; ".join(problems)
        logger.error(msg)
        return False, msg

    summary = f"Samples OK: {len(samples)} records"
    logger.debug(summary)
    return True, summary


def enforce_sample_preconditions(samples: Sequence[PriceMovement]) -> None:
    """Validate samples; raise DataValidationError on failure."""
    ok, msg = validate_samples(samples)
    if not ok:
        raise DataValidationError(msg, context={"n_samples": len(samples)})
