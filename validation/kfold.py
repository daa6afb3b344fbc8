"""
Random k-fold cross-validation.

Samples are shuffled with a seedable generator and cut into ``k``
near-equal folds; the first ``n % k`` folds hold one extra sample.  Each
fold is validated exactly once against boundaries trained on the rest.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..data.samples import PriceMovement
from ..errors import InsufficientDataError, InvalidArgumentError
from ..reproducibility import make_generator
from .base import ValidationStrategy
from .metrics import fold_score_metrics
from .results import CrossValidationFold, CrossValidationResult

logger = logging.getLogger(__name__)


def make_folds(
    samples: Sequence[PriceMovement], k: int, seed: Optional[int] = None
) -> List[List[PriceMovement]]:
    """Shuffle *samples* and partition them into *k* folds.

    ``seed=None`` takes the unseeded (non-reproducible) path.
    """
    if k <= 1:
        raise InvalidArgumentError("k", k, "must be greater than 1")
    order = make_generator(seed).permutation(len(samples))
    shuffled = [samples[i] for i in order]
    base, remainder = divmod(len(shuffled), k)
    folds: List[List[PriceMovement]] = []
    start = 0
    for i in range(k):
        size = base + (1 if i < remainder else 0)
        folds.append(shuffled[start:start + size])
        start += size
    return folds


class KFoldValidationStrategy(ValidationStrategy):

    @property
    def name(self) -> str:
        return "K-Fold Cross-Validation"

    def validate(self, samples, method) -> CrossValidationResult:
        k = self.config.k_folds
        if not samples:
            raise InsufficientDataError("k-fold cross-validation", required=k, actual=0)
        if len(samples) < k:
            raise InsufficientDataError(
                "k-fold cross-validation",
                required=k,
                actual=len(samples),
                guidance=f"Each of the {k} folds needs at least one sample",
            )

        folds = make_folds(samples, k, self.config.random_seed)
        results: List[CrossValidationFold] = []
        for i, test in enumerate(folds):
            train = [s for j, fold in enumerate(folds) if j != i for s in fold]
            results.append(self._run_fold(i, method, train, test))

        result = CrossValidationResult(
            **self._summary(results),
            metrics=fold_score_metrics(results, count_key="FoldCount"),
        )
        logger.info(
            "%s: k=%d mean=%.4f std=%.4f overfitting=%s",
            self.name, k, result.mean_score, result.std_dev_score, result.is_overfitting,
        )
        return result
