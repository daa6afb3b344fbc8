"""
Combined optimization: run every enabled strategy and pick the winner.

Samples are split into train / validation in their given order (callers
pass chronologically sorted data when they need a temporal split).  Each
strategy trains on the first part and is scored on the held-out part;
the best held-out score wins.  A strategy that fails validation or raises
is recorded with score 0 and never aborts the run.

Usage::

    result = run_combined_optimization(samples, MLOptimizationConfig(target_atr_move=1.5))
    result.best_method, result.optimal_boundaries
"""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence

from ..config_structured import MLOptimizationConfig, OptimizationConfig
from ..data.samples import PriceMovement
from .strategies.base import BoundaryStrategy
from .strategies.factory import create_strategies
from .types import CombinedOptimizationResult, MethodResult

logger = logging.getLogger(__name__)


def train_validation_split(samples: Sequence[PriceMovement], validation_ratio: float):
    train_size = int(len(samples) * (1.0 - validation_ratio))
    return list(samples[:train_size]), list(samples[train_size:])


def _run_strategy(
    strategy: BoundaryStrategy,
    train: Sequence[PriceMovement],
    validation: Sequence[PriceMovement],
    target: float,
) -> MethodResult:
    start = time.perf_counter()
    try:
        outcome = strategy.optimize(train)
        score = strategy.evaluate(outcome.boundaries, validation, target) if outcome.success else 0.0
        diagnostics: Dict[str, object] = dict(outcome.diagnostics)
        diagnostics["Success"] = outcome.success
        if outcome.warnings:
            diagnostics["Warnings"] = list(outcome.warnings)
        if not outcome.success:
            diagnostics["Error"] = "; ".join(outcome.errors)
        return MethodResult(
            method_name=strategy.name,
            boundaries=outcome.boundaries,
            validation_score=score,
            execution_time=time.perf_counter() - start,
            parameters=strategy.parameters(),
            diagnostics=diagnostics,
        )
    except Exception as exc:
        logger.exception("Strategy %s raised during combined optimization", strategy.name)
        return MethodResult(
            method_name=strategy.name,
            validation_score=0.0,
            execution_time=time.perf_counter() - start,
            parameters=strategy.parameters(),
            diagnostics={"Success": False, "Error": f"{type(exc).__name__}: {exc}"},
        )


def run_combined_optimization(
    samples: Sequence[PriceMovement],
    config: Optional[MLOptimizationConfig] = None,
    optimization_config: Optional[OptimizationConfig] = None,
    strategies: Optional[List[BoundaryStrategy]] = None,
) -> CombinedOptimizationResult:
    """Train every enabled strategy and keep the best on held-out data.

    Parameters
    ----------
    samples : sequence of PriceMovement
        Ordered samples; the last ``validation_ratio`` share is held out.
    config : MLOptimizationConfig, optional
        Enabled strategies, target move and split ratio.
    optimization_config : OptimizationConfig, optional
        Hard limits forwarded to the strategies.
    strategies : list of BoundaryStrategy, optional
        Explicit strategy instances; overrides the factory.

    Returns
    -------
    CombinedOptimizationResult
        ``method_results`` holds one entry per strategy that ran.
    """
    config = config or MLOptimizationConfig()
    if strategies is None:
        strategies = create_strategies(config, optimization_config)

    train, validation = train_validation_split(samples, config.validation_ratio)
    logger.info(
        "Combined optimization: %d strategies, %d train / %d validation samples",
        len(strategies), len(train), len(validation),
    )

    method_results: Dict[str, MethodResult] = {}
    for strategy in strategies:
        result = _run_strategy(strategy, train, validation, config.target_atr_move)
        method_results[strategy.name] = result
        logger.info(
            "%s: %d boundaries, validation score %.4f (%.3fs)",
            strategy.name, len(result.boundaries), result.validation_score, result.execution_time,
        )

    if not method_results:
        return CombinedOptimizationResult(train_size=len(train), validation_size=len(validation))

    best_name = max(method_results, key=lambda k: method_results[k].validation_score)
    best = method_results[best_name]
    return CombinedOptimizationResult(
        optimal_boundaries=best.boundaries,
        best_method=best_name,
        best_score=best.validation_score,
        method_results=method_results,
        train_size=len(train),
        validation_size=len(validation),
    )
