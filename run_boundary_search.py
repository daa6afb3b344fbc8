#!/usr/bin/env python3
"""
Search a sample file for optimal boundaries and cross-validate the result.

Usage:
    python3 run_boundary_search.py --input samples.csv                 # Combined search + 5-fold CV
    python3 run_boundary_search.py --input samples.csv --target 2.0    # Larger target move
    python3 run_boundary_search.py --input samples.csv --cv expanding  # Expanding-window CV
    python3 run_boundary_search.py --input samples.csv --cv rolling    # Rolling-window CV
    python3 run_boundary_search.py --input samples.csv --seed 42       # Reproducible folds / k-means
    python3 run_boundary_search.py --input samples.csv --json          # JSON summary on stdout

The CSV needs ``measurement_value``, ``atr_movement`` and
``start_timestamp`` columns.
"""
import argparse
import json
import logging
import sys
import time
from dataclasses import replace

import pandas as pd

from boundary_engine.config import (
    CV_K_FOLDS,
    CV_MIN_TRAIN_WINDOW,
    CV_ROLLING_WINDOW,
    CV_STEP_SIZE,
    TARGET_ATR_MOVE,
    validate_config,
)
from boundary_engine.config_structured import SystemConfig
from boundary_engine.data.samples import samples_from_frame, sort_by_time
from boundary_engine.errors import BoundaryEngineError
from boundary_engine.optimization.optimizer import BoundaryOptimizer
from boundary_engine.utils.logging import OptimizationMetricsEmitter

logger = logging.getLogger(__name__)


def _run_cv(optimizer, samples, args):
    if args.cv == "expanding":
        return optimizer.expanding_window_validation(samples, CV_MIN_TRAIN_WINDOW, CV_STEP_SIZE)
    if args.cv == "rolling":
        return optimizer.rolling_window_validation(samples, CV_ROLLING_WINDOW, CV_STEP_SIZE)
    return optimizer.k_fold_cross_validation(samples, k=args.folds, seed=args.seed)


def main(argv=None):
    """Run the command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Find and cross-validate optimal measurement-value boundaries",
    )
    parser.add_argument("--input", required=True, help="CSV file of samples")
    parser.add_argument("--target", type=float, default=TARGET_ATR_MOVE,
                        help="Target |ATR movement| for a hit")
    parser.add_argument("--cv", choices=["kfold", "expanding", "rolling"], default="kfold",
                        help="Cross-validation scheme")
    parser.add_argument("--folds", type=int, default=CV_K_FOLDS, help="Fold count for k-fold CV")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: unseeded)")
    parser.add_argument("--json", action="store_true", help="Print a JSON summary to stdout")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    t0 = time.time()

    for issue in validate_config():
        if issue["level"] == "ERROR":
            logger.error("Config validation: %s", issue["message"])
        else:
            logger.warning("Config validation: %s", issue["message"])

    frame = pd.read_csv(args.input, parse_dates=["start_timestamp"])
    samples = sort_by_time(samples_from_frame(frame))
    if not samples:
        logger.error("No usable samples in %s", args.input)
        return 1

    base = SystemConfig()
    config = replace(
        base,
        ml_optimization=replace(
            base.ml_optimization, target_atr_move=args.target, random_seed=args.seed
        ),
    )
    optimizer = BoundaryOptimizer(config)
    emitter = OptimizationMetricsEmitter()

    try:
        combined = optimizer.run_combined_optimization(samples)
        cv = _run_cv(optimizer, samples, args)
    except BoundaryEngineError as exc:
        logger.error("Boundary search failed: %s", exc)
        if args.json:
            print(json.dumps(exc.to_report(), indent=2, default=str))
        return 2

    emitter.emit_combined_metrics(combined)
    emitter.emit_cross_validation_metrics(cv)
    alerts = emitter.check_alerts(cv)

    for b in combined.optimal_boundaries:
        logger.info(
            "  [%.4f, %.4f] hit_rate=%.3f n=%d confidence=%.3f (%s)",
            b.range_low, b.range_high, b.hit_rate, b.sample_count, b.confidence, b.method,
        )
    logger.info(
        "Best method %s (score %.4f); CV mean %.4f ± %.4f over %d folds",
        combined.best_method, combined.best_score, cv.mean_score, cv.std_dev_score, cv.fold_count,
    )

    if args.json:
        summary = {
            "samples": len(samples),
            "best_method": combined.best_method,
            "best_score": combined.best_score,
            "method_scores": dict(combined.ranking()),
            "boundaries": [
                {
                    "low": b.range_low,
                    "high": b.range_high,
                    "hit_rate": b.hit_rate,
                    "sample_count": b.sample_count,
                    "confidence": b.confidence,
                    "method": b.method,
                }
                for b in combined.optimal_boundaries
            ],
            "cross_validation": {
                "scheme": args.cv,
                "fold_scores": list(cv.fold_scores),
                "mean": cv.mean_score,
                "std": cv.std_dev_score,
                "confidence_interval": list(cv.confidence_interval),
                "is_overfitting": cv.is_overfitting,
                "metrics": cv.metrics,
            },
            "alerts": alerts,
        }
        print(json.dumps(summary, indent=2, default=str))

    logger.info("Completed in %.1fs", time.time() - t0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
