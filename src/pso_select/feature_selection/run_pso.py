#!/usr/bin/env python
"""PSO feature selection with warm start and cross-validation.

Loads a trial table, reserves a stratified holdout the swarm never sees,
searches the candidate variables with PSO, then refits the selected subset
on the training split and reports its holdout error.

Outputs (under ``--out-dir``):
- selection_result.json: selected variables, fitness, status, config
- convergence_trace.csv: best fitness after every iteration
- final_model.pkl: joblib dump of the refitted model handle

Usage:
    python -m pso_select.feature_selection.run_pso --config-path configs/pso.yaml
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Sequence

import joblib

from pso_select.config import SelectionConfig, load_config
from pso_select.data.process import load_table, process_data
from pso_select.data.synthetic import generate_synthetic_data
from pso_select.feature_selection.pipeline import (
    SelectionResult,
    evaluate_holdout,
    fit_final_model,
    select_features,
)
from pso_select.models.base import is_failure
from pso_select.models.common.cv_utils import holdout_split
from pso_select.models.registry import MODEL_KIND_CHOICES

EXIT_NO_STABLE_SUBSET = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    ap = argparse.ArgumentParser(
        description="Select predictors with warm-started PSO and k-fold CV."
    )
    ap.add_argument(
        "--config-path",
        type=str,
        default=None,
        help="Path to a YAML config (see configs/pso.yaml)",
    )
    ap.add_argument(
        "--data-path",
        type=str,
        default="data/train_data.csv",
        help="CSV or parquet trial table",
    )
    ap.add_argument(
        "--generate-synthetic",
        action="store_true",
        help="Write a synthetic dataset to --data-path if it does not exist",
    )
    ap.add_argument(
        "--out-dir",
        type=str,
        default="artifacts/pso",
    )
    ap.add_argument("--response", type=str, default=None)
    ap.add_argument(
        "--model-kind",
        type=str,
        default=None,
        choices=list(MODEL_KIND_CHOICES),
    )
    ap.add_argument("--group-col", type=str, default=None)
    # CV settings
    ap.add_argument("--n-splits", type=int, default=None)
    ap.add_argument("--cv-seed", type=int, default=None)
    # Swarm settings
    ap.add_argument("--swarm-size", type=int, default=None)
    ap.add_argument("--max-iterations", type=int, default=None)
    ap.add_argument("--penalty-factor", type=float, default=None)
    ap.add_argument("--warm-start-sizes", type=int, nargs="+", default=None)
    ap.add_argument("--patience", type=int, default=None)
    ap.add_argument("--n-jobs", type=int, default=None)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--holdout-fraction", type=float, default=None)
    # Output control
    ap.add_argument("--no-artifacts", action="store_true")
    ap.add_argument("--quiet", action="store_true")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace) -> SelectionConfig:
    """CLI args > config file > defaults."""
    config = load_config(args.config_path)
    overrides: Dict[str, Any] = {
        "response": args.response,
        "model_kind": args.model_kind,
        "group_col": args.group_col,
        "n_splits": args.n_splits,
        "cv_seed": args.cv_seed,
        "swarm_size": args.swarm_size,
        "max_iterations": args.max_iterations,
        "penalty_factor": args.penalty_factor,
        "warm_start_sizes": args.warm_start_sizes,
        "patience": args.patience,
        "n_jobs": args.n_jobs,
        "seed": args.seed,
        "holdout_fraction": args.holdout_fraction,
    }
    return config.with_overrides(overrides)


def write_artifacts(
    out_dir: Path,
    result: SelectionResult,
    config: SelectionConfig,
    holdout_metrics: Dict[str, float] | None,
    fitted: Any,
    verbose: bool = True,
) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)

    payload = result.to_dict()
    payload["holdout"] = holdout_metrics
    payload["config"] = config.to_dict()
    payload["created_at"] = datetime.now(timezone.utc).isoformat()
    result_path = out_dir / "selection_result.json"
    with open(result_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    if verbose:
        print(f"[info] Saved selection result to {result_path}")

    trace_path = out_dir / "convergence_trace.csv"
    if result.history:
        fieldnames = list(result.history[0].keys())
        with open(trace_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(result.history)
        if verbose:
            print(f"[info] Saved convergence trace to {trace_path}")

    if fitted is not None and not is_failure(fitted):
        model_path = out_dir / "final_model.pkl"
        joblib.dump(fitted, model_path)
        if verbose:
            print(f"[info] Saved final model to {model_path}")


def main(argv: Sequence[str] | None = None) -> int:
    """Main selection routine."""
    args = parse_args(argv)
    verbose = not args.quiet
    config = build_config(args)

    data_path = Path(args.data_path)
    if not data_path.exists():
        if not args.generate_synthetic:
            raise FileNotFoundError(
                f"Data file not found: {data_path} (use --generate-synthetic for a demo)"
            )
        generate_synthetic_data(seed=config.seed, output_path=data_path)
        print(f"[info] synthetic data written to {data_path}")

    print(f"[info] data file: {data_path}")
    raw = load_table(data_path)
    data = process_data(raw, categorical=config.categorical, verbose=verbose)
    if config.response not in data.columns:
        raise KeyError(f"Response column '{config.response}' not found")

    train_idx, holdout_idx = holdout_split(
        data[config.response].to_numpy(dtype=float),
        holdout_fraction=config.holdout_fraction,
        seed=config.seed,
    )
    train_df = data.iloc[train_idx].reset_index(drop=True)
    holdout_df = data.iloc[holdout_idx].reset_index(drop=True)
    print(f"[info] train rows: {len(train_df)} | holdout rows: {len(holdout_df)}")

    print(f"\n{'=' * 60}")
    print(
        f"Starting PSO ({config.model_kind}): warm start + "
        f"{config.n_splits}-fold CV + complexity penalty"
    )
    print(f"{'=' * 60}\n")

    result = select_features(train_df, config, verbose=verbose)

    print(f"\n{'=' * 60}")
    if result.failed:
        print("[warn] no stable subset found: every evaluated subset failed cross-validation")
        print(f"{'=' * 60}\n")
        if not args.no_artifacts:
            write_artifacts(Path(args.out_dir), result, config, None, None, verbose)
        return EXIT_NO_STABLE_SUBSET

    print(f"Selected variables ({len(result.selected)}): {', '.join(result.selected)}")
    print(f"[PSO] best fitness = {result.best_score:.4f} (cv MAE = {result.cv_error:.4f})")

    fitted = fit_final_model(result.selected, train_df, config)
    holdout_metrics = evaluate_holdout(fitted, holdout_df, config)
    if holdout_metrics is not None:
        print(f"[holdout] MAE = {holdout_metrics['mae']:.4f} | RMSE = {holdout_metrics['rmse']:.4f}")
    elif len(holdout_df) == 0:
        print("[info] no holdout rows reserved")
    else:
        print("[warn] final model failed validation due to data consistency issues")
    print(f"{'=' * 60}\n")

    if not args.no_artifacts:
        write_artifacts(Path(args.out_dir), result, config, holdout_metrics, fitted, verbose)

    print("[ok] optimisation finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
