"""End-to-end PSO feature selection on an in-memory training frame.

``select_features`` wires the pieces together: candidate list, config
validation, dynamic penalty, warm-start swarm, PSO run, decoding of the
best position. ``fit_final_model`` / ``evaluate_holdout`` refit the chosen
subset and score it on data the swarm never saw.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from pso_select.config import SelectionConfig
from pso_select.feature_selection.fitness import (
    FitnessEvaluator,
    build_model_spec,
    compute_dynamic_penalty,
    decode_position,
)
from pso_select.feature_selection.pso import PSOEngine, PSOParams, RunStatus
from pso_select.feature_selection.warm_start import warm_start_positions
from pso_select.models.base import FitResult, ModelBackend, is_failure
from pso_select.models.common.cv_utils import compute_fold_metrics, is_sentinel
from pso_select.models.registry import get_backend, needs_group, normalize_kind


@dataclass
class SelectionResult:
    """Outcome of one optimisation run."""

    selected: List[str]
    best_score: float
    best_position: np.ndarray
    initial_best_score: float
    trace: np.ndarray
    penalty: float
    candidate_vars: List[str]
    status: RunStatus
    iterations_run: int
    evals_used: int
    history: List[dict] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """True when even the best subset found could not be cross-validated."""
        return is_sentinel(self.best_score)

    @property
    def cv_error(self) -> float:
        if self.failed:
            return float("nan")
        return self.best_score - len(self.selected) * self.penalty

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected": list(self.selected),
            "n_selected": len(self.selected),
            "failed": self.failed,
            "best_score": None if self.failed else float(self.best_score),
            "cv_error": None if self.failed else float(self.cv_error),
            "initial_best_score": float(self.initial_best_score),
            "penalty_per_variable": float(self.penalty),
            "status": self.status.value,
            "iterations_run": int(self.iterations_run),
            "evals_used": int(self.evals_used),
            "best_position": [float(v) for v in self.best_position],
            "candidate_vars": list(self.candidate_vars),
        }


def candidate_variables(
    data: pd.DataFrame,
    response: str,
    exclude: Sequence[str] = (),
) -> List[str]:
    """Every column except the response and the excluded metadata, in frame order."""
    ignored = set(exclude) | {response}
    return [c for c in data.columns if c not in ignored]


def select_features(
    data: pd.DataFrame,
    config: SelectionConfig,
    *,
    backend: ModelBackend | None = None,
    verbose: bool = False,
) -> SelectionResult:
    """Run warm-started PSO over the candidate variables of ``data``.

    Raises
    ------
    ValueError, KeyError
        On configuration problems, before any model is fitted.
    """
    kind = normalize_kind(config.model_kind)
    exclude = list(config.exclude)
    if needs_group(kind) and config.group_col and config.group_col not in exclude:
        exclude.append(config.group_col)
    candidates = candidate_variables(data, config.response, exclude)
    config.validate(candidates, data)

    penalty = compute_dynamic_penalty(data[config.response], config.penalty_factor)
    if verbose:
        print(f"[info] model kind: {kind}")
        print(f"[info] candidate variables: {len(candidates)}")
        print(
            f"[info] penalty per variable: {penalty:.4f} "
            f"(factor={config.penalty_factor})"
        )

    evaluator = FitnessEvaluator(
        data,
        candidates,
        config.response,
        kind,
        config.n_splits,
        penalty,
        group_col=config.group_col,
        seed=config.cv_seed,
        backend=backend,
    )

    # Independent streams for the warm start and the swarm dynamics.
    init_seq, swarm_seq = np.random.SeedSequence(config.seed).spawn(2)
    initial_positions = warm_start_positions(
        data,
        candidates,
        config.response,
        config.swarm_size,
        config.warm_start_sizes,
        np.random.default_rng(init_seq),
        verbose=verbose,
    )

    params = PSOParams(
        swarm_size=config.swarm_size,
        max_iterations=config.max_iterations,
        w=config.w,
        c1=config.c1,
        c2=config.c2,
        vmax_frac=config.vmax_frac,
        seed=config.seed,
        patience=config.patience,
        n_jobs=config.n_jobs,
    )
    engine = PSOEngine(
        evaluator,
        len(candidates),
        params,
        rng=np.random.default_rng(swarm_seq),
        verbose=verbose,
    )
    result = engine.run(initial_positions)

    selected = decode_position(result.best_position, candidates)
    return SelectionResult(
        selected=selected,
        best_score=result.best_score,
        best_position=result.best_position,
        initial_best_score=result.initial_best_score,
        trace=result.trace,
        penalty=penalty,
        candidate_vars=candidates,
        status=result.status,
        iterations_run=result.iterations_run,
        evals_used=result.evals_used,
        history=result.history,
    )


def fit_final_model(
    selected: Sequence[str],
    data: pd.DataFrame,
    config: SelectionConfig,
    backend: ModelBackend | None = None,
) -> FitResult:
    """Refit the selected subset on all of ``data``."""
    kind = normalize_kind(config.model_kind)
    backend = backend if backend is not None else get_backend(kind)
    spec = build_model_spec(selected, config.response, kind, config.group_col)
    return backend.fit(spec, data)


def evaluate_holdout(
    fitted: FitResult,
    holdout: pd.DataFrame,
    config: SelectionConfig,
    backend: ModelBackend | None = None,
) -> Dict[str, float] | None:
    """MAE/RMSE of ``fitted`` on ``holdout``; ``None`` when the model cannot predict it."""
    if is_failure(fitted) or len(holdout) == 0:
        return None
    backend = backend if backend is not None else get_backend(fitted.kind)
    pred = backend.predict(fitted, holdout)
    if is_failure(pred):
        return None
    return compute_fold_metrics(holdout[config.response].to_numpy(dtype=float), pred)
