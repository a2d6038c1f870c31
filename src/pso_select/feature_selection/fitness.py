"""Fitness of one particle position.

A position in [0, 1]^d is decoded into a predictor subset (component >= 0.5
means "included"), scored by k-fold cross-validation, and charged a
complexity penalty per selected variable::

    fitness = cv_mae + |selected| * penalty

The per-variable penalty is ``stddev(response) * penalty_factor``, computed
once per run so the accuracy/size trade-off does not depend on the scale of
the response.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pso_select.models.base import ModelBackend, ModelSpec
from pso_select.models.common.cv_utils import SENTINEL_FAILURE, CrossValidator
from pso_select.models.registry import get_backend, needs_group, normalize_kind

INCLUSION_THRESHOLD = 0.5


def decode_position(
    position: Sequence[float],
    candidate_vars: Sequence[str],
    threshold: float = INCLUSION_THRESHOLD,
) -> List[str]:
    """Names of the candidates whose component is ``>= threshold``, in candidate order."""
    position = np.asarray(position, dtype=float).ravel()
    if len(position) != len(candidate_vars):
        raise ValueError(
            f"position has {len(position)} components but there are "
            f"{len(candidate_vars)} candidate variables"
        )
    return [name for name, value in zip(candidate_vars, position) if value >= threshold]


def compute_dynamic_penalty(y: Sequence[float] | pd.Series, penalty_factor: float) -> float:
    """Per-variable penalty: sample standard deviation of ``y`` times ``penalty_factor``."""
    if penalty_factor < 0:
        raise ValueError(f"penalty_factor must be >= 0, got {penalty_factor}")
    values = np.asarray(y, dtype=float).ravel()
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1)) * float(penalty_factor)


def build_model_spec(
    selected: Sequence[str],
    response: str,
    model_kind: str,
    group_col: Optional[str] = None,
) -> ModelSpec:
    """Model spec for ``selected``; the grouping column is only kept for mixed models."""
    group = group_col if needs_group(model_kind) else None
    return ModelSpec(response=response, predictors=tuple(selected), group=group)


class FitnessEvaluator:
    """Callable ``position -> fitness`` bound to one training set.

    Parameters
    ----------
    data : pd.DataFrame
        Training rows (read-only for the lifetime of the evaluator).
    candidate_vars : Sequence[str]
        Candidate predictors; index ``i`` of a position refers to
        ``candidate_vars[i]``.
    response : str
        Response column.
    model_kind : str
        ``linear``, ``mixed-effects`` or ``random-forest`` (aliases accepted).
    n_splits : int
        Fold count ``k``.
    complexity_penalty : float
        Cost added per selected variable.
    group_col : str, optional
        Random-intercept grouping column for the mixed-effects kind.
    seed : int
        Fold seed, shared by every evaluation of the run.
    backend : ModelBackend, optional
        Pre-built backend; by default one is created from ``model_kind``.
    """

    def __init__(
        self,
        data: pd.DataFrame,
        candidate_vars: Sequence[str],
        response: str,
        model_kind: str,
        n_splits: int,
        complexity_penalty: float,
        *,
        group_col: Optional[str] = None,
        seed: int = 999,
        backend: ModelBackend | None = None,
        verbose: bool = False,
    ) -> None:
        self.data = data
        self.candidate_vars = list(candidate_vars)
        self.response = response
        self.model_kind = normalize_kind(model_kind)
        self.n_splits = int(n_splits)
        self.complexity_penalty = float(complexity_penalty)
        self.group_col = group_col
        self.seed = seed
        self.backend = backend if backend is not None else get_backend(self.model_kind)
        self.validator = CrossValidator(self.backend, verbose=verbose)
        # None marks a subset that failed in some fold.
        self._cv_cache: Dict[Tuple[str, ...], Optional[float]] = {}

    @property
    def dim(self) -> int:
        return len(self.candidate_vars)

    def decode(self, position: Sequence[float]) -> List[str]:
        return decode_position(position, self.candidate_vars)

    def _cv_score(self, selected: Sequence[str]) -> Optional[float]:
        key = tuple(selected)
        if key not in self._cv_cache:
            spec = build_model_spec(key, self.response, self.model_kind, self.group_col)
            self._cv_cache[key] = self.validator.score(
                spec, self.data, self.n_splits, self.seed
            )
        return self._cv_cache[key]

    def cv_error(self, selected: Sequence[str]) -> float:
        """Cross-validated MAE of ``selected`` (memoised per subset), or the sentinel."""
        error = self._cv_score(selected)
        return SENTINEL_FAILURE if error is None else error

    def evaluate(self, position: Sequence[float]) -> float:
        selected = self.decode(position)
        if not selected:
            return SENTINEL_FAILURE
        cv_error = self._cv_score(selected)
        if cv_error is None:
            return SENTINEL_FAILURE
        return cv_error + len(selected) * self.complexity_penalty

    __call__ = evaluate
