"""Cross-validation utilities for subset evaluation.

This module provides the stratified k-fold splitter and the cross validator
that turns one :class:`ModelSpec` into one scalar error.

Key design decisions:
- Folds are stratified on quantile bins of the response
- Fold membership depends only on (response, k, seed), so every particle in
  every iteration is scored on identical folds
- A failure in any fold rejects the whole subset with ``SENTINEL_FAILURE``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error

from pso_select.models.base import ModelBackend, ModelSpec, is_failure

# Large but finite; the swarm ranks it behind every valid score whatever the scale.
SENTINEL_FAILURE = 1e7


def is_sentinel(score: float) -> bool:
    """True only for the exact failure value; large valid errors are not failures."""
    return score == SENTINEL_FAILURE


@dataclass(frozen=True, eq=False)
class FoldAssignment:
    """Partition of record indices into ``n_splits`` disjoint folds."""

    folds: Tuple[np.ndarray, ...]
    n_samples: int
    seed: int
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def n_splits(self) -> int:
        return len(self.folds)

    def fold_sizes(self) -> List[int]:
        return [len(f) for f in self.folds]

    def labels(self) -> np.ndarray:
        """Fold id of every record."""
        out = np.full(self.n_samples, -1, dtype=int)
        for fold_idx, members in enumerate(self.folds):
            out[members] = fold_idx
        return out

    def split(self, fold_idx: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(train_indices, val_indices)`` with fold ``fold_idx`` held out."""
        val_idx = self.folds[fold_idx]
        train_idx = np.concatenate(
            [f for i, f in enumerate(self.folds) if i != fold_idx]
        )
        return np.sort(train_idx), val_idx

    def __iter__(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        for fold_idx in range(self.n_splits):
            yield self.split(fold_idx)


def quantile_bins(y: np.ndarray, n_bins: int) -> np.ndarray:
    """Bin ``y`` into (at most) ``n_bins`` quantile groups, labelled 0..b-1.

    Duplicate quantile edges are merged, so heavily tied responses yield fewer
    bins. Equal values always land in the same bin.
    """
    y = np.asarray(y, dtype=float).ravel()
    if n_bins < 2 or len(np.unique(y)) < 2:
        return np.zeros(len(y), dtype=int)
    codes = pd.qcut(y, q=n_bins, labels=False, duplicates="drop")
    return np.asarray(codes, dtype=int)


def make_stratified_folds(
    y: np.ndarray,
    n_splits: int,
    seed: int,
    max_bins: int = 5,
) -> FoldAssignment:
    """Create a response-stratified k-fold partition.

    Parameters
    ----------
    y : np.ndarray
        Response values, one per record.
    n_splits : int
        Number of folds (k >= 2 and k <= number of records).
    seed : int
        Seed for the within-bin shuffle.
    max_bins : int
        Upper bound on the number of quantile bins.

    Returns
    -------
    FoldAssignment
        Folds with sizes differing by at most one. Records are dealt
        round-robin bin by bin, so folds with a lower index receive the
        remainder when ``n`` is not divisible by ``k``.

    Raises
    ------
    ValueError
        If ``n_splits`` is smaller than 2 or larger than the number of records.
    """
    y = np.asarray(y, dtype=float).ravel()
    n_samples = len(y)
    if n_splits < 2:
        raise ValueError(f"n_splits must be >= 2, got {n_splits}")
    if n_splits > n_samples:
        raise ValueError(
            f"n_splits={n_splits} is larger than the number of records ({n_samples})"
        )

    n_bins = min(max(n_samples // n_splits, 2), max_bins)
    bins = quantile_bins(y, n_bins)

    rng = np.random.default_rng(seed)
    ordered: List[np.ndarray] = []
    for b in np.unique(bins):
        members = np.flatnonzero(bins == b)
        ordered.append(rng.permutation(members))
    sequence = np.concatenate(ordered)

    fold_ids = np.arange(n_samples) % n_splits
    folds = tuple(np.sort(sequence[fold_ids == i]) for i in range(n_splits))

    metadata = {
        "n_bins": int(len(np.unique(bins))),
        "fold_sizes": [len(f) for f in folds],
    }
    return FoldAssignment(folds=folds, n_samples=n_samples, seed=seed, metadata=metadata)


def holdout_split(
    y: np.ndarray,
    holdout_fraction: float = 0.2,
    seed: int = 123,
    max_bins: int = 5,
) -> Tuple[np.ndarray, np.ndarray]:
    """Stratified train/holdout split on response quantile bins.

    Each bin contributes ``ceil((1 - holdout_fraction) * n_bin)`` records to the
    training side. Returns sorted ``(train_indices, holdout_indices)``.
    """
    y = np.asarray(y, dtype=float).ravel()
    if not 0.0 <= holdout_fraction < 1.0:
        raise ValueError(f"holdout_fraction must be in [0, 1), got {holdout_fraction}")
    all_idx = np.arange(len(y))
    if holdout_fraction == 0.0:
        return all_idx, np.array([], dtype=int)

    bins = quantile_bins(y, min(max(len(y) // 10, 2), max_bins))
    rng = np.random.default_rng(seed)
    train_parts: List[np.ndarray] = []
    for b in np.unique(bins):
        members = rng.permutation(np.flatnonzero(bins == b))
        n_train = int(np.ceil((1.0 - holdout_fraction) * len(members)))
        train_parts.append(members[:n_train])
    train_idx = np.sort(np.concatenate(train_parts))
    holdout_idx = np.setdiff1d(all_idx, train_idx)
    return train_idx, holdout_idx


def compute_fold_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
) -> Dict[str, float]:
    """Compute MAE and RMSE for one set of predictions."""
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    mae = float(mean_absolute_error(y_true, y_pred))
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    return {"mae": mae, "rmse": rmse}


class CrossValidator:
    """Mean out-of-fold MAE of one model spec.

    Parameters
    ----------
    backend : ModelBackend
        Engine used to fit and predict each fold.
    max_bins : int
        Upper bound on response quantile bins for stratification.
    verbose : bool
        Print a ``[warn]`` line when a fold fails.
    """

    def __init__(
        self,
        backend: ModelBackend,
        max_bins: int = 5,
        verbose: bool = False,
    ) -> None:
        self.backend = backend
        self.max_bins = max_bins
        self.verbose = verbose

    def folds(self, data: pd.DataFrame, response: str, k: int, seed: int) -> FoldAssignment:
        return make_stratified_folds(
            data[response].to_numpy(dtype=float), k, seed, max_bins=self.max_bins
        )

    def score(
        self, spec: ModelSpec, data: pd.DataFrame, k: int, seed: int
    ) -> Optional[float]:
        """Return the mean per-fold MAE, or ``None`` when any fold fails.

        Stops at the first fold whose fit or predict fails; the remaining folds
        are not attempted.
        """
        assignment = self.folds(data, spec.response, k, seed)
        y = data[spec.response].to_numpy(dtype=float)

        fold_errors: List[float] = []
        for fold_idx, (train_idx, val_idx) in enumerate(assignment, start=1):
            fitted = self.backend.fit(spec, data.iloc[train_idx])
            pred = self.backend.predict(fitted, data.iloc[val_idx])
            if is_failure(pred):
                if self.verbose:
                    print(
                        f"[warn][fold {fold_idx}] {self.backend.kind} failed for "
                        f"{spec.formula()}; subset rejected"
                    )
                return None
            fold_errors.append(compute_fold_metrics(y[val_idx], pred)["mae"])

        return float(np.mean(fold_errors))

    def evaluate(self, spec: ModelSpec, data: pd.DataFrame, k: int, seed: int) -> float:
        """Mean per-fold MAE, or ``SENTINEL_FAILURE`` when any fold fails."""
        error = self.score(spec, data, k, seed)
        return SENTINEL_FAILURE if error is None else error
