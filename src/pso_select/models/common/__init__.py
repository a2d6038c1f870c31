"""Common utilities for model evaluation."""

from pso_select.models.common.cv_utils import (
    SENTINEL_FAILURE,
    CrossValidator,
    FoldAssignment,
    compute_fold_metrics,
    holdout_split,
    is_sentinel,
    make_stratified_folds,
    quantile_bins,
)

__all__ = [
    "SENTINEL_FAILURE",
    "CrossValidator",
    "FoldAssignment",
    "compute_fold_metrics",
    "holdout_split",
    "is_sentinel",
    "make_stratified_folds",
    "quantile_bins",
]
