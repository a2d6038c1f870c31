"""Model backends and cross-validation.

This package provides one fit/predict contract for every supported model
kind (linear, mixed-effects, random-forest) and the k-fold evaluator that
scores a candidate predictor subset.
"""

from pso_select.models.base import (
    FAILURE,
    Failure,
    FitResult,
    FittedModel,
    ModelBackend,
    ModelSpec,
    is_failure,
)
from pso_select.models.common.cv_utils import (
    SENTINEL_FAILURE,
    CrossValidator,
    FoldAssignment,
    is_sentinel,
    make_stratified_folds,
)
from pso_select.models.registry import get_backend, normalize_kind

__all__ = [
    "FAILURE",
    "Failure",
    "FitResult",
    "FittedModel",
    "ModelBackend",
    "ModelSpec",
    "is_failure",
    "SENTINEL_FAILURE",
    "CrossValidator",
    "FoldAssignment",
    "is_sentinel",
    "make_stratified_folds",
    "get_backend",
    "normalize_kind",
]
