"""Ordinary least squares backend built on scikit-learn."""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from pso_select.models.base import FittedModel, ModelBackend, ModelSpec


class LinearBackend(ModelBackend):
    """``response ~ predictors`` fitted with :class:`LinearRegression`."""

    kind = "linear"
    drop_first = True

    def _fit(
        self,
        spec: ModelSpec,
        X: np.ndarray,
        y: np.ndarray,
        train: pd.DataFrame,
    ) -> Tuple[Any, Dict[str, Any]]:
        if X.shape[1] == 0:
            raise ValueError("design matrix has no columns")
        model = LinearRegression(fit_intercept=True)
        model.fit(X, y)
        return model, {}

    def _predict(self, fitted: FittedModel, X: np.ndarray, data: pd.DataFrame) -> Any:
        return fitted.estimator.predict(X)
