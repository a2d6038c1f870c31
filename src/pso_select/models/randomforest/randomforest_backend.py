"""RandomForestRegressor backend."""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor

from pso_select.models.base import FittedModel, ModelBackend, ModelSpec


class RandomForestBackend(ModelBackend):
    """Random forest with a fixed ``random_state`` so refits are reproducible."""

    kind = "random-forest"
    drop_first = False

    def __init__(
        self,
        n_estimators: int = 50,
        random_state: int = 42,
        min_samples_leaf: int = 5,
        n_jobs: int = 1,
    ) -> None:
        self.n_estimators = n_estimators
        self.random_state = random_state
        self.min_samples_leaf = min_samples_leaf
        self.n_jobs = n_jobs

    def _fit(
        self,
        spec: ModelSpec,
        X: np.ndarray,
        y: np.ndarray,
        train: pd.DataFrame,
    ) -> Tuple[Any, Dict[str, Any]]:
        if X.shape[1] == 0:
            raise ValueError("design matrix has no columns")
        model = RandomForestRegressor(
            n_estimators=self.n_estimators,
            min_samples_leaf=self.min_samples_leaf,
            random_state=self.random_state,
            n_jobs=self.n_jobs,
        )
        model.fit(X, y)
        return model, {"feature_importances": model.feature_importances_.tolist()}

    def _predict(self, fitted: FittedModel, X: np.ndarray, data: pd.DataFrame) -> Any:
        return fitted.estimator.predict(X)
