"""Random-intercept linear mixed model backend (statsmodels MixedLM)."""

from __future__ import annotations

import warnings
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd

try:
    import statsmodels.api as sm
    HAS_STATSMODELS = True
except Exception:
    sm = None
    HAS_STATSMODELS = False

from pso_select.models.base import FittedModel, ModelBackend, ModelSpec


class MixedEffectsBackend(ModelBackend):
    """``response ~ predictors + (1|group)`` fitted with :class:`statsmodels.api.MixedLM`."""

    kind = "mixed-effects"
    drop_first = True

    def __init__(self, reml: bool = True, max_iter: int = 200) -> None:
        self.reml = reml
        self.max_iter = max_iter

    def _fit(
        self,
        spec: ModelSpec,
        X: np.ndarray,
        y: np.ndarray,
        train: pd.DataFrame,
    ) -> Tuple[Any, Dict[str, Any]]:
        if not HAS_STATSMODELS:
            raise RuntimeError("mixed-effects models require the 'statsmodels' package.")
        if not spec.group:
            raise ValueError("mixed-effects model needs a grouping column")

        groups = train[spec.group].astype(str).to_numpy()
        exog = np.column_stack([np.ones(len(X)), X])
        model = sm.MixedLM(y, exog, groups=groups)
        with warnings.catch_warnings():
            # Boundary and convergence chatter; convergence is checked below.
            warnings.simplefilter("ignore")
            result = model.fit(reml=self.reml, maxiter=self.max_iter)
        if not getattr(result, "converged", True):
            raise ValueError("MixedLM did not converge")

        fe_params = np.asarray(result.fe_params, dtype=float)
        if not np.all(np.isfinite(fe_params)):
            raise ValueError("non-finite fixed effects")
        random_intercepts = {
            str(level): float(np.asarray(effect)[0])
            for level, effect in result.random_effects.items()
        }
        extras = {
            "fe_params": fe_params,
            "random_intercepts": random_intercepts,
            "group_variance": float(np.asarray(result.cov_re)[0, 0]),
        }
        return result, extras

    def _predict(self, fitted: FittedModel, X: np.ndarray, data: pd.DataFrame) -> Any:
        exog = np.column_stack([np.ones(len(X)), X])
        fixed = exog @ fitted.extras["fe_params"]
        intercepts = fitted.extras["random_intercepts"]
        groups = data[fitted.spec.group].astype(str)
        shift = groups.map(intercepts).fillna(0.0).to_numpy(dtype=float)
        return fixed + shift
