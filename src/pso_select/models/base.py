"""Model backend contract shared by every regression engine.

A backend turns a :class:`ModelSpec` plus training rows into an opaque
:class:`FittedModel`, and a fitted model plus evaluation rows into a vector of
predictions. Anything that goes wrong inside the modelling procedure is
returned as the :data:`FAILURE` marker instead of being raised, so callers
only ever branch on success vs. failure.

Key design decisions:
- One failure marker for every root cause (level mismatch, singular design,
  non-convergence, missing engine)
- Categorical levels are learned from the training rows only; an evaluation
  row with an unseen level is a failure
- Under dummy coding a factor with a single training level is a failure
- Non-finite predictions are treated as failures
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class ModelSpec:
    """Response, selected predictors and optional random-effects grouping."""

    response: str
    predictors: Tuple[str, ...]
    group: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "predictors", tuple(self.predictors))

    def formula(self) -> str:
        """Human readable R-style formula, used in reports."""
        rhs = " + ".join(self.predictors) if self.predictors else "1"
        if self.group:
            rhs = f"{rhs} + (1|{self.group})"
        return f"{self.response} ~ {rhs}"


class Failure:
    """Marker returned when a fit or predict could not complete."""

    _instance: Optional["Failure"] = None

    def __new__(cls) -> "Failure":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "FAILURE"

    def __reduce__(self):
        return (Failure, ())


FAILURE = Failure()


def is_failure(value: Any) -> bool:
    return isinstance(value, Failure)


def is_categorical(series: pd.Series) -> bool:
    """Numeric (non-boolean) columns are continuous, everything else is a factor."""
    return not pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series)


@dataclass(frozen=True)
class DesignEncoder:
    """Column layout learned from training rows.

    Numeric predictors are passed through as floats. Categorical predictors are
    dummy coded against the levels observed in training; with ``drop_first``
    the first (sorted) level is the reference level.
    """

    numeric: Tuple[str, ...]
    levels: Dict[str, Tuple[str, ...]]
    order: Tuple[str, ...]
    drop_first: bool = True

    @classmethod
    def fit(
        cls,
        data: pd.DataFrame,
        predictors: Sequence[str],
        drop_first: bool = True,
    ) -> "DesignEncoder":
        numeric: List[str] = []
        levels: Dict[str, Tuple[str, ...]] = {}
        for col in predictors:
            if col not in data.columns:
                raise KeyError(f"Predictor '{col}' not found")
            if is_categorical(data[col]):
                levels[col] = tuple(sorted(data[col].astype(str).unique()))
                if drop_first and len(levels[col]) < 2:
                    raise ValueError(
                        f"Factor '{col}' has a single level; contrasts need 2 or more"
                    )
            else:
                numeric.append(col)
        return cls(
            numeric=tuple(numeric),
            levels=levels,
            order=tuple(predictors),
            drop_first=drop_first,
        )

    @property
    def columns(self) -> List[str]:
        names: List[str] = []
        for col in self.order:
            if col in self.levels:
                kept = self.levels[col][1:] if self.drop_first else self.levels[col]
                names.extend(f"{col}[{level}]" for level in kept)
            else:
                names.append(col)
        return names

    def transform(self, data: pd.DataFrame) -> np.ndarray:
        """Build the design matrix; raises ``ValueError`` on unseen levels."""
        blocks: List[np.ndarray] = []
        for col in self.order:
            if col in self.levels:
                values = data[col].astype(str).to_numpy()
                known = self.levels[col]
                unseen = ~np.isin(values, known)
                if unseen.any():
                    raise ValueError(
                        f"Factor '{col}' has new levels: {sorted(set(values[unseen]))}"
                    )
                kept = known[1:] if self.drop_first else known
                for level in kept:
                    blocks.append((values == level).astype(float))
            else:
                blocks.append(data[col].to_numpy(dtype=float))
        if not blocks:
            return np.empty((len(data), 0), dtype=float)
        return np.column_stack(blocks)


@dataclass
class FittedModel:
    """Opaque handle returned by a successful :meth:`ModelBackend.fit`."""

    kind: str
    spec: ModelSpec
    encoder: DesignEncoder
    estimator: Any
    extras: Dict[str, Any] = field(default_factory=dict)


FitResult = Union[FittedModel, Failure]
PredictResult = Union[np.ndarray, Failure]


def _to_1d(pred: Any) -> np.ndarray:
    """Convert prediction to 1D numpy array."""
    array = np.asarray(pred)
    if array.ndim > 1:
        array = array.ravel()
    return array.astype(float, copy=False)


class ModelBackend(ABC):
    """Fit/predict capability for one model kind.

    Subclasses implement ``_fit`` and ``_predict`` and are free to raise; the
    public :meth:`fit` and :meth:`predict` convert every exception into
    :data:`FAILURE`.
    """

    kind: str = ""
    drop_first: bool = True

    def fit(self, spec: ModelSpec, train: pd.DataFrame) -> FitResult:
        try:
            encoder = DesignEncoder.fit(train, spec.predictors, drop_first=self.drop_first)
            X = encoder.transform(train)
            y = train[spec.response].to_numpy(dtype=float)
            estimator, extras = self._fit(spec, X, y, train)
        except Exception:
            return FAILURE
        return FittedModel(
            kind=self.kind,
            spec=spec,
            encoder=encoder,
            estimator=estimator,
            extras=extras,
        )

    def predict(self, fitted: FitResult, data: pd.DataFrame) -> PredictResult:
        if is_failure(fitted):
            return FAILURE
        try:
            X = fitted.encoder.transform(data)
            pred = _to_1d(self._predict(fitted, X, data))
        except Exception:
            return FAILURE
        if len(pred) != len(data) or not np.all(np.isfinite(pred)):
            return FAILURE
        return pred

    @abstractmethod
    def _fit(
        self,
        spec: ModelSpec,
        X: np.ndarray,
        y: np.ndarray,
        train: pd.DataFrame,
    ) -> Tuple[Any, Dict[str, Any]]:
        """Return ``(estimator, extras)``; raise on any modelling problem."""

    @abstractmethod
    def _predict(self, fitted: FittedModel, X: np.ndarray, data: pd.DataFrame) -> Any:
        """Return raw predictions for the rows of ``X``."""
