"""Shared fixtures for feature-selection tests."""

import numpy as np
import pandas as pd
import pytest

from pso_select.models.base import ModelBackend


@pytest.fixture
def selection_data() -> pd.DataFrame:
    """100 records, five numeric candidates; only a and b carry signal."""
    rng = np.random.default_rng(11)
    n_samples = 100
    df = pd.DataFrame({name: rng.normal(size=n_samples) for name in ["a", "b", "c", "d", "e"]})
    df["y"] = 3.0 * df["a"] - 2.0 * df["b"] + rng.normal(0.0, 0.3, size=n_samples)
    return df


class AlwaysFailingBackend(ModelBackend):
    """Backend for which every fit fails."""

    kind = "linear"

    def _fit(self, spec, X, y, train):
        raise ValueError("model did not converge")

    def _predict(self, fitted, X, data):
        raise AssertionError("never reached")


@pytest.fixture
def failing_backend() -> AlwaysFailingBackend:
    return AlwaysFailingBackend()
