"""Shared fixtures for model tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def linear_data() -> pd.DataFrame:
    """Noise-free linear response in two of five numeric predictors."""
    rng = np.random.default_rng(42)
    n_samples = 100
    data = {f"x{i}": rng.normal(size=n_samples) for i in range(1, 6)}
    df = pd.DataFrame(data)
    df["y"] = 1.0 + 2.0 * df["x1"] - 3.0 * df["x2"]
    return df


@pytest.fixture
def grouped_data() -> pd.DataFrame:
    """Linear response with a random intercept per group (10 groups)."""
    rng = np.random.default_rng(7)
    n_groups = 10
    n_samples = 200
    offsets = rng.normal(0.0, 2.0, size=n_groups)
    group_idx = rng.integers(0, n_groups, size=n_samples)
    x1 = rng.normal(size=n_samples)
    df = pd.DataFrame(
        {
            "g": [f"G{i}" for i in group_idx],
            "x1": x1,
            "x2": rng.normal(size=n_samples),
        }
    )
    df["y"] = 5.0 + 1.5 * x1 + offsets[group_idx] + rng.normal(0.0, 0.5, size=n_samples)
    return df


@pytest.fixture
def rare_level_data() -> pd.DataFrame:
    """A factor whose 'rare' level occurs in a single record."""
    rng = np.random.default_rng(3)
    n_samples = 100
    df = pd.DataFrame(
        {
            "x1": rng.normal(size=n_samples),
            "cat": pd.Categorical(["common"] * (n_samples - 1) + ["rare"]),
        }
    )
    df["y"] = 2.0 * df["x1"] + rng.normal(0.0, 0.1, size=n_samples)
    return df
