"""Synthetic crop-yield trial data.

The generated table mimics multi-environment maize trials: a location
hierarchy (state -> location), 25 genotypes with random yield offsets,
phenotypic scores, a deliberately collinear temperature family, and 40 pure
noise columns. Grain yield ``GY`` depends on plant height, rainfall, a
rainfall x radiation interaction, maximum temperature and genotype.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

N_LOCATIONS = 10
N_GENOTYPES = 25
N_NOISE = 40
LOCATION_STATES = ["GO"] * 3 + ["MT"] * 3 + ["RO"] * 2 + ["TO"] * 2


def generate_synthetic_data(
    n: int = 600,
    seed: int = 123,
    output_path: str | Path | None = None,
) -> pd.DataFrame:
    """Generate ``n`` trial records; optionally write them as CSV."""
    rng = np.random.default_rng(seed)

    loc_idx = rng.integers(0, N_LOCATIONS, size=n)
    locations = np.array([f"LOC{i + 1}" for i in range(N_LOCATIONS)])
    states = np.array(LOCATION_STATES)
    genotypes = np.array([f"GEN{i + 1}" for i in range(N_GENOTYPES)])

    t2m_mean = rng.uniform(22, 28, size=n)

    df = pd.DataFrame(
        {
            "YEAR": rng.integers(1980, 2023, size=n),
            "SYST": rng.choice(["S1", "S2"], size=n),
            "ST": states[loc_idx],
            "LOC": locations[loc_idx],
            "GEN": rng.choice(genotypes, size=n),
            "DTF": rng.uniform(60, 110, size=n),
            "PHT": rng.uniform(70, 140, size=n),
            "LOD": rng.integers(1, 10, size=n),
            "LBL": rng.integers(1, 8, size=n),
            "PBL": rng.integers(1, 10, size=n),
            "BSP": rng.integers(1, 10, size=n),
            "LSC": rng.integers(1, 9, size=n),
            "GDS": rng.integers(1, 9, size=n),
            "T2M_MEAN": t2m_mean,
            "T2M_MAX": t2m_mean + rng.uniform(5, 12, size=n),
            "T2M_MIN": t2m_mean - rng.uniform(5, 10, size=n),
            "PRECTOT_ACC": rng.uniform(400, 1200, size=n),
            "RH2M_MEAN": rng.uniform(60, 90, size=n),
            "T2MDEW": t2m_mean - rng.uniform(2, 5, size=n),
            "SOLAR_RAD": rng.uniform(15, 25, size=n),
            "WS2M": rng.uniform(1, 6, size=n),
        }
    )
    for i in range(N_NOISE):
        df[f"NOISE_{i + 1}"] = rng.uniform(0, 10, size=n)

    gen_effects = dict(zip(genotypes, rng.normal(0, 150, size=N_GENOTYPES)))
    gy = (
        1500
        + 18 * df["PHT"]
        + 1.5 * df["PRECTOT_ACC"]
        + 1.2 * (df["PRECTOT_ACC"] * df["SOLAR_RAD"]) / 25
        - 80 * (df["T2M_MAX"] - 28)
        + df["GEN"].map(gen_effects)
        + rng.normal(0, 300, size=n)
    )
    df["GY"] = np.maximum(gy, 500.0)

    if output_path is not None:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)
    return df
