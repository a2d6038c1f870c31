"""Run configuration for PSO feature selection.

Settings come from three layers, highest priority first: CLI flags, a YAML
file (``configs/pso.yaml``), dataclass defaults. Validation happens once at
setup; a bad configuration never reaches the optimisation loop.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd
import yaml

from pso_select.models.registry import needs_group, normalize_kind

# SPSO-2007 coefficients.
DEFAULT_INERTIA = 1.0 / (2.0 * math.log(2.0))
DEFAULT_ACCELERATION = 0.5 + math.log(2.0)

DEFAULT_CATEGORICAL = ["LOD", "LBL", "PBL", "BSP", "LSC", "GDS"]


@dataclass
class SelectionConfig:
    """All knobs of one feature-selection run."""

    response: str = "GY"
    exclude: List[str] = field(default_factory=lambda: ["GEN", "LOC", "ST", "YEAR"])
    model_kind: str = "mixed-effects"
    group_col: Optional[str] = "GEN"
    n_splits: int = 3
    cv_seed: int = 999
    swarm_size: int = 40
    max_iterations: int = 20
    penalty_factor: float = 0.05
    warm_start_sizes: List[int] = field(default_factory=lambda: [5, 10])
    seed: int = 123
    holdout_fraction: float = 0.2
    categorical: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORICAL))
    w: float = DEFAULT_INERTIA
    c1: float = DEFAULT_ACCELERATION
    c2: float = DEFAULT_ACCELERATION
    vmax_frac: float = 0.5
    patience: Optional[int] = None
    n_jobs: int = 1

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SelectionConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(values))

    def with_overrides(self, overrides: Mapping[str, Any]) -> "SelectionConfig":
        """Return a copy with every non-``None`` override applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        known = {f.name for f in fields(self)}
        unknown = sorted(set(updates) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(
        self,
        candidate_vars: Sequence[str],
        data: pd.DataFrame | None = None,
    ) -> None:
        """Raise ``ValueError`` for any setting the run cannot work with."""
        kind = normalize_kind(self.model_kind)
        if len(candidate_vars) == 0:
            raise ValueError("No candidate variables left after exclusions.")
        if self.n_splits < 2:
            raise ValueError(f"n_splits must be >= 2, got {self.n_splits}")
        if self.swarm_size < 1:
            raise ValueError(f"swarm_size must be >= 1, got {self.swarm_size}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.penalty_factor < 0:
            raise ValueError(f"penalty_factor must be >= 0, got {self.penalty_factor}")
        if self.vmax_frac <= 0:
            raise ValueError("vmax_frac must be > 0.")
        if self.patience is not None and self.patience < 1:
            raise ValueError(f"patience must be >= 1, got {self.patience}")
        if not 0.0 <= self.holdout_fraction < 1.0:
            raise ValueError(
                f"holdout_fraction must be in [0, 1), got {self.holdout_fraction}"
            )
        for size in self.warm_start_sizes:
            if isinstance(size, bool) or not isinstance(size, int) or size < 1:
                raise ValueError(f"warm_start_sizes must be positive integers, got {size!r}")
            if size > len(candidate_vars):
                raise ValueError(
                    f"warm start size {size} exceeds the {len(candidate_vars)} candidate variables"
                )
        if needs_group(kind) and not self.group_col:
            raise ValueError("mixed-effects models need group_col.")

        if data is not None:
            if self.response not in data.columns:
                raise KeyError(f"Response column '{self.response}' not found")
            if needs_group(kind) and self.group_col not in data.columns:
                raise ValueError(f"Grouping column '{self.group_col}' not found")
            if self.n_splits > len(data):
                raise ValueError(
                    f"n_splits={self.n_splits} is larger than the number of records ({len(data)})"
                )


def load_config(config_path: str | Path | None) -> SelectionConfig:
    """Load a :class:`SelectionConfig` from YAML; ``None`` gives the defaults."""
    if config_path is None:
        return SelectionConfig()
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    section = raw.get("selection", raw)
    if not isinstance(section, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(section).__name__}")
    return SelectionConfig.from_mapping(section)
