"""Tests for SelectionConfig and YAML loading."""

from __future__ import annotations

import math
from pathlib import Path

import pandas as pd
import pytest

from pso_select.config import (
    DEFAULT_ACCELERATION,
    DEFAULT_INERTIA,
    SelectionConfig,
    load_config,
)

REPO_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "pso.yaml"
CANDIDATES = [f"v{i}" for i in range(12)]


class TestDefaults:
    def test_spso_coefficients(self):
        assert DEFAULT_INERTIA == pytest.approx(0.7213, abs=1e-4)
        assert DEFAULT_ACCELERATION == pytest.approx(1.1931, abs=1e-4)

    def test_defaults(self):
        config = SelectionConfig()
        assert config.response == "GY"
        assert config.exclude == ["GEN", "LOC", "ST", "YEAR"]
        assert config.n_splits == 3
        assert config.cv_seed == 999
        assert config.swarm_size == 40
        assert config.max_iterations == 20
        assert config.warm_start_sizes == [5, 10]

    def test_defaults_are_not_shared(self):
        a, b = SelectionConfig(), SelectionConfig()
        a.exclude.append("X")
        assert "X" not in b.exclude


class TestValidate:
    """Tests for SelectionConfig.validate."""

    def test_defaults_are_valid(self):
        SelectionConfig().validate(CANDIDATES)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"n_splits": 1},
            {"swarm_size": 0},
            {"max_iterations": 0},
            {"penalty_factor": -0.1},
            {"vmax_frac": 0.0},
            {"patience": 0},
            {"holdout_fraction": 1.0},
            {"warm_start_sizes": [0]},
            {"warm_start_sizes": [13]},
            {"model_kind": "mixed-effects", "group_col": None},
            {"model_kind": "gbm"},
        ],
    )
    def test_invalid_settings(self, overrides):
        config = SelectionConfig(**overrides)
        with pytest.raises(ValueError):
            config.validate(CANDIDATES)

    def test_no_candidates(self):
        with pytest.raises(ValueError, match="No candidate"):
            SelectionConfig().validate([])

    def test_linear_does_not_need_group(self):
        SelectionConfig(model_kind="lm", group_col=None).validate(CANDIDATES)

    def test_data_checks(self):
        df = pd.DataFrame({"v0": [1.0, 2.0], "GY": [1.0, 2.0]})
        with pytest.raises(ValueError, match="Grouping column"):
            SelectionConfig(warm_start_sizes=[1]).validate(["v0"], df)
        with pytest.raises(ValueError, match="larger than the number of records"):
            SelectionConfig(model_kind="linear", warm_start_sizes=[1]).validate(["v0"], df)
        with pytest.raises(KeyError):
            SelectionConfig(response="missing", warm_start_sizes=[1]).validate(["v0"], df)


class TestOverrides:
    def test_none_values_skipped(self):
        config = SelectionConfig().with_overrides({"swarm_size": None, "seed": 7})
        assert config.swarm_size == 40
        assert config.seed == 7

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            SelectionConfig().with_overrides({"swarm": 3})


class TestLoadConfig:
    """Tests for load_config."""

    def test_none_gives_defaults(self):
        assert load_config(None) == SelectionConfig()

    def test_repo_config_matches_defaults(self):
        config = load_config(REPO_CONFIG)
        assert config.model_kind == "mixed-effects"
        assert config.w == pytest.approx(1.0 / (2.0 * math.log(2.0)))
        assert config.patience is None

    def test_flat_mapping(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("swarm_size: 5\nmodel_kind: rf\n", encoding="utf-8")
        config = load_config(path)
        assert config.swarm_size == 5
        assert config.model_kind == "rf"

    def test_unknown_yaml_key(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("selection:\n  popsize: 5\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")
