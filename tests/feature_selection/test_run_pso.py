"""Tests for the run_pso command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from pso_select.feature_selection.run_pso import (
    EXIT_NO_STABLE_SUBSET,
    build_config,
    main,
    parse_args,
)


def _write_csv(path: Path, frame: pd.DataFrame) -> Path:
    frame.to_csv(path, index=False)
    return path


class TestParseArgs:
    """Tests for argument parsing and config layering."""

    def test_defaults(self):
        args = parse_args([])
        assert args.config_path is None
        assert args.data_path == "data/train_data.csv"
        assert args.out_dir == "artifacts/pso"
        assert args.model_kind is None
        assert args.warm_start_sizes is None
        assert not args.no_artifacts

    def test_unknown_model_kind_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--model-kind", "xgboost"])

    def test_defaults_without_config_file(self):
        config = build_config(parse_args([]))
        assert config.model_kind == "mixed-effects"
        assert config.swarm_size == 40
        assert config.warm_start_sizes == [5, 10]

    def test_cli_overrides_file(self, tmp_path):
        cfg = tmp_path / "pso.yaml"
        cfg.write_text("selection:\n  swarm_size: 12\n  max_iterations: 7\n", encoding="utf-8")

        config = build_config(
            parse_args(["--config-path", str(cfg), "--swarm-size", "30", "--warm-start-sizes", "1", "3"])
        )

        assert config.swarm_size == 30
        assert config.max_iterations == 7
        assert config.warm_start_sizes == [1, 3]
        assert config.n_splits == 3

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            build_config(parse_args(["--config-path", str(tmp_path / "nope.yaml")]))


class TestMain:
    """Tests for main()."""

    def test_small_run_writes_artifacts(self, tmp_path, selection_data):
        data_path = _write_csv(tmp_path / "train.csv", selection_data)
        out_dir = tmp_path / "out"

        code = main(
            [
                "--data-path", str(data_path),
                "--out-dir", str(out_dir),
                "--response", "y",
                "--model-kind", "lm",
                "--warm-start-sizes", "1", "2",
                "--swarm-size", "4",
                "--max-iterations", "2",
                "--quiet",
            ]
        )

        assert code == 0
        payload = json.loads((out_dir / "selection_result.json").read_text(encoding="utf-8"))
        assert payload["failed"] is False
        assert payload["n_selected"] >= 1
        assert payload["holdout"]["mae"] >= 0.0
        assert payload["config"]["model_kind"] == "lm"

        trace = pd.read_csv(out_dir / "convergence_trace.csv")
        assert len(trace) == 2
        assert (out_dir / "final_model.pkl").exists()

    def test_no_artifacts(self, tmp_path, selection_data):
        data_path = _write_csv(tmp_path / "train.csv", selection_data)
        out_dir = tmp_path / "out"

        code = main(
            [
                "--data-path", str(data_path),
                "--out-dir", str(out_dir),
                "--response", "y",
                "--model-kind", "linear",
                "--warm-start-sizes", "1",
                "--swarm-size", "3",
                "--max-iterations", "1",
                "--no-artifacts",
                "--quiet",
            ]
        )

        assert code == 0
        assert not out_dir.exists()

    def test_no_stable_subset_exit_code(self, tmp_path):
        """A lone identifier-like factor fails every fold."""
        rng = np.random.default_rng(0)
        frame = pd.DataFrame(
            {"tag": [f"id{i}" for i in range(40)], "y": rng.normal(size=40)}
        )
        data_path = _write_csv(tmp_path / "train.csv", frame)
        out_dir = tmp_path / "out"

        code = main(
            [
                "--data-path", str(data_path),
                "--out-dir", str(out_dir),
                "--response", "y",
                "--model-kind", "linear",
                "--warm-start-sizes", "1",
                "--swarm-size", "4",
                "--max-iterations", "2",
                "--quiet",
            ]
        )

        assert code == EXIT_NO_STABLE_SUBSET
        payload = json.loads((out_dir / "selection_result.json").read_text(encoding="utf-8"))
        assert payload["failed"] is True
        assert not (out_dir / "final_model.pkl").exists()

    def test_missing_data_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            main(["--data-path", str(tmp_path / "missing.csv"), "--quiet"])

    def test_generate_synthetic(self, tmp_path):
        data_path = tmp_path / "synthetic.csv"

        code = main(
            [
                "--data-path", str(data_path),
                "--generate-synthetic",
                "--model-kind", "linear",
                "--n-splits", "2",
                "--warm-start-sizes", "1",
                "--swarm-size", "2",
                "--max-iterations", "1",
                "--no-artifacts",
                "--quiet",
            ]
        )

        assert data_path.exists()
        assert code == 0
