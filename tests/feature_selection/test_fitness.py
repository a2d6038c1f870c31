"""Tests for position decoding, the dynamic penalty and FitnessEvaluator."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from pso_select.feature_selection.fitness import (
    FitnessEvaluator,
    build_model_spec,
    compute_dynamic_penalty,
    decode_position,
)
from pso_select.models.common.cv_utils import SENTINEL_FAILURE

CANDIDATES = ["a", "b", "c", "d", "e"]


class TestDecodePosition:
    """Tests for decode_position."""

    def test_threshold_is_inclusive(self):
        """Exactly 0.5 counts as selected."""
        assert decode_position([0.5, 0.49, 1.0, 0.0, 0.51], CANDIDATES) == ["a", "c", "e"]

    def test_keeps_candidate_order(self):
        assert decode_position([1, 0, 0, 0, 1], CANDIDATES) == ["a", "e"]

    def test_all_below_threshold_is_empty(self):
        assert decode_position(np.full(5, 0.2), CANDIDATES) == []

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            decode_position([1.0, 1.0], CANDIDATES)


class TestComputeDynamicPenalty:
    """Tests for compute_dynamic_penalty."""

    def test_sample_std_times_factor(self):
        y = np.array([1.0, 2.0, 3.0, 4.0])
        assert compute_dynamic_penalty(y, 0.1) == pytest.approx(np.std(y, ddof=1) * 0.1)

    def test_scales_with_response(self):
        """Multiplying the response by c multiplies the penalty by c."""
        y = pd.Series(np.random.default_rng(0).normal(size=50))
        assert compute_dynamic_penalty(y * 1000, 0.05) == pytest.approx(
            1000 * compute_dynamic_penalty(y, 0.05)
        )

    def test_zero_factor(self):
        assert compute_dynamic_penalty([1.0, 5.0, 9.0], 0.0) == 0.0

    def test_constant_response(self):
        assert compute_dynamic_penalty([2.0] * 10, 0.5) == 0.0

    def test_negative_factor_raises(self):
        with pytest.raises(ValueError):
            compute_dynamic_penalty([1.0, 2.0], -0.1)


class TestBuildModelSpec:
    def test_group_only_for_mixed(self):
        assert build_model_spec(["a"], "y", "lmer", "GEN").group == "GEN"
        assert build_model_spec(["a"], "y", "linear", "GEN").group is None


class TestFitnessEvaluator:
    """Tests for FitnessEvaluator."""

    def _evaluator(self, data, penalty, **kwargs):
        return FitnessEvaluator(data, CANDIDATES, "y", "linear", 5, penalty, seed=999, **kwargs)

    def test_empty_subset_gets_sentinel(self, selection_data):
        evaluator = self._evaluator(selection_data, 0.1)
        assert evaluator(np.zeros(5)) == SENTINEL_FAILURE

    def test_zero_penalty_equals_cv_error(self, selection_data):
        evaluator = self._evaluator(selection_data, 0.0)
        position = np.array([1.0, 1.0, 0.0, 0.0, 0.0])
        assert evaluator(position) == pytest.approx(evaluator.cv_error(["a", "b"]))

    def test_penalty_adds_per_variable(self, selection_data):
        """Same subset, penalty 0 vs delta: fitness differs by |S| * delta."""
        position = np.array([1.0, 1.0, 1.0, 0.0, 0.0])
        base = self._evaluator(selection_data, 0.0)(position)
        penalised = self._evaluator(selection_data, 0.25)(position)
        assert penalised - base == pytest.approx(3 * 0.25)

    def test_good_subset_beats_noise_subset(self, selection_data):
        evaluator = self._evaluator(selection_data, 0.0)
        signal = evaluator(np.array([1.0, 1.0, 0.0, 0.0, 0.0]))
        noise = evaluator(np.array([0.0, 0.0, 1.0, 1.0, 1.0]))
        assert signal < noise

    def test_deterministic(self, selection_data):
        position = np.array([0.9, 0.1, 0.6, 0.2, 0.7])
        first = self._evaluator(selection_data, 0.1)(position)
        second = self._evaluator(selection_data, 0.1)(position)
        assert first == second

    def test_positions_with_same_subset_share_cv(self, selection_data):
        """Positions decoding to the same subset score identically."""
        evaluator = self._evaluator(selection_data, 0.1)
        assert evaluator([0.9, 0.6, 0.1, 0.0, 0.2]) == evaluator([0.5, 1.0, 0.4, 0.3, 0.49])
        assert len(evaluator._cv_cache) == 1

    def test_failing_backend_gives_sentinel(self, selection_data, failing_backend):
        evaluator = self._evaluator(selection_data, 0.1, backend=failing_backend)
        assert evaluator(np.ones(5)) == SENTINEL_FAILURE

    def test_dim(self, selection_data):
        assert self._evaluator(selection_data, 0.0).dim == 5

    def test_large_scale_response_is_not_a_failure(self, selection_data):
        """Valid CV errors above the sentinel value still get the penalty."""
        df = selection_data.copy()
        df["y"] *= 1e8
        penalty = compute_dynamic_penalty(df["y"], 0.05)
        evaluator = self._evaluator(df, penalty)
        position = np.array([0.0, 0.0, 1.0, 0.0, 0.0])

        cv_error = evaluator.cv_error(["c"])
        assert cv_error > SENTINEL_FAILURE
        assert evaluator(position) == pytest.approx(cv_error + penalty)
