"""PSO feature selection.

Structure:
    - fitness.py: position decoding, dynamic penalty, FitnessEvaluator
    - warm_start.py: correlation-seeded initial swarm
    - pso.py: global-best PSO engine
    - pipeline.py: select_features and final holdout evaluation
    - run_pso.py: command-line entry point
"""

from pso_select.feature_selection.fitness import (
    FitnessEvaluator,
    compute_dynamic_penalty,
    decode_position,
)
from pso_select.feature_selection.pipeline import SelectionResult, select_features
from pso_select.feature_selection.pso import PSOEngine, PSOParams, PSOResult, RunStatus
from pso_select.feature_selection.warm_start import (
    build_seed_positions,
    rank_by_correlation,
    warm_start_positions,
)

__all__ = [
    "FitnessEvaluator",
    "compute_dynamic_penalty",
    "decode_position",
    "SelectionResult",
    "select_features",
    "PSOEngine",
    "PSOParams",
    "PSOResult",
    "RunStatus",
    "build_seed_positions",
    "rank_by_correlation",
    "warm_start_positions",
]
