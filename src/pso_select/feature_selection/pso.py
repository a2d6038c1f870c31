"""Global-best particle swarm optimisation over the unit hypercube.

Each particle carries a position in [0, 1]^d, a velocity, and the best
position it has visited. Every iteration all particles move, all are
evaluated, and only then are personal and global bests updated, so the
trajectory for a given seed is the same whether evaluations run serially or
through joblib.

A score equal to ``SENTINEL_FAILURE`` ranks behind every other score, so a
failed evaluation never displaces a valid best, even when valid errors are
numerically larger than the sentinel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

import numpy as np
from joblib import Parallel, delayed

from pso_select.config import DEFAULT_ACCELERATION, DEFAULT_INERTIA
from pso_select.models.common.cv_utils import SENTINEL_FAILURE, is_sentinel


def ranking_key(scores: np.ndarray) -> np.ndarray:
    """Scores for comparison: failures rank behind every finite score."""
    scores = np.asarray(scores, dtype=float)
    return np.where(scores == SENTINEL_FAILURE, np.inf, scores)


@dataclass(frozen=True)
class PSOParams:
    """PSO hyperparameters."""

    swarm_size: int = 40
    max_iterations: int = 20
    w: float = DEFAULT_INERTIA
    c1: float = DEFAULT_ACCELERATION
    c2: float = DEFAULT_ACCELERATION
    vmax_frac: float = 0.5
    seed: int = 123
    patience: Optional[int] = None
    n_jobs: int = 1

    def validate(self) -> None:
        if self.swarm_size < 1:
            raise ValueError(f"swarm_size must be >= 1, got {self.swarm_size}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.vmax_frac <= 0:
            raise ValueError("vmax_frac must be > 0.")
        if self.patience is not None and self.patience < 1:
            raise ValueError(f"patience must be >= 1, got {self.patience}")


class RunStatus(str, Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"


@dataclass
class Particle:
    """Snapshot of one particle."""

    position: np.ndarray
    velocity: np.ndarray
    best_position: np.ndarray
    best_score: float


@dataclass
class Swarm:
    """Positions, velocities and bests of every particle, row per particle."""

    positions: np.ndarray
    velocities: np.ndarray
    best_positions: np.ndarray
    best_scores: np.ndarray
    global_best_position: np.ndarray
    global_best_score: float

    @property
    def size(self) -> int:
        return self.positions.shape[0]

    @property
    def dim(self) -> int:
        return self.positions.shape[1]

    def particle(self, i: int) -> Particle:
        return Particle(
            position=self.positions[i].copy(),
            velocity=self.velocities[i].copy(),
            best_position=self.best_positions[i].copy(),
            best_score=float(self.best_scores[i]),
        )

    def update_bests(self, scores: np.ndarray) -> bool:
        """Apply personal-best updates, then the global best. True if the global best improved."""
        improved = ranking_key(scores) < ranking_key(self.best_scores)
        self.best_positions[improved] = self.positions[improved]
        self.best_scores[improved] = scores[improved]

        best_keys = ranking_key(self.best_scores)
        g_idx = int(np.argmin(best_keys))
        if best_keys[g_idx] < ranking_key(self.global_best_score):
            self.global_best_position = self.best_positions[g_idx].copy()
            self.global_best_score = float(self.best_scores[g_idx])
            return True
        return False


@dataclass
class PSOResult:
    best_position: np.ndarray
    best_score: float
    initial_best_score: float
    trace: np.ndarray
    iterations_run: int
    status: RunStatus
    evals_used: int
    history: List[dict] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """Even the best position could not be evaluated."""
        return is_sentinel(self.best_score)


class PSOEngine:
    """Minimise ``objective`` over [lower, upper]^dim.

    Parameters
    ----------
    objective : callable
        Maps a position vector to a scalar cost.
    dim : int
        Search-space dimensionality.
    params : PSOParams
        Swarm hyperparameters.
    rng : np.random.Generator, optional
        Source of all randomness; defaults to ``default_rng(params.seed)``.
    """

    def __init__(
        self,
        objective: Callable[[np.ndarray], float],
        dim: int,
        params: PSOParams,
        *,
        rng: np.random.Generator | None = None,
        lower: float = 0.0,
        upper: float = 1.0,
        verbose: bool = False,
    ) -> None:
        if dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        params.validate()
        self.objective = objective
        self.dim = dim
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(params.seed)
        self.lower = float(lower)
        self.upper = float(upper)
        self.vmax = float(params.vmax_frac) * (self.upper - self.lower)
        self.verbose = verbose

        self.status = RunStatus.INITIALIZED
        self.iteration = 0
        self.swarm: Swarm | None = None
        self.trace: List[float] = []
        self.history: List[dict] = []
        self.evals_used = 0
        self._stale = 0

    def _evaluate(self, positions: np.ndarray) -> np.ndarray:
        if self.params.n_jobs == 1:
            scores = [self.objective(x) for x in positions]
        else:
            scores = Parallel(n_jobs=self.params.n_jobs)(
                delayed(self.objective)(x) for x in positions
            )
        self.evals_used += len(positions)
        return np.asarray(scores, dtype=float)

    def initialize(self, initial_positions: Sequence[Sequence[float]] | None = None) -> Swarm:
        """Build and evaluate the initial swarm."""
        n = self.params.swarm_size
        if initial_positions is None:
            X = self.rng.uniform(self.lower, self.upper, size=(n, self.dim))
        else:
            X = np.array(initial_positions, dtype=float)
            if X.shape != (n, self.dim):
                raise ValueError(
                    f"initial_positions must have shape {(n, self.dim)}, got {X.shape}"
                )
            X = np.clip(X, self.lower, self.upper)

        # Half the distance to a random point, as in SPSO 2007.
        V = (self.rng.uniform(self.lower, self.upper, size=X.shape) - X) / 2.0
        V = np.clip(V, -self.vmax, self.vmax)

        scores = self._evaluate(X)
        g_idx = int(np.argmin(ranking_key(scores)))
        self.swarm = Swarm(
            positions=X,
            velocities=V,
            best_positions=X.copy(),
            best_scores=scores.copy(),
            global_best_position=X[g_idx].copy(),
            global_best_score=float(scores[g_idx]),
        )
        self.status = RunStatus.INITIALIZED
        self.iteration = 0
        self.trace = []
        self.history = []
        self._stale = 0
        return self.swarm

    def step(self) -> float:
        """Run one synchronous iteration and return the global best after it."""
        if self.swarm is None:
            raise RuntimeError("call initialize() before step()")
        swarm = self.swarm
        p = self.params
        self.status = RunStatus.RUNNING

        X, V = swarm.positions, swarm.velocities
        r1 = self.rng.random(size=X.shape)
        r2 = self.rng.random(size=X.shape)
        V = (
            p.w * V
            + p.c1 * r1 * (swarm.best_positions - X)
            + p.c2 * r2 * (swarm.global_best_position - X)
        )
        V = np.clip(V, -self.vmax, self.vmax)
        X = X + V

        # Clip at the walls and stop the component that hit them.
        hit = (X < self.lower) | (X > self.upper)
        X = np.clip(X, self.lower, self.upper)
        V[hit] = 0.0

        swarm.positions, swarm.velocities = X, V
        scores = self._evaluate(X)
        improved = swarm.update_bests(scores)

        self.iteration += 1
        n_failed = int(np.sum(scores == SENTINEL_FAILURE))
        iteration_best = float(scores[int(np.argmin(ranking_key(scores)))])
        self._stale = 0 if improved else self._stale + 1
        self.trace.append(swarm.global_best_score)
        self.history.append(
            {
                "iteration": self.iteration,
                "best_score": swarm.global_best_score,
                "iteration_best": iteration_best,
                "iteration_mean": float(np.mean(scores)),
                "n_failed": n_failed,
            }
        )
        if self.verbose:
            print(
                f"[iter {self.iteration}] best={swarm.global_best_score:.4f} "
                f"iter_best={iteration_best:.4f} failed={n_failed}"
            )
        return swarm.global_best_score

    def run(self, initial_positions: Sequence[Sequence[float]] | None = None) -> PSOResult:
        """Initialise, iterate until ``max_iterations`` (or ``patience``), return the best."""
        swarm = self.initialize(initial_positions)
        initial_best = swarm.global_best_score
        if self.verbose:
            print(f"[info] initial swarm best={initial_best:.4f}")

        for _ in range(self.params.max_iterations):
            self.step()
            if self.params.patience is not None and self._stale >= self.params.patience:
                self.status = RunStatus.CONVERGED
                break
        else:
            self.status = RunStatus.MAX_ITER_REACHED

        return PSOResult(
            best_position=swarm.global_best_position.copy(),
            best_score=float(swarm.global_best_score),
            initial_best_score=float(initial_best),
            trace=np.asarray(self.trace, dtype=float),
            iterations_run=self.iteration,
            status=self.status,
            evals_used=self.evals_used,
            history=list(self.history),
        )
