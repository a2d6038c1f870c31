"""Warm-start initialisation of the swarm.

Most particles start at uniform random positions. A few "knowledge-injected"
particles instead start exactly on the top-N candidates ranked by absolute
Pearson correlation with the response (1.0 on those indices, 0.0 elsewhere),
one seed particle per requested N.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
import pandas as pd

from pso_select.models.base import is_categorical


def rank_by_correlation(
    data: pd.DataFrame,
    candidate_vars: Sequence[str],
    response: str,
) -> pd.Series:
    """Absolute Pearson correlation of each numeric candidate with the response.

    Categorical candidates are left out. Constant columns (NaN correlation)
    score 0. The result is sorted descending; ties keep candidate order.
    """
    numeric_cols = [c for c in candidate_vars if not is_categorical(data[c])]
    if not numeric_cols:
        return pd.Series(dtype=float)
    target = data[response].astype(float)
    corr = data[numeric_cols].astype(float).corrwith(target).abs().fillna(0.0)
    return corr.sort_values(ascending=False, kind="mergesort")


def build_seed_positions(
    ranking: pd.Series,
    candidate_vars: Sequence[str],
    sizes: Sequence[int],
) -> List[np.ndarray]:
    """One 0/1 position per entry of ``sizes`` covering the top-N ranked variables."""
    index_of = {name: i for i, name in enumerate(candidate_vars)}
    ranked = list(ranking.index)
    seeds: List[np.ndarray] = []
    for size in sizes:
        top = ranked[: int(size)]
        if not top:
            continue
        position = np.zeros(len(candidate_vars), dtype=float)
        position[[index_of[name] for name in top]] = 1.0
        seeds.append(position)
    return seeds


def initialize_swarm(
    swarm_size: int,
    dim: int,
    seeds: Sequence[np.ndarray],
    rng: np.random.Generator,
) -> np.ndarray:
    """Uniform ``[0, 1]`` positions with the first rows replaced by ``seeds``.

    The random matrix is always drawn in full before seeding, so the random
    rows do not depend on how many seeds were supplied.
    """
    positions = rng.uniform(0.0, 1.0, size=(swarm_size, dim))
    for row, seed in enumerate(seeds[:swarm_size]):
        positions[row] = seed
    return positions


def warm_start_positions(
    data: pd.DataFrame,
    candidate_vars: Sequence[str],
    response: str,
    swarm_size: int,
    sizes: Sequence[int],
    rng: np.random.Generator,
    verbose: bool = False,
) -> np.ndarray:
    """Initial swarm positions: correlation seeds first, random particles after."""
    ranking = rank_by_correlation(data, candidate_vars, response)
    seeds: List[np.ndarray] = []
    labels: List[str] = []
    for size in sizes:
        built = build_seed_positions(ranking, candidate_vars, [size])
        if built:
            seeds.extend(built)
            labels.append(f"top-{size}")
    if verbose:
        if ranking.empty:
            print("[warn] no numeric candidates to rank; warm start skipped")
        for label, seed in zip(labels, seeds):
            chosen = [candidate_vars[i] for i in np.flatnonzero(seed)]
            print(f"[info] warm start {label}: {', '.join(chosen)}")
        if len(seeds) > swarm_size:
            print(f"[warn] swarm_size={swarm_size} keeps only the first {swarm_size} seeds")
    return initialize_swarm(swarm_size, len(candidate_vars), seeds, rng)
