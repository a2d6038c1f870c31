"""Model kind lookup.

Every supported kind maps to exactly one backend class. Adding a kind means
adding a backend and one entry here; cross-validation and fitness code only
talk to :class:`~pso_select.models.base.ModelBackend`.
"""

from __future__ import annotations

from typing import Any, Dict, Type

from pso_select.models.base import ModelBackend
from pso_select.models.linear import LinearBackend
from pso_select.models.mixed_effects import MixedEffectsBackend
from pso_select.models.randomforest import RandomForestBackend

MODEL_BACKENDS: Dict[str, Type[ModelBackend]] = {
    LinearBackend.kind: LinearBackend,
    MixedEffectsBackend.kind: MixedEffectsBackend,
    RandomForestBackend.kind: RandomForestBackend,
}

# Short names accepted wherever a kind is given.
KIND_ALIASES: Dict[str, str] = {
    "lm": "linear",
    "lmer": "mixed-effects",
    "rf": "random-forest",
    "mixed_effects": "mixed-effects",
    "random_forest": "random-forest",
}

MODEL_KIND_CHOICES = tuple(MODEL_BACKENDS) + tuple(KIND_ALIASES)


def normalize_kind(kind: str) -> str:
    """Resolve aliases; raise ``ValueError`` for unknown kinds."""
    key = str(kind).strip().lower()
    key = KIND_ALIASES.get(key, key)
    if key not in MODEL_BACKENDS:
        raise ValueError(
            f"Unknown model kind: {kind}. Use one of {sorted(MODEL_KIND_CHOICES)}."
        )
    return key


def needs_group(kind: str) -> bool:
    return normalize_kind(kind) == MixedEffectsBackend.kind


def get_backend(kind: str, **kwargs: Any) -> ModelBackend:
    """Instantiate the backend registered for ``kind``."""
    return MODEL_BACKENDS[normalize_kind(kind)](**kwargs)
