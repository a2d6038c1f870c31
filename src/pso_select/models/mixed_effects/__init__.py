"""Linear mixed-effects backend.

Fixed effects for the selected predictors plus a random intercept per level
of the grouping column (``response ~ predictors + (1|group)``), fitted by
REML with statsmodels.

Key features:
- Groups seen in training get their estimated intercept shift (BLUP)
- Groups that only appear in evaluation rows get the fixed-effect prediction
- A fit that does not converge counts as a failure
"""

from pso_select.models.mixed_effects.mixed_effects_backend import (
    HAS_STATSMODELS,
    MixedEffectsBackend,
)

__all__ = ["HAS_STATSMODELS", "MixedEffectsBackend"]
