"""Linear regression backend.

Ordinary least squares on the dummy-coded design matrix (intercept included).
Rank-deficient designs are solved by least squares rather than rejected, so
collinear predictors do not fail on their own; unseen factor levels do.
"""

from pso_select.models.linear.linear_backend import LinearBackend

__all__ = ["LinearBackend"]
