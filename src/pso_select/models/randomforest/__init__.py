"""RandomForest regression backend.

Bagged regression trees on the one-hot design matrix. The forest is small
(50 trees) because it is refitted once per fold for every candidate subset.
"""

from pso_select.models.randomforest.randomforest_backend import RandomForestBackend

__all__ = ["RandomForestBackend"]
