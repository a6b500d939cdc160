"""Inner (single-fidelity) strategies pluggable under the multi-fidelity schedulers."""

from mfopt.optimizers.knn import KnnOptimizer
from mfopt.optimizers.random import RandomOptimizer

__all__ = ["KnnOptimizer", "RandomOptimizer"]
