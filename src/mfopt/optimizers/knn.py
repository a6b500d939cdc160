from __future__ import annotations

import math
from typing import Dict, List

import numpy as np
from sklearn.neighbors import NearestNeighbors

from mfopt.domains import Domain
from mfopt.observation import IdGen, Obs, ObsId
from mfopt.optimizer import Optimizer


def _as_row(param) -> np.ndarray:
    return np.atleast_1d(np.asarray(param, dtype=float)).ravel()


class KnnOptimizer(Optimizer):
    """
    Nearest-neighbour guided sampling.

    With n told observations:
    - k = floor(sqrt(n)) best-valued observations are the "superiors"
    - 2 * max(1, ceil(sqrt(n))) candidates are drawn from the domain
    - each candidate is scored by how many of its k nearest told observations are superiors
    - the best-scoring candidate is asked (first one on ties)

    Parameters must be numeric (scalars or fixed-length vectors).
    """

    name = "knn"

    def __init__(self, domain: Domain):
        self.domain = domain
        self.obss: Dict[ObsId, Obs] = {}

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        n = len(self.obss)
        k = int(math.floor(math.sqrt(n)))
        k2 = int(math.ceil(math.sqrt(n)))
        candidates = [self.domain.sample(rng) for _ in range(max(1, k2) * 2)]
        if k == 0:
            return Obs.new(idg, candidates[0])

        told = sorted(self.obss.values(), key=lambda o: o.value)
        superior = np.zeros(len(told), dtype=bool)
        superior[:k] = True

        X = np.vstack([_as_row(o.param) for o in told])
        C = np.vstack([_as_row(c) for c in candidates])
        nn = NearestNeighbors(n_neighbors=k).fit(X)
        idx = nn.kneighbors(C, return_distance=False)
        counts: List[int] = [int(np.sum(superior[row])) for row in idx]
        best = int(np.argmax(counts))
        return Obs.new(idg, candidates[best])

    def tell(self, obs: Obs) -> None:
        self.obss[obs.id] = obs

    def forget(self, id_: ObsId) -> None:
        self.obss.pop(id_, None)
