from __future__ import annotations

import numpy as np

from mfopt.domains import Domain
from mfopt.observation import IdGen, Obs, ObsId
from mfopt.optimizer import Optimizer


class RandomOptimizer(Optimizer):
    """Samples every parameter independently from `domain`; ignores feedback."""

    name = "random"

    def __init__(self, domain: Domain):
        self.domain = domain

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        return Obs.new(idg, self.domain.sample(rng))

    def tell(self, obs: Obs) -> None:
        return None

    def forget(self, id_: ObsId) -> None:
        return None
