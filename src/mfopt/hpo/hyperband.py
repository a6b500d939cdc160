from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from mfopt.errors import BugError, InvalidInputError, UnknownObservationError
from mfopt.hpo.asha import AshaOptimizer, AshaOptions
from mfopt.observation import IdGen, MfObs, ObsId
from mfopt.optimizer import MultiFidelityOptimizer, Optimizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HyperbandOptions:
    min_budget: int = 1  # `r` in the Hyperband paper
    eta: int = 4
    without_checkpoint: bool = False

    def validate(self) -> "HyperbandOptions":
        if int(self.min_budget) <= 0:
            raise InvalidInputError("min_budget must be positive", min_budget=self.min_budget)
        if int(self.eta) <= 1:
            raise InvalidInputError("eta must be greater than 1", eta=self.eta)
        return self


class Bracket:
    """One ASHA instance and the budget it has (approximately) committed so far."""

    def __init__(self, index: int, asha: AshaOptimizer):
        self.index = int(index)
        self.asha = asha
        self.consumption = 0

    def __repr__(self) -> str:
        return f"Bracket(index={self.index}, min_budget={self.asha.min_budget}, consumption={self.consumption})"


class HyperbandOptimizer(MultiFidelityOptimizer):
    """
    Hyperband over ASHA brackets.

    Bracket `s` runs ASHA starting at `min_budget * eta**s`, so `s = 0` eliminates most
    aggressively and the last bracket is closest to plain random search at `max_budget`.
    Each `ask` goes to the bracket with the lowest tracked consumption (lowest index on
    ties). The tracked consumption is an estimate updated only in `ask` (reserve the
    remaining budget) and `tell` (give back what was left unused, add any excess).
    """

    name = "hyperband"

    def __init__(
        self,
        inner_factory: Callable[[], Optimizer],
        max_budget: int,
        options: Optional[HyperbandOptions] = None,
    ):
        self.options = (options or HyperbandOptions()).validate()
        max_budget = int(max_budget)
        r = int(self.options.min_budget)
        eta = int(self.options.eta)
        if r > max_budget:
            raise InvalidInputError("min_budget must not exceed max_budget", min_budget=r, max_budget=max_budget)

        asha_options = AshaOptions(reduction_factor=eta, without_checkpoint=bool(self.options.without_checkpoint))
        self.max_budget = max_budget
        self.brackets: List[Bracket] = []
        budget = r
        while budget <= max_budget:
            asha = AshaOptimizer(inner_factory(), budget, max_budget, asha_options)
            self.brackets.append(Bracket(len(self.brackets), asha))
            budget *= eta

        self._owners: Dict[ObsId, int] = {}
        self._reserved: Dict[ObsId, int] = {}
        # correction applied by the latest tell of the current ask
        self._applied: Dict[ObsId, int] = {}

    def consumptions(self) -> List[int]:
        return [b.consumption for b in self.brackets]

    def ask(self, rng: np.random.Generator, idg: IdGen) -> MfObs[Any, None]:
        # min() keeps the first minimum, i.e. the lowest bracket index
        bracket = min(self.brackets, key=lambda b: b.consumption)
        obs = bracket.asha.ask(rng, idg)

        reserve = obs.budget.remaining()
        bracket.consumption += reserve
        self._owners[obs.id] = bracket.index
        self._reserved[obs.id] = reserve
        self._applied.pop(obs.id, None)
        logger.debug("bracket=%d asked id=%s reserve=%d", bracket.index, obs.id.get(), reserve)
        return obs

    def _owner(self, id_: ObsId) -> Bracket:
        i = self._owners.get(id_)
        if i is None:
            raise UnknownObservationError("observation was not asked from this optimizer", id=id_)
        if not 0 <= i < len(self.brackets):
            raise BugError("bracket table points outside the bracket list", id=id_, bracket=i)
        return self.brackets[i]

    def tell(self, obs: MfObs) -> None:
        bracket = self._owner(obs.id)
        bracket.asha.tell(obs)

        # every report replaces the correction of the previous one for the same ask
        if obs.id in self._reserved:
            correction = obs.budget.excess() - obs.budget.remaining()
            bracket.consumption += correction - self._applied.get(obs.id, 0)
            self._applied[obs.id] = correction

    def forget(self, id_: ObsId) -> None:
        bracket = self._owner(id_)
        reserve = self._reserved.pop(id_, None)
        applied = self._applied.pop(id_, None)
        if reserve is not None and applied is None:
            # never told: the whole reservation is still unused
            bracket.consumption -= reserve
        del self._owners[id_]
        bracket.asha.forget(id_)
