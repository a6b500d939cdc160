"""
Asynchronous Successive Halving (ASHA).

Reference: "Massively Parallel Hyperparameter Tuning", https://arxiv.org/abs/1810.05934

A configuration moves New -> Pending(rung 0) -> Pending(rung 1) -> ... -> finished at
`max_budget`. The state is never stored as a flag: it is the rung map an id sits in and
whether that entry is `Pending` (awaiting a promotion decision) or `Finished` (promoted
away, kept only so its value still takes part in ranking).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from mfopt.budget import Budget
from mfopt.errors import BugError, InvalidInputError
from mfopt.observation import IdGen, MfObs, Obs, ObsId, Ranked
from mfopt.optimizer import MultiFidelityOptimizer, Optimizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AshaOptions:
    reduction_factor: int = 2
    # evaluators that cannot resume get a new id (and zero consumption) on promotion
    without_checkpoint: bool = False

    def validate(self) -> "AshaOptions":
        if int(self.reduction_factor) <= 1:
            raise InvalidInputError("reduction_factor must be greater than 1", reduction_factor=self.reduction_factor)
        return self


@dataclass
class Pending:
    obs: MfObs

    @property
    def value(self) -> Any:
        return self.obs.value


@dataclass
class Finished:
    value: Any


Config = Union[Pending, Finished]


def build_rung_budgets(*, min_budget: int, max_budget: int, reduction_factor: int) -> List[int]:
    """Strictly increasing budgets `min_budget, min_budget*rf, ...`, capped at and ending with `max_budget`."""
    budgets = [int(min_budget)]
    while budgets[-1] < int(max_budget):
        budgets.append(min(int(max_budget), budgets[-1] * int(reduction_factor)))
    return budgets


class Rung:
    def __init__(self, curr_budget: int, next_budget: Optional[int], reduction_factor: int):
        self.curr_budget = int(curr_budget)
        self.next_budget = None if next_budget is None else int(next_budget)
        self.reduction_factor = int(reduction_factor)
        self.configs: Dict[ObsId, Config] = {}

    def __len__(self) -> int:
        return len(self.configs)

    def __contains__(self, id_: ObsId) -> bool:
        return id_ in self.configs

    def is_terminal(self) -> bool:
        return self.next_budget is None

    def pending_ids(self) -> List[ObsId]:
        return [id_ for id_, c in self.configs.items() if isinstance(c, Pending)]

    def promotable_id(self) -> Optional[ObsId]:
        """Best-valued `Pending` entry within the top `len // reduction_factor`, if any."""
        if self.next_budget is None:
            return None
        k = len(self.configs) // self.reduction_factor
        if k == 0:
            return None
        # sorted() is stable: equal values keep insertion order
        ranked = sorted(self.configs.items(), key=lambda kv: kv[1].value)
        for id_, config in ranked[:k]:
            if isinstance(config, Pending):
                return id_
        return None

    def promote(self, id_: ObsId) -> MfObs:
        config = self.configs.get(id_)
        if not isinstance(config, Pending) or self.next_budget is None:
            raise BugError("promoted entry is not pending in a non-terminal rung", id=id_, budget=self.curr_budget)
        self.configs[id_] = Finished(value=config.obs.value)

        obs = config.obs.copy()
        obs.budget.set_amount(self.next_budget)
        obs.value = None
        return obs

    def tell(self, obs: MfObs) -> None:
        current = self.configs.get(obs.id)
        if isinstance(current, Finished):
            # progress report from an entry already promoted away from this rung
            self.configs[obs.id] = Finished(value=obs.value)
        else:
            self.configs[obs.id] = Pending(obs=obs.copy())

    def refresh(self, id_: ObsId, value: Any) -> None:
        """Updates the value of an entry already promoted away; other entries are left alone."""
        if isinstance(self.configs.get(id_), Finished):
            self.configs[id_] = Finished(value=value)

    def finish(self, id_: ObsId) -> None:
        config = self.configs.get(id_)
        if isinstance(config, Pending):
            self.configs[id_] = Finished(value=config.obs.value)

    def forget(self, id_: ObsId) -> None:
        self.configs.pop(id_, None)


class Rungs:
    """Rungs of one ASHA instance, index 0 being the smallest budget."""

    def __init__(self, min_budget: int, max_budget: int, reduction_factor: int):
        budgets = build_rung_budgets(min_budget=min_budget, max_budget=max_budget, reduction_factor=reduction_factor)
        self.rungs: List[Rung] = []
        for i, budget in enumerate(budgets):
            next_budget = budgets[i + 1] if i + 1 < len(budgets) else None
            self.rungs.append(Rung(budget, next_budget, reduction_factor))

    def __len__(self) -> int:
        return len(self.rungs)

    def __getitem__(self, i: int) -> Rung:
        return self.rungs[i]

    def __iter__(self) -> Iterator[Rung]:
        return iter(self.rungs)

    def budgets(self) -> List[int]:
        return [r.curr_budget for r in self.rungs]

    def rung_index(self, consumption: int) -> int:
        """Index of the rung whose `[curr_budget, next_budget)` contains `consumption`."""
        consumption = int(consumption)
        if consumption < self.rungs[0].curr_budget:
            raise InvalidInputError(
                "consumption is below the smallest rung budget",
                consumption=consumption,
                min_budget=self.rungs[0].curr_budget,
            )
        for i in range(len(self.rungs) - 1, -1, -1):
            if consumption >= self.rungs[i].curr_budget:
                return i
        raise BugError("no rung covers consumption", consumption=consumption)

    def ask_promotable(self) -> Optional[MfObs]:
        # highest budget first: finishing nearly-done work reuses the most spent budget
        for i in range(len(self.rungs) - 1, -1, -1):
            rung = self.rungs[i]
            id_ = rung.promotable_id()
            if id_ is not None:
                logger.debug("promote id=%s rung=%d budget %d -> %s", id_.get(), i, rung.curr_budget, rung.next_budget)
                return rung.promote(id_)
        return None

    def finish_below(self, id_: ObsId, rung: int) -> None:
        for r in self.rungs[:rung]:
            r.finish(id_)

    def tell(self, obs: MfObs) -> int:
        i = self.rung_index(obs.budget.consumption)
        self.finish_below(obs.id, i)
        self.rungs[i].tell(obs)
        return i

    def forget(self, id_: ObsId) -> None:
        for r in self.rungs:
            r.forget(id_)


class AshaOptimizer(MultiFidelityOptimizer):
    """
    ASHA scheduler over an inner single-fidelity optimizer.

    `ask` promotes the best pending candidate of the highest possible rung (raising its
    budget amount to the next rung) or, when nothing is promotable, asks `inner` for a new
    parameter at `min_budget`. `tell` files the report in the rung matching its consumption
    and forwards `Ranked(rank, value)` to `inner`, where `rank` is the rung reached (plus one
    for reports at `max_budget`).
    """

    name = "asha"

    def __init__(
        self,
        inner: Optimizer,
        min_budget: int,
        max_budget: int,
        options: Optional[AshaOptions] = None,
    ):
        self.options = (options or AshaOptions()).validate()
        min_budget = int(min_budget)
        max_budget = int(max_budget)
        if min_budget <= 0:
            raise InvalidInputError("min_budget must be positive", min_budget=min_budget)
        if min_budget > max_budget:
            raise InvalidInputError("min_budget must not exceed max_budget", min_budget=min_budget, max_budget=max_budget)

        self.inner = inner
        self.min_budget = min_budget
        self.max_budget = max_budget
        self.rungs = Rungs(min_budget, max_budget, int(self.options.reduction_factor))
        self._consumptions: Dict[ObsId, int] = {}
        # restarted id -> (id it was promoted from, rung it was promoted into)
        self._restarts: Dict[ObsId, Tuple[ObsId, int]] = {}

    def ask(self, rng: np.random.Generator, idg: IdGen) -> MfObs[Any, None]:
        obs = self.rungs.ask_promotable()
        if obs is not None:
            if self.options.without_checkpoint:
                new_id = idg.generate()
                logger.debug("restart promoted id=%s as id=%s", obs.id.get(), new_id.get())
                self._restarts[new_id] = (obs.id, self.rungs.rung_index(obs.budget.amount))
                obs = MfObs(id=new_id, param=obs.param, budget=Budget(amount=obs.budget.amount))
            return obs

        fresh = self.inner.ask(rng, idg)
        return MfObs(id=fresh.id, param=fresh.param, budget=Budget(amount=self.min_budget))

    def tell(self, obs: MfObs) -> None:
        consumption = int(obs.budget.consumption)
        prev = self._consumptions.get(obs.id)
        if prev is not None and consumption < prev:
            raise InvalidInputError("consumption must not decrease", id=obs.id, previous=prev, consumption=consumption)

        if consumption >= self.max_budget:
            rung = len(self.rungs) - 1
            self.rungs.finish_below(obs.id, rung)
            rank = rung + 1
            logger.debug("terminal report id=%s consumption=%d", obs.id.get(), consumption)
        else:
            restart = self._restarts.get(obs.id)
            if restart is not None and consumption < self.rungs[restart[1]].curr_budget:
                # a restart re-running budget its parent already spent counts as the parent
                parent, _ = restart
                rung = self.rungs.rung_index(max(consumption, self.min_budget))
                self.rungs[rung].refresh(parent, obs.value)
            else:
                rung = self.rungs.tell(obs)
            rank = rung

        self._consumptions[obs.id] = consumption
        self.inner.tell(Obs(id=obs.id, param=obs.param, value=Ranked(rank=rank, value=obs.value)))

    def forget(self, id_: ObsId) -> None:
        self.rungs.forget(id_)
        self._consumptions.pop(id_, None)
        self._restarts.pop(id_, None)
        self.inner.forget(id_)
