from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import numpy as np

from mfopt.errors import InvalidInputError
from mfopt.observation import IdGen, MfObs, SerialIdGenerator
from mfopt.optimizer import MultiFidelityOptimizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrialRecord:
    """One evaluation of a parameter at a granted budget."""

    id: int
    param: Any
    budget: int
    consumption: int
    value: float  # lower is better
    runtime_sec: float


@dataclass(frozen=True)
class SearchRunResult:
    records: List[TrialRecord]
    best_value: float
    best_param: Any
    total_consumption: int
    total_runtime_sec: float

    def best_at_budget(self, budget: int) -> Optional[TrialRecord]:
        recs = [r for r in self.records if int(r.budget) == int(budget)]
        if not recs:
            return None
        return min(recs, key=lambda r: float(r.value))


ObjectiveFn = Callable[[Any, int, int], float]
# signature: (param, budget, seed) -> value (lower is better)


def _default_rng(seed: int) -> np.random.Generator:
    return np.random.default_rng(int(seed))


def run_search(
    *,
    optimizer: MultiFidelityOptimizer,
    objective: ObjectiveFn,
    seed: int,
    n_evals: int = 50,
    n_workers: int = 4,
    idg: Optional[IdGen] = None,
) -> SearchRunResult:
    """
    Drive `optimizer` with simulated asynchronous workers.

    Up to `n_workers` asked observations are outstanding at once; each step completes one of
    them chosen at random, so tells arrive out of ask order. The evaluation consumes exactly
    the remaining granted budget before being told back.
    """
    if int(n_evals) <= 0:
        raise InvalidInputError("n_evals must be positive", n_evals=n_evals)
    if int(n_workers) <= 0:
        raise InvalidInputError("n_workers must be positive", n_workers=n_workers)

    rng = _default_rng(seed)
    idg = idg if idg is not None else SerialIdGenerator()

    outstanding: List[MfObs] = []
    records: List[TrialRecord] = []
    total_consumption = 0
    t0 = time.perf_counter()

    while len(records) < int(n_evals):
        while len(outstanding) < int(n_workers) and len(records) + len(outstanding) < int(n_evals):
            outstanding.append(optimizer.ask(rng, idg))

        obs = outstanding.pop(int(rng.integers(0, len(outstanding))))
        t1 = time.perf_counter()
        value = float(objective(obs.param, int(obs.budget.amount), int(seed)))
        dt = time.perf_counter() - t1

        spent = obs.budget.remaining()
        obs.budget.consume(spent)
        total_consumption += spent
        optimizer.tell(obs.with_value(value))

        records.append(
            TrialRecord(
                id=obs.id.get(),
                param=obs.param,
                budget=int(obs.budget.amount),
                consumption=int(obs.budget.consumption),
                value=value,
                runtime_sec=float(dt),
            )
        )
        logger.debug("eval id=%s budget=%d value=%.6g", obs.id.get(), obs.budget.amount, value)

    total_dt = time.perf_counter() - t0
    best = min(records, key=lambda r: float(r.value))
    logger.info(
        "%s: %d evals, total consumption %d, best value %.6g",
        getattr(optimizer, "name", type(optimizer).__name__),
        len(records),
        total_consumption,
        best.value,
    )
    return SearchRunResult(
        records=records,
        best_value=float(best.value),
        best_param=best.param,
        total_consumption=int(total_consumption),
        total_runtime_sec=float(total_dt),
    )
