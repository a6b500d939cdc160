"""
Observations exchanged over the ask/tell protocol and their identifiers.

- `Obs` is the single-fidelity currency used by inner strategies.
- `MfObs` additionally carries the `Budget` the parameter is evaluated under.
- `Ranked` is the value an ASHA scheduler reports to its inner strategy.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from mfopt.budget import Budget, Budgeted

P = TypeVar("P")
V = TypeVar("V")


@dataclass(frozen=True, order=True)
class ObsId:
    """Opaque observation identifier, unique for the lifetime of a scheduler."""

    value: int

    def get(self) -> int:
        return int(self.value)

    def __repr__(self) -> str:
        return f"ObsId({self.value})"


class IdGen:
    """
    Observation id generator.

    Implementations must hand out a fresh id on every call; nothing else is assumed.
    """

    def generate(self) -> ObsId:
        raise NotImplementedError


class SerialIdGenerator(IdGen):
    """Serial identifiers starting from `start` (zero by default)."""

    def __init__(self, start: int = 0):
        self.next_id = int(start)

    def generate(self) -> ObsId:
        id_ = ObsId(self.next_id)
        self.next_id += 1
        return id_


class ConstIdGenerator(IdGen):
    """Always returns the same identifier (handy for tests of single-shot paths)."""

    def __init__(self, id_: ObsId | int):
        self.id = id_ if isinstance(id_, ObsId) else ObsId(int(id_))

    def generate(self) -> ObsId:
        return self.id


@dataclass
class Obs(Generic[P, V]):
    """Observation. `value` is None while the parameter is unevaluated."""

    id: ObsId
    param: P
    value: Optional[V] = None

    @classmethod
    def new(cls, idg: IdGen, param: P) -> "Obs[P, None]":
        return cls(id=idg.generate(), param=param, value=None)

    def map_param(self, f: Callable[[P], Any]) -> "Obs":
        return Obs(id=self.id, param=f(self.param), value=self.value)

    def map_value(self, f: Callable[[Optional[V]], Any]) -> "Obs":
        return Obs(id=self.id, param=self.param, value=f(self.value))


@dataclass
class MfObs(Generic[P, V]):
    """Multi-fidelity observation: an `Obs` plus the budget it runs under."""

    id: ObsId
    param: P
    budget: Budget
    value: Optional[V] = None

    def to_obs(self) -> Obs[P, V]:
        return Obs(id=self.id, param=self.param, value=self.value)

    def budgeted(self) -> Budgeted[P]:
        return Budgeted(budget=self.budget, value=self.param)

    def with_value(self, value: Any) -> "MfObs":
        return MfObs(id=self.id, param=self.param, budget=self.budget.copy(), value=value)

    def copy(self) -> "MfObs[P, V]":
        return MfObs(id=self.id, param=self.param, budget=self.budget.copy(), value=self.value)

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id.get(),
            "param": self.param,
            "value": self.value,
            "budget": self.budget.as_dict(),
        }


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Ranked(Generic[V]):
    """
    A value tagged with how many rungs its observation has reached.

    Ordering (smaller is better): a larger `rank` sorts first, then `value` ascending.
    An inner strategy sorting by this never prefers a cut-short evaluation over one
    that progressed further.
    """

    rank: int
    value: V

    def _key(self):
        return (-int(self.rank), self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ranked):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "Ranked") -> bool:
        if not isinstance(other, Ranked):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())
