from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Sequence

import numpy as np

from mfopt.errors import InvalidInputError


class Domain:
    """A parameter search domain that can draw points from a numpy `Generator`."""

    def sample(self, rng: np.random.Generator) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class ContinuousDomain(Domain):
    """
    Half-open interval `[low, high)`.

    prior="uniform": sample uniform in [low, high)
    prior="log": sample log-uniform in [low, high) (requires low > 0)
    """

    low: float
    high: float
    prior: str = "uniform"

    def __post_init__(self) -> None:
        lo, hi = float(self.low), float(self.high)
        if not (math.isfinite(lo) and math.isfinite(hi)):
            raise InvalidInputError("bounds must be finite", low=lo, high=hi)
        if not lo < hi:
            raise InvalidInputError("low must be smaller than high", low=lo, high=hi)
        if not math.isfinite(hi - lo):
            raise InvalidInputError("domain size must be finite", low=lo, high=hi)
        prior = (self.prior or "uniform").lower()
        if prior not in ("uniform", "log"):
            raise InvalidInputError("unknown prior", prior=self.prior)
        if prior == "log" and lo <= 0.0:
            raise InvalidInputError("log prior requires a positive lower bound", low=lo)
        object.__setattr__(self, "prior", prior)

    def size(self) -> float:
        return float(self.high) - float(self.low)

    def sample(self, rng: np.random.Generator) -> float:
        if self.prior == "log":
            v = float(np.exp(rng.uniform(np.log(self.low), np.log(self.high))))
            # exp(log(x)) may round outside the interval
            return min(max(v, float(self.low)), float(np.nextafter(self.high, self.low)))
        return float(rng.uniform(float(self.low), float(self.high)))


@dataclass(frozen=True)
class DiscreteDomain(Domain):
    """Integers `0..size` (exclusive)."""

    size: int

    def __post_init__(self) -> None:
        if int(self.size) <= 0:
            raise InvalidInputError("size must be positive", size=self.size)

    def sample(self, rng: np.random.Generator) -> int:
        return int(rng.integers(0, int(self.size)))


@dataclass(frozen=True)
class CategoricalDomain(Domain):
    """Category indices `0..cardinality` (exclusive)."""

    cardinality: int

    def __post_init__(self) -> None:
        if int(self.cardinality) <= 0:
            raise InvalidInputError("cardinality must be positive", cardinality=self.cardinality)

    def sample(self, rng: np.random.Generator) -> int:
        return int(rng.integers(0, int(self.cardinality)))


class VecDomain(Domain):
    """Product of domains; points are lists with one coordinate per member."""

    def __init__(self, domains: Sequence[Domain]):
        self.domains: List[Domain] = list(domains)
        if not self.domains:
            raise InvalidInputError("VecDomain needs at least one member domain")

    def __len__(self) -> int:
        return len(self.domains)

    def sample(self, rng: np.random.Generator) -> List[Any]:
        return [d.sample(rng) for d in self.domains]
