from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Generic, TypeVar

T = TypeVar("T")


@dataclass
class Budget:
    """
    Resource units granted to (`amount`) and spent by (`consumption`) one evaluation.

    Consumption is allowed to exceed the amount. Over-consumption is tracked via
    `excess()` and never clamped.
    """

    amount: int
    consumption: int = 0

    def consume(self, n: int) -> None:
        self.consumption += int(n)

    def set_amount(self, n: int) -> None:
        self.amount = int(n)

    def remaining(self) -> int:
        return max(0, int(self.amount) - int(self.consumption))

    def excess(self) -> int:
        return max(0, int(self.consumption) - int(self.amount))

    def copy(self) -> "Budget":
        return Budget(amount=int(self.amount), consumption=int(self.consumption))

    def as_dict(self) -> Dict[str, int]:
        return {"amount": int(self.amount), "consumption": int(self.consumption)}


@dataclass
class Budgeted(Generic[T]):
    """A value together with the budget it is evaluated under."""

    budget: Budget
    value: T

    def get(self) -> T:
        return self.value

    def into_inner(self) -> T:
        return self.value
