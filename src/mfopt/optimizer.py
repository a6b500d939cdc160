from __future__ import annotations

from typing import Any

import numpy as np

from mfopt.observation import IdGen, MfObs, Obs, ObsId


class Optimizer:
    """
    Ask/tell interface of a single-fidelity black-box optimizer.

    Conventions:
    - `ask` never blocks and always produces a fresh, unevaluated observation
    - `tell` reports a (possibly partial) evaluation; re-telling an id overwrites its state
    - values are compared with `<`; smaller is better
    """

    name: str = "base"

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        raise NotImplementedError

    def tell(self, obs: Obs) -> None:
        raise NotImplementedError

    def forget(self, id_: ObsId) -> None:
        """Drops what is known about `id_`. Some implementations raise `UnknownObservationError`."""
        raise NotImplementedError


class MultiFidelityOptimizer:
    """Same protocol as `Optimizer` but exchanging budget-carrying `MfObs`."""

    name: str = "base-mf"

    def ask(self, rng: np.random.Generator, idg: IdGen) -> MfObs[Any, None]:
        raise NotImplementedError

    def tell(self, obs: MfObs) -> None:
        raise NotImplementedError

    def forget(self, id_: ObsId) -> None:
        raise NotImplementedError
