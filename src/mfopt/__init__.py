"""
mfopt: ask/tell black-box parameter search with multi-fidelity scheduling.

Callers `ask` for a parameter, evaluate it themselves (possibly in parallel and for a
granted budget), then `tell` the result back.
"""

from mfopt.budget import Budget, Budgeted
from mfopt.errors import (
    BugError,
    ErrorKind,
    InvalidInputError,
    OptimizerError,
    UnknownObservationError,
)
from mfopt.observation import ConstIdGenerator, IdGen, MfObs, Obs, ObsId, Ranked, SerialIdGenerator
from mfopt.optimizer import MultiFidelityOptimizer, Optimizer

__all__ = [
    "Budget",
    "Budgeted",
    "BugError",
    "ConstIdGenerator",
    "ErrorKind",
    "IdGen",
    "InvalidInputError",
    "MfObs",
    "MultiFidelityOptimizer",
    "Obs",
    "ObsId",
    "Optimizer",
    "OptimizerError",
    "Ranked",
    "SerialIdGenerator",
    "UnknownObservationError",
]
