"""
Multi-fidelity hyper-parameter optimization (HPO) schedulers.

- `AshaOptimizer`: asynchronous successive halving over an inner ask/tell strategy
- `HyperbandOptimizer`: several ASHA brackets load-balanced by committed budget
- `run_search`: a simulated asynchronous driver for both
"""

from mfopt.hpo.asha import AshaOptimizer, AshaOptions, Finished, Pending, Rung, Rungs, build_rung_budgets
from mfopt.hpo.hyperband import Bracket, HyperbandOptimizer, HyperbandOptions
from mfopt.hpo.runner import SearchRunResult, TrialRecord, run_search

__all__ = [
    "AshaOptimizer",
    "AshaOptions",
    "Bracket",
    "Finished",
    "HyperbandOptimizer",
    "HyperbandOptions",
    "Pending",
    "Rung",
    "Rungs",
    "SearchRunResult",
    "TrialRecord",
    "build_rung_budgets",
    "run_search",
]
