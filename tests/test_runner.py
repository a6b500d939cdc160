"""End-to-end ask/tell runs with out-of-order completions."""

from __future__ import annotations

import pytest

from mfopt import InvalidInputError
from mfopt.domains import ContinuousDomain
from mfopt.hpo import AshaOptimizer, AshaOptions, HyperbandOptimizer, HyperbandOptions, run_search
from mfopt.optimizers import KnnOptimizer, RandomOptimizer

DOMAIN = ContinuousDomain(0.0, 1.0)


def objective(param, budget, _seed):
    # noisy at small budgets, converging to (x - 0.3)^2
    return (float(param) - 0.3) ** 2 + 1.0 / float(budget)


def test_asha_run_completes_requested_evaluations():
    asha = AshaOptimizer(RandomOptimizer(DOMAIN), 1, 27, AshaOptions(reduction_factor=3))
    run = run_search(optimizer=asha, objective=objective, seed=0, n_evals=40, n_workers=4)

    assert len(run.records) == 40
    assert len({(r.id, r.budget) for r in run.records}) == 40
    assert all(r.consumption == r.budget for r in run.records)
    assert {r.budget for r in run.records} <= {1, 3, 9, 27}
    assert run.best_value == min(r.value for r in run.records)
    # promotions reuse the budget already spent, so the total is below the sum of grants
    assert run.total_consumption <= sum(r.budget for r in run.records)
    assert any(r.budget > 1 for r in run.records)


def test_runs_are_reproducible_for_a_seed():
    def make():
        return AshaOptimizer(KnnOptimizer(DOMAIN), 1, 9, AshaOptions(reduction_factor=3))

    a = run_search(optimizer=make(), objective=objective, seed=3, n_evals=25, n_workers=3)
    b = run_search(optimizer=make(), objective=objective, seed=3, n_evals=25, n_workers=3)
    assert [(r.id, r.budget, r.value) for r in a.records] == [(r.id, r.budget, r.value) for r in b.records]


def test_hyperband_consumption_matches_spend_after_run():
    hb = HyperbandOptimizer(lambda: RandomOptimizer(DOMAIN), 27, HyperbandOptions(eta=3))
    run = run_search(optimizer=hb, objective=objective, seed=1, n_evals=60, n_workers=5)

    # every reservation has been told back, so the estimate equals the real spend
    assert sum(hb.consumptions()) == run.total_consumption
    assert set(hb._applied) == set(hb._reserved)


def test_hyperband_without_checkpoint_run():
    hb = HyperbandOptimizer(
        lambda: RandomOptimizer(DOMAIN),
        9,
        HyperbandOptions(eta=3, without_checkpoint=True),
    )
    run = run_search(optimizer=hb, objective=objective, seed=2, n_evals=30, n_workers=2)
    # restarts always begin from zero, so every grant is consumed in full
    assert run.total_consumption == sum(r.budget for r in run.records)
    assert sum(hb.consumptions()) == run.total_consumption


def test_best_at_budget():
    asha = AshaOptimizer(RandomOptimizer(DOMAIN), 5, 5)
    run = run_search(optimizer=asha, objective=objective, seed=4, n_evals=10, n_workers=1)
    best = run.best_at_budget(5)
    assert best is not None
    assert best.value == run.best_value
    assert run.best_at_budget(7) is None


@pytest.mark.parametrize("n_evals,n_workers", [(0, 1), (5, 0)])
def test_invalid_run_arguments(n_evals, n_workers):
    asha = AshaOptimizer(RandomOptimizer(DOMAIN), 1, 3)
    with pytest.raises(InvalidInputError):
        run_search(optimizer=asha, objective=objective, seed=0, n_evals=n_evals, n_workers=n_workers)
