"""Parameter domains and the reference inner strategies."""

from __future__ import annotations

import numpy as np
import pytest

from mfopt import InvalidInputError, Obs, ObsId, SerialIdGenerator
from mfopt.domains import CategoricalDomain, ContinuousDomain, DiscreteDomain, VecDomain
from mfopt.optimizers import KnnOptimizer, RandomOptimizer


@pytest.mark.parametrize(
    "low,high,prior",
    [
        (1.0, 1.0, "uniform"),
        (2.0, 1.0, "uniform"),
        (float("nan"), 1.0, "uniform"),
        (0.0, float("inf"), "uniform"),
        (0.0, 1.0, "log"),
        (0.1, 1.0, "beta"),
    ],
)
def test_continuous_domain_rejects_bad_bounds(low, high, prior):
    with pytest.raises(InvalidInputError):
        ContinuousDomain(low, high, prior)


def test_continuous_domain_samples_in_range():
    rng = np.random.default_rng(0)
    d = ContinuousDomain(-1.0, 2.0)
    xs = [d.sample(rng) for _ in range(200)]
    assert all(-1.0 <= x < 2.0 for x in xs)
    assert d.size() == pytest.approx(3.0)


def test_log_prior_samples_in_range():
    rng = np.random.default_rng(1)
    d = ContinuousDomain(1e-4, 1e-1, prior="LOG")
    assert d.prior == "log"
    xs = [d.sample(rng) for _ in range(200)]
    assert all(1e-4 <= x < 1e-1 for x in xs)


def test_integer_domains():
    rng = np.random.default_rng(2)
    assert {DiscreteDomain(3).sample(rng) for _ in range(100)} <= {0, 1, 2}
    assert {CategoricalDomain(2).sample(rng) for _ in range(100)} <= {0, 1}
    with pytest.raises(InvalidInputError):
        DiscreteDomain(0)
    with pytest.raises(InvalidInputError):
        CategoricalDomain(0)


def test_vec_domain():
    rng = np.random.default_rng(3)
    d = VecDomain([ContinuousDomain(0.0, 1.0), CategoricalDomain(4)])
    point = d.sample(rng)
    assert len(point) == len(d) == 2
    with pytest.raises(InvalidInputError):
        VecDomain([])


def test_random_optimizer_assigns_fresh_ids():
    rng = np.random.default_rng(4)
    idg = SerialIdGenerator()
    opt = RandomOptimizer(ContinuousDomain(0.0, 1.0))
    a = opt.ask(rng, idg)
    b = opt.ask(rng, idg)
    assert (a.id, b.id) == (ObsId(0), ObsId(1))
    assert a.value is None
    opt.tell(a.map_value(lambda _: 1.0))
    opt.forget(a.id)


def test_knn_optimizer_asks_inside_domain():
    rng = np.random.default_rng(5)
    idg = SerialIdGenerator()
    d = ContinuousDomain(0.0, 1.0)
    opt = KnnOptimizer(d)

    first = opt.ask(rng, idg)
    assert 0.0 <= first.param < 1.0

    for _ in range(16):
        obs = opt.ask(rng, idg)
        opt.tell(Obs(id=obs.id, param=obs.param, value=abs(obs.param - 0.2)))
    assert len(opt.obss) == 16

    nxt = opt.ask(rng, idg)
    assert 0.0 <= nxt.param < 1.0
    assert nxt.id == ObsId(17)

    opt.forget(ObsId(1))
    assert ObsId(1) not in opt.obss
    assert len(opt.obss) == 15


def test_knn_optimizer_handles_vector_params():
    rng = np.random.default_rng(6)
    idg = SerialIdGenerator()
    opt = KnnOptimizer(VecDomain([ContinuousDomain(0.0, 1.0), ContinuousDomain(-1.0, 1.0)]))
    for i in range(9):
        obs = opt.ask(rng, idg)
        opt.tell(Obs(id=obs.id, param=obs.param, value=float(i)))
    obs = opt.ask(rng, idg)
    assert len(obs.param) == 2
