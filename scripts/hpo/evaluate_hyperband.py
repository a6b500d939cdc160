from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Dict, List, Sequence, Tuple

import numpy as np
from sklearn.datasets import make_classification
from sklearn.linear_model import SGDClassifier
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

from mfopt.domains import ContinuousDomain, VecDomain
from mfopt.hpo import AshaOptimizer, AshaOptions, HyperbandOptimizer, HyperbandOptions, run_search
from mfopt.optimizers import KnnOptimizer, RandomOptimizer

logger = logging.getLogger("evaluate_hyperband")

# param vector layout: [log10(alpha), log10(eta0), l1_ratio]
SEARCH_DOMAIN = VecDomain(
    [
        ContinuousDomain(-6.0, -2.0),
        ContinuousDomain(-4.0, -1.0),
        ContinuousDomain(0.0, 1.0),
    ]
)


@dataclass
class OneSeedResult:
    seed: int
    values: Dict[str, float]
    consumptions: Dict[str, int]


def _summary(xs: Sequence[float]) -> Tuple[float, float]:
    a = np.asarray(list(xs), dtype=float)
    return float(np.mean(a)), float(np.std(a))


def _make_objective_for_dataset(
    *,
    X_train: np.ndarray,
    y_train: np.ndarray,
    X_val: np.ndarray,
    y_val: np.ndarray,
    seed: int,
) -> Callable[[Any, int, int], float]:
    """
    Iterative objective:
    - model: SGDClassifier (logistic regression via SGD)
    - budget: number of epochs (full passes over training set)
    - value: validation error after the last epoch (lower is better)
    """

    X_train = np.asarray(X_train, dtype=float)
    y_train = np.asarray(y_train, dtype=int)
    X_val = np.asarray(X_val, dtype=float)
    y_val = np.asarray(y_val, dtype=int)

    classes = np.unique(y_train)

    def objective(param: List[float], budget: int, _seed: int) -> float:
        clf = SGDClassifier(
            loss="log_loss",
            penalty="elasticnet",
            alpha=float(10.0 ** param[0]),
            eta0=float(10.0 ** param[1]),
            l1_ratio=float(param[2]),
            learning_rate="constant",
            random_state=int(seed),
        )
        # same (param, budget) always sees the same epoch order, whichever optimizer asks
        rng = np.random.default_rng((int(seed), int(budget)))
        idx = np.arange(len(X_train))
        for _ in range(max(1, int(budget))):
            rng.shuffle(idx)
            clf.partial_fit(X_train[idx], y_train[idx], classes=classes)
        return 1.0 - float(clf.score(X_val, y_val))

    return objective


def _make_inner(kind: str):
    if kind == "knn":
        return KnnOptimizer(SEARCH_DOMAIN)
    return RandomOptimizer(SEARCH_DOMAIN)


def main() -> int:
    ap = argparse.ArgumentParser(description="Compare random search, ASHA and Hyperband on a small synthetic task.")
    ap.add_argument("--seeds", type=int, default=4, help="How many dataset seeds to evaluate.")
    ap.add_argument("--seed0", type=int, default=42, help="Base seed.")
    ap.add_argument("--n-samples", type=int, default=4000)
    ap.add_argument("--n-features", type=int, default=20)
    ap.add_argument("--class-sep", type=float, default=1.0)
    ap.add_argument("--flip-y", type=float, default=0.05)

    ap.add_argument("--n-evals", type=int, default=60, help="Evaluations per optimizer.")
    ap.add_argument("--n-workers", type=int, default=4, help="Simulated concurrent workers.")
    ap.add_argument("--eta", type=int, default=3)
    ap.add_argument("--min-budget", type=int, default=1)
    ap.add_argument("--max-budget", type=int, default=27)
    ap.add_argument("--inner", choices=["random", "knn"], default="random")
    ap.add_argument("--without-checkpoint", action="store_true", help="Restart promoted configs from scratch.")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    seeds = [int(args.seed0) + i for i in range(int(args.seeds))]
    results: List[OneSeedResult] = []
    t0 = perf_counter()
    for seed in seeds:
        X, y = make_classification(
            n_samples=int(args.n_samples),
            n_features=int(args.n_features),
            n_informative=max(2, int(0.4 * int(args.n_features))),
            n_redundant=max(1, int(0.1 * int(args.n_features))),
            n_classes=2,
            class_sep=float(args.class_sep),
            flip_y=float(args.flip_y),
            random_state=int(seed),
        )
        X_train, X_val, y_train, y_val = train_test_split(X, y, test_size=0.30, random_state=seed, stratify=y)
        scaler = StandardScaler().fit(X_train)
        objective = _make_objective_for_dataset(
            X_train=scaler.transform(X_train),
            y_train=y_train,
            X_val=scaler.transform(X_val),
            y_val=y_val,
            seed=seed,
        )

        asha_options = AshaOptions(reduction_factor=int(args.eta), without_checkpoint=bool(args.without_checkpoint))
        optimizers = {
            "random": AshaOptimizer(_make_inner(args.inner), int(args.max_budget), int(args.max_budget)),
            "asha": AshaOptimizer(_make_inner(args.inner), int(args.min_budget), int(args.max_budget), asha_options),
            "hyperband": HyperbandOptimizer(
                lambda: _make_inner(args.inner),
                int(args.max_budget),
                HyperbandOptions(
                    min_budget=int(args.min_budget),
                    eta=int(args.eta),
                    without_checkpoint=bool(args.without_checkpoint),
                ),
            ),
        }

        values: Dict[str, float] = {}
        consumptions: Dict[str, int] = {}
        for name, optimizer in optimizers.items():
            run = run_search(
                optimizer=optimizer,
                objective=objective,
                seed=seed,
                n_evals=int(args.n_evals),
                n_workers=int(args.n_workers),
            )
            final = run.best_at_budget(int(args.max_budget))
            values[name] = float(final.value) if final is not None else float("nan")
            consumptions[name] = int(run.total_consumption)

        results.append(OneSeedResult(seed=seed, values=values, consumptions=consumptions))
        logger.info(
            "seed=%d  val_error@R(random/asha/hyperband)=%.4f/%.4f/%.4f  consumption=%d/%d/%d",
            seed,
            values["random"],
            values["asha"],
            values["hyperband"],
            consumptions["random"],
            consumptions["asha"],
            consumptions["hyperband"],
        )

    t_eval = perf_counter() - t0

    print()
    print("=== Multi-fidelity Search Summary ===")
    print(f"seeds={len(seeds)} n_evals={args.n_evals} workers={args.n_workers} eta={args.eta} R={args.max_budget}")
    print(f"inner={args.inner} without_checkpoint={bool(args.without_checkpoint)}")
    print(f"eval_time_sec: {t_eval:.3f}")
    print()
    for name in ("random", "asha", "hyperband"):
        m, s = _summary([r.values[name] for r in results])
        cm, _cs = _summary([r.consumptions[name] for r in results])
        print(f"val_error@R({name:9s}): mean={m:.4f} std={s:.4f}  mean_consumption={cm:.0f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
