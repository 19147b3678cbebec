"""
Algorithm registry.

Maps every ``AlgorithmName`` to its function so callers can dispatch on
the enum instead of on free-form strings.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable

from .errors import InvalidInputError
from .knowledge_tracing import bkt, dkt, dp, hmm
from .models import AlgorithmExecutionResult
from .names import AlgorithmFamily, AlgorithmName
from .question_selection import a_star, knapsack, q_learning, thompson_sampling, ucb
from .review_scheduling import adaptive_round_robin, fsrs, min_heap, sm2
from .reward_system import fenwick_tree, greedy, mdp, variable_ratio


@dataclass(frozen=True)
class AlgorithmInfo:
    """Registry entry for one algorithm."""

    name: AlgorithmName
    function: Callable[..., AlgorithmExecutionResult]

    @property
    def family(self) -> AlgorithmFamily:
        return self.name.family

    @property
    def summary(self) -> str:
        doc = inspect.getdoc(self.function) or ""
        return doc.splitlines()[0] if doc else ""

    @property
    def parameters(self) -> list[str]:
        return [
            p.name
            for p in inspect.signature(self.function).parameters.values()
            if p.name != "rng"
        ]


_REGISTRY: dict[AlgorithmName, Callable[..., AlgorithmExecutionResult]] = {
    AlgorithmName.SM2: sm2,
    AlgorithmName.FSRS: fsrs,
    AlgorithmName.MIN_HEAP: min_heap,
    AlgorithmName.ADAPTIVE_ROUND_ROBIN: adaptive_round_robin,
    AlgorithmName.UCB: ucb,
    AlgorithmName.THOMPSON_SAMPLING: thompson_sampling,
    AlgorithmName.Q_LEARNING: q_learning,
    AlgorithmName.KNAPSACK: knapsack,
    AlgorithmName.A_STAR: a_star,
    AlgorithmName.FENWICK_TREE: fenwick_tree,
    AlgorithmName.GREEDY: greedy,
    AlgorithmName.VARIABLE_RATIO: variable_ratio,
    AlgorithmName.MDP: mdp,
    AlgorithmName.BKT: bkt,
    AlgorithmName.DKT: dkt,
    AlgorithmName.DP: dp,
    AlgorithmName.HMM: hmm,
}


def get_algorithm(name: AlgorithmName | str) -> AlgorithmInfo:
    """Look up an algorithm by enum member or name string."""
    member = AlgorithmName.coerce(name)
    if member is None:
        raise KeyError(f"Unknown algorithm: {name}")
    return AlgorithmInfo(name=member, function=_REGISTRY[member])


def list_algorithms(family: AlgorithmFamily | None = None) -> list[AlgorithmInfo]:
    """All registered algorithms, optionally restricted to one family."""
    return [
        AlgorithmInfo(name=name, function=fn)
        for name, fn in _REGISTRY.items()
        if family is None or name.family is family
    ]


def run_algorithm(name: AlgorithmName | str, *args: Any, **kwargs: Any) -> AlgorithmExecutionResult:
    """
    Run an algorithm by name.

    Raises:
        KeyError: Unknown algorithm name
        InvalidInputError: Arguments do not match the algorithm's signature
            or fail its input checks
    """
    info = get_algorithm(name)
    try:
        inspect.signature(info.function).bind(*args, **kwargs)
    except TypeError as e:
        raise InvalidInputError(info.name.value, str(e)) from e
    return info.function(*args, **kwargs)
