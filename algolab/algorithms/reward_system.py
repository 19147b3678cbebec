"""
Reward System Algorithms.

Account for and distribute rewards over a test:
- FenwickTree: cumulative reward with O(log n) point updates
- Greedy: rank activities by reward per unit time
- VariableRatio: unpredictable reinforcement on a ratio schedule
- MDP: fixed-sweep value iteration under a given policy
"""

from __future__ import annotations

import math
import random
from typing import Any, Mapping

from loguru import logger

from .errors import InvalidInputError
from .models import (
    Activity,
    AlgorithmExecutionResult,
    Complexity,
    FenwickOperation,
    FenwickResult,
    GreedyResult,
    MDPResult,
    RankedActivity,
    ReinforcementEvent,
    ValueIteration,
    VariableRatioResult,
    Visualization,
    VisualizationType,
)
from .primitives import fenwick_query, fenwick_update
from .timing import measure_execution

MDP_DISCOUNT = 0.9
MDP_ITERATIONS = 5


# =============================================================================
# Fenwick Tree
# =============================================================================


def fenwick_tree(rewards: list[float], index: int, value: float) -> AlgorithmExecutionResult:
    """
    Build a Fenwick tree over ``rewards``, add ``value`` at ``index``,
    then emit every prefix sum.
    """
    if not 0 <= index < len(rewards):
        raise InvalidInputError("FenwickTree", f"update index {index} outside 0..{len(rewards) - 1}")

    def run() -> FenwickResult:
        tree = [0] * (len(rewards) + 1)
        operations: list[FenwickOperation] = []
        for i, reward in enumerate(rewards):
            fenwick_update(tree, i, reward, operations)
        fenwick_update(tree, index, value, operations)

        prefix_sums = [fenwick_query(tree, i) for i in range(len(rewards))]
        return FenwickResult(
            tree=tree,
            operations=operations,
            prefix_sums=prefix_sums,
            total_reward=prefix_sums[-1],
        )

    result, elapsed = measure_execution(run)
    logger.debug(f"FenwickTree: total={result.total_reward} prefix={result.prefix_sums}")

    # Tree slots touched by the final point update
    updated = set()
    i = index + 1
    while i < len(result.tree):
        updated.add(i)
        i += i & -i

    return AlgorithmExecutionResult(
        algorithm_name="Fenwick Tree (Binary Indexed Tree)",
        execution_time=elapsed,
        complexity=Complexity("O(log n)", "O(n)"),
        description="Efficient data structure for cumulative reward calculation and range queries.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.TREE,
            data=[
                {
                    "index": i,
                    "value": v,
                    "level": int(math.log2(i + 1)),
                    "isUpdated": i in updated,
                }
                for i, v in enumerate(result.tree)
            ],
        ),
    )


# =============================================================================
# Greedy Reward Maximization
# =============================================================================


def _as_activity(activity: Activity | Mapping[str, Any]) -> Activity:
    if isinstance(activity, Mapping):
        missing = [key for key in ("reward", "time") if key not in activity]
        if missing:
            raise InvalidInputError("Greedy", f"activity is missing {', '.join(missing)}")
        return Activity(reward=activity["reward"], time=activity["time"])
    return activity


def greedy(activities: list[Activity | Mapping[str, Any]]) -> AlgorithmExecutionResult:
    """
    Sort activities by reward/time descending and take all of them.

    Every activity is accumulated; there is no capacity bound.
    """
    items = [_as_activity(a) for a in activities]
    if any(a.time <= 0 for a in items):
        raise InvalidInputError("Greedy", "activity time must be positive")

    def run() -> GreedyResult:
        ranked = sorted(
            (RankedActivity(index=i, reward=a.reward, time=a.time, ratio=a.reward / a.time) for i, a in enumerate(items)),
            key=lambda a: a.ratio,
            reverse=True,
        )
        total_reward = sum(a.reward for a in ranked)
        total_time = sum(a.time for a in ranked)
        return GreedyResult(
            sorted=ranked,
            selected_activities=list(ranked),
            total_reward=total_reward,
            total_time=total_time,
            average_ratio=total_reward / total_time if total_time else 0.0,
        )

    result, elapsed = measure_execution(run)
    logger.debug(f"Greedy: reward={result.total_reward} time={result.total_time}")

    return AlgorithmExecutionResult(
        algorithm_name="Greedy Reward Maximization",
        execution_time=elapsed,
        complexity=Complexity("O(n log n)", "O(1)"),
        description="Greedy approach to maximize reward per unit time by prioritizing high-value activities.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.BAR,
            data=[
                {
                    "activity": f"Activity {a.index + 1}",
                    "reward": a.reward,
                    "time": a.time,
                    "ratio": a.ratio,
                    "selected": True,
                    "order": order,
                }
                for order, a in enumerate(result.sorted, start=1)
            ],
        ),
    )


# =============================================================================
# Variable Ratio Reinforcement
# =============================================================================


def variable_ratio(
    responses: int,
    schedule: list[int],
    rng: random.Random | None = None,
) -> AlgorithmExecutionResult:
    """
    Variable-ratio reinforcement.

    The current ratio is ``schedule[responses % len(schedule)]`` and the
    reward fires with probability 1/ratio. The history replays responses
    1..N with independent draws.
    """
    if not schedule or any(r <= 0 for r in schedule):
        raise InvalidInputError("VariableRatio", "schedule must hold positive ratios")
    if responses < 0:
        raise InvalidInputError("VariableRatio", "response count must be non-negative")
    rng = rng or random

    def run() -> VariableRatioResult:
        current_ratio = schedule[responses % len(schedule)]
        reward_probability = 1 / current_ratio
        should_reward = rng.random() < reward_probability

        history = []
        for i in range(responses):
            ratio = schedule[i % len(schedule)]
            history.append(
                ReinforcementEvent(
                    response=i + 1,
                    ratio=ratio,
                    probability=1 / ratio,
                    rewarded=rng.random() < 1 / ratio,
                )
            )

        return VariableRatioResult(
            avg_ratio=sum(schedule) / len(schedule),
            current_ratio=current_ratio,
            reward_probability=reward_probability,
            should_reward=should_reward,
            reinforcement_history=history,
            total_rewards=sum(1 for h in history if h.rewarded),
        )

    result, elapsed = measure_execution(run)
    logger.debug(
        f"VariableRatio: ratio={result.current_ratio} reward={result.should_reward} "
        f"({result.total_rewards}/{responses})"
    )

    return AlgorithmExecutionResult(
        algorithm_name="Variable Ratio Reinforcement",
        execution_time=elapsed,
        complexity=Complexity("O(1)", "O(1)"),
        description="Psychological reinforcement schedule that provides rewards on an unpredictable basis to maximize engagement.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.TIMELINE,
            data=[
                {
                    "response": h.response,
                    "ratio": h.ratio,
                    "rewarded": h.rewarded,
                    "probability": h.probability,
                }
                for h in result.reinforcement_history
            ],
        ),
    )


# =============================================================================
# Markov Decision Process
# =============================================================================


def mdp(
    states: list[list[float]],
    rewards: list[float],
    policy: list[int],
    discount: float = MDP_DISCOUNT,
    iterations: int = MDP_ITERATIONS,
) -> AlgorithmExecutionResult:
    """
    Synchronous value iteration with a fixed number of sweeps.

    V'(s) = R(s) + gamma * V(clamp(policy[s], 0, |S| - 1))

    States without a policy entry take action 0.
    """
    num_states = len(states)
    if num_states == 0:
        raise InvalidInputError("MDP", "at least one state is required")
    if len(rewards) < num_states:
        raise InvalidInputError("MDP", f"expected {num_states} rewards, got {len(rewards)}")

    def run() -> MDPResult:
        values = [0.0] * num_states
        history = []
        for sweep in range(iterations):
            new_values = []
            for s in range(num_states):
                action = policy[s] if s < len(policy) else 0
                next_state = min(num_states - 1, max(0, action))
                new_values.append(rewards[s] + discount * values[next_state])
            history.append(
                ValueIteration(
                    iteration=sweep,
                    values=list(new_values),
                    max_change=max(abs(new - old) for new, old in zip(new_values, values)),
                )
            )
            values = new_values

        return MDPResult(
            final_values=values,
            iterations=history,
            policy=list(policy),
            optimal_value=max(values),
        )

    result, elapsed = measure_execution(run)
    logger.debug(f"MDP: optimal value {result.optimal_value:.3f} after {iterations} sweeps")

    return AlgorithmExecutionResult(
        algorithm_name="Markov Decision Process (MDP)",
        execution_time=elapsed,
        complexity=Complexity("O(|S|²|A|)", "O(|S|)"),
        description="Decision-making framework for optimal reward distribution based on student states and actions.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.CONVERGENCE,
            data=[
                {"iteration": it.iteration, "values": it.values, "maxChange": it.max_change}
                for it in result.iterations
            ],
        ),
    )
