"""
Question Selection Algorithms.

Pick which question(s) to present next from a pool:
- UCB: optimistic bandit score (mean reward + exploration bonus)
- ThompsonSampling: Beta posterior draw per question
- QLearning: epsilon-greedy action over a Q-table row
- Knapsack: 0/1 DP maximising value under a difficulty budget
- AStar: heuristic search over an adjacent-integer learning path

Ties in every argmax resolve to the first (lowest) index.
"""

from __future__ import annotations

import math
import random
from typing import Any, Callable, Sequence

from loguru import logger

from .errors import InvalidInputError
from .models import (
    ActionType,
    AlgorithmExecutionResult,
    ArmSample,
    ArmScore,
    AStarResult,
    AStarStep,
    Complexity,
    KnapsackResult,
    KnapsackStep,
    QLearningResult,
    ThompsonResult,
    UCBResult,
    Visualization,
    VisualizationType,
)
from .timing import measure_execution

UCB_EXPLORATION = 2.0
ASTAR_STEP_CAP = 10
ASTAR_NEIGHBOR_MARGIN = 2


def _first_argmax(values: Sequence[float]) -> int:
    best = 0
    for i, value in enumerate(values):
        if value > values[best]:
            best = i
    return best


def _require_parallel(algorithm: str, first: Sequence, second: Sequence, names: str) -> None:
    if not first:
        raise InvalidInputError(algorithm, "at least one arm is required")
    if len(first) != len(second):
        raise InvalidInputError(
            algorithm, f"{names} must have equal length ({len(first)} != {len(second)})"
        )


# =============================================================================
# Upper Confidence Bound
# =============================================================================


def ucb(
    rewards: list[float],
    counts: list[int],
    total_count: int,
    exploration: float = UCB_EXPLORATION,
) -> AlgorithmExecutionResult:
    """
    UCB1-style arm selection.

    score_i = rewards[i] / counts[i] + c * sqrt(ln(total_count) / counts[i])

    Unvisited arms score infinity so the first of them is always chosen.
    """
    _require_parallel("UCB", rewards, counts, "rewards and counts")
    log_total = math.log(max(total_count, 1))

    def run() -> UCBResult:
        arms = []
        for i, (reward, count) in enumerate(zip(rewards, counts)):
            if count == 0:
                arms.append(ArmScore(i, 0.0, 0.0, math.inf, reward, count))
                continue
            exploitation = reward / count
            exploration_bonus = exploration * math.sqrt(log_total / count)
            arms.append(
                ArmScore(i, exploitation, exploration_bonus, exploitation + exploration_bonus, reward, count)
            )

        selected = _first_argmax([arm.ucb for arm in arms])
        return UCBResult(ucb_values=arms, selected_index=selected, selected_arm=arms[selected])

    result, elapsed = measure_execution(run)
    logger.debug(f"UCB: selected arm {result.selected_index} (score={result.selected_arm.ucb})")

    return AlgorithmExecutionResult(
        algorithm_name="Upper Confidence Bound (UCB)",
        execution_time=elapsed,
        complexity=Complexity("O(n)", "O(1)"),
        description="Multi-armed bandit algorithm balancing exploitation of well-performing questions and exploration of untested ones.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.BAR,
            data=[
                {
                    "arm": f"Q{arm.index + 1}",
                    "exploitation": arm.exploitation,
                    "exploration": arm.exploration,
                    "ucb": arm.ucb,
                    "selected": arm.index == result.selected_index,
                }
                for arm in result.ucb_values
            ],
        ),
    )


# =============================================================================
# Thompson Sampling
# =============================================================================


def thompson_sampling(
    alphas: list[float],
    betas: list[float],
    rng: random.Random | None = None,
) -> AlgorithmExecutionResult:
    """
    Draw one Beta(alpha, beta) sample per question and pick the largest.

    ``probability`` records the posterior mean alpha / (alpha + beta).
    """
    _require_parallel("ThompsonSampling", alphas, betas, "alphas and betas")
    if any(a <= 0 for a in alphas) or any(b <= 0 for b in betas):
        raise InvalidInputError("ThompsonSampling", "Beta parameters must be positive")
    rng = rng or random

    def run() -> ThompsonResult:
        samples = [
            ArmSample(
                index=i,
                alpha=alpha,
                beta=beta,
                sample=rng.betavariate(alpha, beta),
                probability=alpha / (alpha + beta),
            )
            for i, (alpha, beta) in enumerate(zip(alphas, betas))
        ]
        selected = _first_argmax([s.sample for s in samples])
        return ThompsonResult(samples=samples, selected_index=selected, selected_arm=samples[selected])

    result, elapsed = measure_execution(run)
    logger.debug(
        f"ThompsonSampling: selected arm {result.selected_index} "
        f"(sample={result.selected_arm.sample:.3f})"
    )

    return AlgorithmExecutionResult(
        algorithm_name="Thompson Sampling",
        execution_time=elapsed,
        complexity=Complexity("O(n)", "O(1)"),
        description="Bayesian approach to question selection using beta distributions to model question effectiveness.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.DISTRIBUTION,
            data=[
                {
                    "question": f"Q{s.index + 1}",
                    "alpha": s.alpha,
                    "beta": s.beta,
                    "probability": s.probability,
                    "sample": s.sample,
                    "selected": s.index == result.selected_index,
                }
                for s in result.samples
            ],
        ),
    )


# =============================================================================
# Q-Learning
# =============================================================================


def q_learning(
    q_table: list[list[float]],
    state: int,
    epsilon: float,
    rng: random.Random | None = None,
) -> AlgorithmExecutionResult:
    """
    Epsilon-greedy action selection over ``q_table[state]``.

    The table itself is owned by the caller; updates happen in
    ``SessionState.update_q_table``.
    """
    if not 0 <= state < len(q_table):
        raise InvalidInputError("QLearning", f"state {state} not in Q-table")
    state_values = list(q_table[state])
    if not state_values:
        raise InvalidInputError("QLearning", f"state {state} has no actions")
    rng = rng or random

    def run() -> QLearningResult:
        if rng.random() < epsilon:
            action = rng.randrange(len(state_values))
            action_type = ActionType.EXPLORE
        else:
            action = _first_argmax(state_values)
            action_type = ActionType.EXPLOIT
        return QLearningResult(
            state_values=state_values,
            selected_action=action,
            action_type=action_type,
            epsilon=epsilon,
            q_value=state_values[action],
        )

    result, elapsed = measure_execution(run)
    logger.debug(
        f"QLearning: {result.action_type.value} action {result.selected_action} "
        f"(Q={result.q_value:.3f})"
    )

    return AlgorithmExecutionResult(
        algorithm_name="Q-Learning",
        execution_time=elapsed,
        complexity=Complexity("O(1)", "O(|S| × |A|)"),
        description="Reinforcement learning algorithm that learns optimal question selection policy through interaction.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.HEATMAP,
            data=[
                {
                    "state": s,
                    "action": a,
                    "value": value,
                    "selected": s == state and a == result.selected_action,
                }
                for s, row in enumerate(q_table)
                for a, value in enumerate(row)
            ],
        ),
    )


# =============================================================================
# 0/1 Knapsack
# =============================================================================


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def knapsack(weights: list[int], values: list[float], capacity: int) -> AlgorithmExecutionResult:
    """
    0/1 knapsack over (items x capacity).

    ``selected_items`` is recovered by backtracking from ``dp[n][capacity]``
    and lists item indices from last to first.
    """
    if len(weights) != len(values):
        raise InvalidInputError(
            "Knapsack", f"weights and values must have equal length ({len(weights)} != {len(values)})"
        )
    if not _is_int(capacity) or not all(_is_int(w) for w in weights):
        raise InvalidInputError("Knapsack", "capacity and weights must be integers")
    if capacity < 0 or any(w < 0 for w in weights):
        raise InvalidInputError("Knapsack", "capacity and weights must be non-negative")

    def run() -> KnapsackResult:
        n = len(weights)
        dp = [[0] * (capacity + 1) for _ in range(n + 1)]
        steps = []

        for i in range(1, n + 1):
            weight, value = weights[i - 1], values[i - 1]
            for w in range(1, capacity + 1):
                if weight <= w:
                    include = value + dp[i - 1][w - weight]
                    exclude = dp[i - 1][w]
                    dp[i][w] = max(include, exclude)
                    steps.append(
                        KnapsackStep(
                            item=i - 1,
                            weight=weight,
                            value=value,
                            capacity=w,
                            include=include,
                            exclude=exclude,
                            decision="include" if include > exclude else "exclude",
                        )
                    )
                else:
                    dp[i][w] = dp[i - 1][w]

        selected = []
        w = capacity
        i = n
        while i > 0 and w > 0:
            if dp[i][w] != dp[i - 1][w]:
                selected.append(i - 1)
                w -= weights[i - 1]
            i -= 1

        return KnapsackResult(max_value=dp[n][capacity], selected_items=selected, dp=dp, steps=steps)

    result, elapsed = measure_execution(run)
    logger.debug(f"Knapsack: value={result.max_value} items={result.selected_items}")

    selected = set(result.selected_items)
    return AlgorithmExecutionResult(
        algorithm_name="Knapsack Optimization",
        execution_time=elapsed,
        complexity=Complexity("O(nW)", "O(nW)"),
        description="Dynamic programming approach to select optimal combination of questions within time/difficulty constraints.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.MATRIX,
            data=[
                {"row": i, "col": j, "value": value, "isOptimal": (i - 1) in selected}
                for i, row in enumerate(result.dp)
                for j, value in enumerate(row)
            ],
        ),
    )


# =============================================================================
# A* Learning Path Search
# =============================================================================


def a_star(
    start: int,
    goal: int,
    heuristic: Callable[[int], float] | None = None,
    step_cap: int = ASTAR_STEP_CAP,
) -> AlgorithmExecutionResult:
    """
    A* over the integer line where each node links to node - 1 and node + 1.

    Nodes are restricted to ``[0, goal + 2]``. The search stops once more
    than ``step_cap`` expansions are recorded, returning an empty path and
    cost -1 when the goal was not reached.
    """
    if heuristic is None:
        heuristic = lambda node: abs(goal - node)  # noqa: E731

    def run() -> AStarResult:
        open_set = [start]
        closed_set: list[int] = []
        g_score = {start: 0}
        f_score = {start: heuristic(start)}
        came_from: dict[int, int] = {}
        steps = []

        while open_set:
            current = min(open_set, key=lambda node: f_score.get(node, math.inf))
            steps.append(
                AStarStep(
                    current=current,
                    open_set=list(open_set),
                    closed_set=list(closed_set),
                    g_score=g_score.get(current),
                    f_score=f_score.get(current),
                )
            )

            if current == goal:
                path = [current]
                while path[0] in came_from:
                    path.insert(0, came_from[path[0]])
                return AStarResult(path=path, steps=steps, cost=g_score[current])

            open_set.remove(current)
            closed_set.append(current)

            neighbors = [
                n for n in (current - 1, current + 1) if 0 <= n <= goal + ASTAR_NEIGHBOR_MARGIN
            ]
            for neighbor in neighbors:
                if neighbor in closed_set:
                    continue
                tentative = g_score.get(current, 0) + 1
                if neighbor not in open_set:
                    open_set.append(neighbor)
                elif tentative >= g_score.get(neighbor, math.inf):
                    continue
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                f_score[neighbor] = tentative + heuristic(neighbor)

            if len(steps) > step_cap:
                break

        return AStarResult(path=[], steps=steps, cost=-1)

    result, elapsed = measure_execution(run)
    if result.path:
        logger.debug(f"AStar: path {result.path} (cost={result.cost})")
    else:
        logger.debug(f"AStar: goal {goal} not reached after {len(result.steps)} expansions")

    expanded_g = {}
    for step in result.steps:
        expanded_g.setdefault(step.current, step.g_score or 0)
    nodes = [
        {
            "id": node,
            "type": "closed" if node in step.closed_set else "open",
            "gScore": expanded_g.get(node, 0),
        }
        for step in result.steps
        for node in step.open_set + step.closed_set
    ]

    return AlgorithmExecutionResult(
        algorithm_name="A* Search",
        execution_time=elapsed,
        complexity=Complexity("O(b^d)", "O(b^d)"),
        description="Heuristic search algorithm for finding optimal learning paths through the question space.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.GRAPH,
            data={"nodes": nodes, "path": result.path},
        ),
    )
