"""
Human-readable explanations of algorithm results.

One formatter per family turns a result payload into the sentence shown
next to each question. Unknown algorithm names, or payloads missing the
expected fields, degrade to a generic sentence instead of raising.
"""

from __future__ import annotations

from typing import Any

from .names import AlgorithmFamily, AlgorithmName


def _num(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _join(values: list[Any], sep: str = ", ") -> str:
    return sep.join(_num(v) for v in values)


def _get(result: Any, field: str, default: Any) -> Any:
    """Read a payload field; falsy values fall back to the default."""
    if result is None:
        return default
    if isinstance(result, dict):
        value = result.get(field)
    else:
        value = getattr(result, field, None)
    return value if value else default


def _label(algorithm: AlgorithmName | str) -> str:
    return algorithm.value if isinstance(algorithm, AlgorithmName) else str(algorithm)


# Generic sentences used when no algorithm-specific wording applies
_FALLBACKS = {
    AlgorithmFamily.QUESTION_SELECTION: "Question {number} was selected using {label} algorithm.",
    AlgorithmFamily.KNOWLEDGE_TRACING: "Knowledge tracing using {label} algorithm.",
    AlgorithmFamily.REVIEW_SCHEDULING: "Review scheduling using {label} algorithm.",
    AlgorithmFamily.REWARD_SYSTEM: "Reward system using {label} algorithm.",
}


# =============================================================================
# Question Selection
# =============================================================================


def get_question_selection_explanation(
    algorithm: AlgorithmName | str, result: Any, question_index: int
) -> str:
    number = question_index + 1
    name = AlgorithmName.coerce(algorithm)

    if name is AlgorithmName.Q_LEARNING:
        action_type = _get(result, "action_type", "exploit")
        action_type = getattr(action_type, "value", action_type)
        q_value = _get(result, "q_value", 0)
        return f"Q-Learning chose question {number} using {action_type} strategy. Q-value: {q_value:.3f}"

    if name is AlgorithmName.KNAPSACK:
        max_value = _get(result, "max_value", 0)
        selected = _get(result, "selected_items", [])
        return (
            f"Knapsack optimization selected question {number} with total value {max_value:.1f}. "
            f"Selected {len(selected)} questions."
        )

    if name is AlgorithmName.UCB:
        arm = _get(result, "selected_arm", None)
        exploitation = _get(arm, "exploitation", 0)
        exploration = _get(arm, "exploration", 0)
        return (
            f"UCB selected question {number} with exploitation: {exploitation:.3f}, "
            f"exploration: {exploration:.3f}"
        )

    if name is AlgorithmName.THOMPSON_SAMPLING:
        arm = _get(result, "selected_arm", None)
        probability = _get(arm, "probability", 0)
        return f"Thompson Sampling chose question {number} with probability {probability * 100:.1f}%"

    if name is AlgorithmName.A_STAR:
        path = _get(result, "path", [])
        if path:
            return (
                f"A* reached question {number} along path [{_join(path, ' -> ')}] "
                f"with cost {_num(_get(result, 'cost', 0))}"
            )
        steps = _get(result, "steps", [])
        return f"A* could not reach a learning path for question {number} within {len(steps)} expansions."

    return _FALLBACKS[AlgorithmFamily.QUESTION_SELECTION].format(number=number, label=_label(algorithm))


# =============================================================================
# Knowledge Tracing
# =============================================================================


def get_knowledge_tracing_explanation(algorithm: AlgorithmName | str, result: Any, is_correct: bool) -> str:
    name = AlgorithmName.coerce(algorithm)

    if name is AlgorithmName.DKT:
        predictions = _get(result, "predictions", [])
        prediction = predictions[0] if predictions else 0.5
        outlook = "likely to succeed" if prediction > 0.5 else "likely to struggle"
        miss = abs(prediction - (1 if is_correct else 0))
        return (
            f"DKT predicted {prediction * 100:.1f}% chance of success ({outlook}). "
            f"Prediction accuracy: {(1 - miss) * 100:.1f}%"
        )

    if name is AlgorithmName.DP:
        max_value = _get(result, "max_value", 0)
        path = _get(result, "path", [])
        cells = " -> ".join(
            f"({_get(c, 'row', 0)},{_get(c, 'col', 0)}:{_num(_get(c, 'value', 0))})" for c in path
        )
        return f"DP max streak: {_num(max_value)}. Path: [{cells}]"

    if name is AlgorithmName.BKT:
        before = _get(result, "p_know_before", 0)
        after = _get(result, "p_know_after", 0)
        following = _get(result, "p_know_next", 0)
        outcome = "a correct" if is_correct else "an incorrect"
        return (
            f"BKT updated mastery from {before * 100:.1f}% to {after * 100:.1f}% after {outcome} answer. "
            f"Estimated mastery next question: {following * 100:.1f}%"
        )

    if name is AlgorithmName.HMM:
        best_path = _get(result, "best_path", [])
        probability = _get(result, "probability", 0)
        return f"HMM most likely knowledge path: [{_join(best_path, ' -> ')}] (probability {probability:.4f})"

    return _FALLBACKS[AlgorithmFamily.KNOWLEDGE_TRACING].format(label=_label(algorithm))


# =============================================================================
# Review Scheduling
# =============================================================================


def get_review_scheduler_explanation(algorithm: AlgorithmName | str, result: Any) -> str:
    name = AlgorithmName.coerce(algorithm)

    if name is AlgorithmName.SM2:
        new_interval = _get(result, "new_interval", 1)
        easiness = _get(result, "easiness_factor", 2.5)
        repetitions = _get(result, "repetitions", 0)
        return (
            f"SM2 scheduled next review in {new_interval} days. "
            f"Easiness factor: {easiness:.2f}, Repetitions: {repetitions}"
        )

    if name is AlgorithmName.MIN_HEAP:
        heap = _get(result, "heap", [])
        order = _get(result, "scheduling_order", [])
        return f"Min Heap priorities: [{_join(heap)}]. Next review order: [{_join(order)}]"

    if name is AlgorithmName.FSRS:
        retrievability = _get(result, "retrievability", 0)
        new_stability = _get(result, "new_stability", 1)
        return (
            f"FSRS calculated {retrievability * 100:.1f}% retrievability. "
            f"New stability: {new_stability:.2f}"
        )

    if name is AlgorithmName.ADAPTIVE_ROUND_ROBIN:
        slices = _get(result, "execution_order", [])
        total = _get(result, "total_time", 0)
        quantum = _get(result, "adaptive_quantum", 0)
        return (
            f"Adaptive Round Robin planned {len(slices)} review slices over {total:.1f} minutes "
            f"(quantum {quantum:.2f})"
        )

    return _FALLBACKS[AlgorithmFamily.REVIEW_SCHEDULING].format(label=_label(algorithm))


# =============================================================================
# Reward System
# =============================================================================


def get_reward_system_explanation(algorithm: AlgorithmName | str, result: Any, is_correct: bool) -> str:
    name = AlgorithmName.coerce(algorithm)

    if name is AlgorithmName.VARIABLE_RATIO:
        should_reward = _get(result, "should_reward", False)
        history = _get(result, "reinforcement_history", [])
        rewarded = sum(1 for h in history if _get(h, "rewarded", False))
        return (
            f"Variable ratio reinforcement {'triggered' if should_reward else 'not triggered'}. "
            f"Total rewards: {rewarded}/{len(history)}"
        )

    if name is AlgorithmName.FENWICK_TREE:
        total = _get(result, "total_reward", 0)
        prefix_sums = _get(result, "prefix_sums", [])
        return f"Fenwick Tree total reward: {_num(total)}. Prefix sums: [{_join(prefix_sums)}]"

    if name is AlgorithmName.GREEDY:
        total_reward = _get(result, "total_reward", 0)
        total_time = _get(result, "total_time", 0)
        average = _get(result, "average_ratio", 0)
        return (
            f"Greedy reward total: {_num(total_reward)} over {_num(total_time)} time units "
            f"(average ratio {average:.2f})"
        )

    if name is AlgorithmName.MDP:
        optimal = _get(result, "optimal_value", 0)
        iterations = _get(result, "iterations", [])
        return f"MDP optimal state value: {optimal:.2f} after {len(iterations)} iterations"

    return _FALLBACKS[AlgorithmFamily.REWARD_SYSTEM].format(label=_label(algorithm))


# =============================================================================
# Family dispatch
# =============================================================================


def explain(
    algorithm: AlgorithmName | str,
    result: Any,
    question_index: int = 0,
    is_correct: bool = False,
) -> str:
    """Route to the formatter of the algorithm's family."""
    name = AlgorithmName.coerce(algorithm)
    if name is None:
        return fallback_explanation(algorithm)

    family = name.family
    if family is AlgorithmFamily.QUESTION_SELECTION:
        return get_question_selection_explanation(name, result, question_index)
    if family is AlgorithmFamily.KNOWLEDGE_TRACING:
        return get_knowledge_tracing_explanation(name, result, is_correct)
    if family is AlgorithmFamily.REVIEW_SCHEDULING:
        return get_review_scheduler_explanation(name, result)
    return get_reward_system_explanation(name, result, is_correct)


def fallback_explanation(algorithm: AlgorithmName | str, question_index: int = 0) -> str:
    """Generic sentence for an algorithm that produced no result."""
    name = AlgorithmName.coerce(algorithm)
    if name is None:
        return f"Result computed using {_label(algorithm)} algorithm."
    return _FALLBACKS[name.family].format(number=question_index + 1, label=_label(name))
