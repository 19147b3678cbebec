"""
Knowledge Tracing Algorithms.

Estimate what the learner knows from their answers:
- BKT: Bayesian posterior over a binary mastery state
- DKT: untrained single-hidden-layer forward pass (illustrative only)
- DP: correct-answer reachability table and answer streaks
- HMM: Viterbi-style best state path over a capped observation window

The DKT and HMM routines are deliberately simplified toy computations;
there is no training step.
"""

from __future__ import annotations

import math
from typing import Sequence

from loguru import logger

from .errors import InvalidInputError
from .models import (
    AlgorithmExecutionResult,
    BKTResult,
    Complexity,
    DKTPrediction,
    DKTResult,
    DPResult,
    HiddenState,
    HMMResult,
    MatrixCell,
    NetworkLayer,
    ViterbiStep,
    Visualization,
    VisualizationType,
)
from .timing import measure_execution

DKT_MAX_HIDDEN = 10
HMM_MAX_STEPS = 5
HMM_DEFAULT_TRANSITION = 0.5


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


# =============================================================================
# Bayesian Knowledge Tracing
# =============================================================================


def bkt(
    p_know: float,
    p_learn: float,
    p_guess: float,
    p_slip: float,
    correct: bool,
) -> AlgorithmExecutionResult:
    """
    One BKT observation update.

    P(correct) = P(L) * (1 - P(S)) + (1 - P(L)) * P(G)
    Correct:   P(L|obs) = P(L) * (1 - P(S)) / P(correct)
    Incorrect: P(L|obs) = P(L) * P(S) / (1 - P(correct))
    Then:      P(L_next) = P(L|obs) + (1 - P(L|obs)) * P(T)

    A zero denominator means the observation was impossible under the
    model; the prior is kept instead of dividing by zero.
    """

    def run() -> BKTResult:
        p_correct = p_know * (1 - p_slip) + (1 - p_know) * p_guess

        if correct:
            numerator, denominator = p_know * (1 - p_slip), p_correct
        else:
            numerator, denominator = p_know * p_slip, 1 - p_correct

        if denominator == 0:
            logger.warning(f"BKT: degenerate P(correct)={p_correct}, keeping prior")
            p_know_after = _clamp01(p_know)
        else:
            p_know_after = _clamp01(numerator / denominator)

        p_know_next = _clamp01(p_know_after + (1 - p_know_after) * p_learn)
        return BKTResult(
            p_know_before=p_know,
            p_know_after=p_know_after,
            p_know_next=p_know_next,
            p_correct=p_correct,
            evidence="correct" if correct else "incorrect",
            parameters={"p_learn": p_learn, "p_guess": p_guess, "p_slip": p_slip},
        )

    result, elapsed = measure_execution(run)
    logger.debug(
        f"BKT: P(L) {result.p_know_before:.3f} -> {result.p_know_after:.3f} "
        f"(next {result.p_know_next:.3f}, {result.evidence})"
    )

    return AlgorithmExecutionResult(
        algorithm_name="Bayesian Knowledge Tracing (BKT)",
        execution_time=elapsed,
        complexity=Complexity("O(1)", "O(1)"),
        description="Probabilistic model tracking student knowledge state based on correct/incorrect responses.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.PROBABILITY,
            data=[
                {"state": "Before", "probability": result.p_know_before * 100, "type": "knowledge"},
                {"state": "After", "probability": result.p_know_after * 100, "type": "knowledge"},
                {"state": "Next", "probability": result.p_know_next * 100, "type": "prediction"},
            ],
        ),
    )


# =============================================================================
# Deep Knowledge Tracing (simplified)
# =============================================================================


def dkt(features: list[float], weights: list[float]) -> AlgorithmExecutionResult:
    """
    Illustrative forward pass standing in for a trained DKT network.

    hidden[i] = tanh(features[i % |F|] * weights[i % |W|]) for i < min(|F|, 10)
    knowledge = sigmoid(mean(hidden))
    """
    if features and not weights:
        raise InvalidInputError("DKT", "weights are required when features are given")

    def run() -> DKTResult:
        hidden_size = min(len(features), DKT_MAX_HIDDEN)
        hidden = [
            math.tanh(features[i % len(features)] * weights[i % len(weights)])
            for i in range(hidden_size)
        ]
        output = sum(hidden) / hidden_size if hidden_size else 0.0
        knowledge_state = 1 / (1 + math.exp(-output))

        return DKTResult(
            knowledge_state=knowledge_state,
            layers=[
                NetworkLayer("Input", list(features)),
                NetworkLayer("Hidden", list(hidden)),
                NetworkLayer("Output", [knowledge_state]),
            ],
            hidden_activations=hidden,
            confidence=abs(0.5 - knowledge_state) * 2,
        )

    result, elapsed = measure_execution(run)
    logger.debug(f"DKT: knowledge={result.knowledge_state:.3f} confidence={result.confidence:.3f}")

    return AlgorithmExecutionResult(
        algorithm_name="Deep Knowledge Tracing (DKT)",
        execution_time=elapsed,
        complexity=Complexity("O(n)", "O(n)"),
        description="Neural network-based approach to model complex patterns in student learning sequences.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.NETWORK,
            data={
                "layers": [{"name": layer.name, "values": layer.values} for layer in result.layers],
                "connections": [
                    {"from": f"input_{i % len(features)}", "to": f"hidden_{i}", "weight": activation}
                    for i, activation in enumerate(result.hidden_activations)
                ],
            },
        ),
    )


def dkt_running_average(targets: Sequence[float]) -> DKTPrediction:
    """Success prediction from the mean of past targets (0.5 with no history)."""
    average = sum(targets) / len(targets) if targets else 0.5
    return DKTPrediction(predictions=[_clamp01(average)])


# =============================================================================
# Dynamic Programming knowledge tracking
# =============================================================================


def build_reachability_matrix(correct: Sequence[bool]) -> list[list[int]]:
    """
    Reachability of correct-answer counts.

    ``matrix[s][q] == 1`` when exactly ``s`` correct answers are possible
    after the first ``q`` questions: state s carries over on any answer and
    advances to s + 1 when question q was answered correctly.
    """
    n = len(correct)
    matrix = [[0] * (n + 1) for _ in range(n + 1)]
    matrix[0][0] = 1
    for q in range(1, n + 1):
        for s in range(q + 1):
            if matrix[s][q - 1]:
                matrix[s][q] = 1
            if s > 0 and matrix[s - 1][q - 1] and correct[q - 1]:
                matrix[s][q] = 1
    return matrix


def _matrix_visualization(matrix: list[list[int]], path: list[MatrixCell]) -> Visualization:
    on_path = {(cell.row, cell.col) for cell in path}
    return Visualization(
        type=VisualizationType.MATRIX,
        data=[
            {"row": i, "col": j, "value": value, "isOptimal": (i, j) in on_path}
            for i, row in enumerate(matrix)
            for j, value in enumerate(row)
        ],
    )


def dp(matrix: list[list[int]]) -> AlgorithmExecutionResult:
    """Echo a caller-built DP table for visualization (no path, max 0)."""
    result, elapsed = measure_execution(
        lambda: DPResult(dp=matrix, path=[], max_value=0)
    )

    return AlgorithmExecutionResult(
        algorithm_name="Dynamic Programming Knowledge Tracking",
        execution_time=elapsed,
        complexity=Complexity("O(n²)", "O(n²)"),
        description="Possible correct answers DP matrix.",
        result=result,
        visualization=_matrix_visualization(matrix, []),
    )


def dp_streak(correct: Sequence[bool]) -> AlgorithmExecutionResult:
    """
    Build the reachability table and track answer streaks.

    ``max_value`` is the longest run of consecutive correct answers.
    ``path`` follows the learner's actual trajectory through the table:
    one cell per question prefix (row = correct so far, col = questions
    seen, value = current streak).
    """

    def run() -> DPResult:
        matrix = build_reachability_matrix(correct)
        streak = 0
        best = 0
        correct_so_far = 0
        path = [MatrixCell(row=0, col=0, value=0)]
        for q, is_correct in enumerate(correct, start=1):
            streak = streak + 1 if is_correct else 0
            correct_so_far += 1 if is_correct else 0
            best = max(best, streak)
            path.append(MatrixCell(row=correct_so_far, col=q, value=streak))
        return DPResult(dp=matrix, path=path, max_value=best)

    result, elapsed = measure_execution(run)
    logger.debug(f"DP: max streak {result.max_value} over {len(correct)} answers")

    return AlgorithmExecutionResult(
        algorithm_name="Dynamic Programming Knowledge Tracking",
        execution_time=elapsed,
        complexity=Complexity("O(n²)", "O(n²)"),
        description="Possible correct answers DP matrix with longest correct-answer streak.",
        result=result,
        visualization=_matrix_visualization(result.dp, result.path),
    )


# =============================================================================
# Hidden Markov Model (Viterbi)
# =============================================================================


def _transition(transitions: list[list[float]], prev: int, curr: int) -> float:
    if prev < len(transitions) and curr < len(transitions[prev]):
        value = transitions[prev][curr]
        if value is not None:
            return value
    return HMM_DEFAULT_TRANSITION


def hmm(
    observations: list[int],
    states: list[int],
    transitions: list[list[float]],
    max_steps: int = HMM_MAX_STEPS,
) -> AlgorithmExecutionResult:
    """
    Viterbi-style decoding over at most ``max_steps`` observations.

    Starts from a uniform distribution over states; each step extends the
    best predecessor path of every state using ``transitions[prev][curr]``
    (0.5 where the table has no entry).
    """
    if not states:
        raise InvalidInputError("HMM", "at least one hidden state is required")

    def run() -> HMMResult:
        if not observations:
            return HMMResult(best_path=[], probability=0.0, steps=[], state_sequence=[])

        num_states = len(states)
        prev_paths = [[i] for i in range(num_states)]
        prev_probs = [1 / num_states] * num_states
        steps = [
            ViterbiStep(
                observation=observations[0],
                paths=[list(p) for p in prev_paths],
                probabilities=list(prev_probs),
            )
        ]

        for t in range(1, min(len(observations), max_steps)):
            curr_paths = []
            curr_probs = []
            for state in range(num_states):
                candidates = [
                    prob * _transition(transitions, prev_state, state)
                    for prev_state, prob in enumerate(prev_probs)
                ]
                best_prob = max(candidates)
                best_prev = candidates.index(best_prob)
                curr_probs.append(best_prob)
                curr_paths.append(prev_paths[best_prev] + [state])

            steps.append(
                ViterbiStep(
                    observation=observations[t],
                    paths=[list(p) for p in curr_paths],
                    probabilities=list(curr_probs),
                )
            )
            prev_paths, prev_probs = curr_paths, curr_probs

        final_prob = max(prev_probs)
        best_path = prev_paths[prev_probs.index(final_prob)]
        return HMMResult(
            best_path=best_path,
            probability=final_prob,
            steps=steps,
            state_sequence=[HiddenState(state=s, name=f"Knowledge_{s}") for s in best_path],
        )

    result, elapsed = measure_execution(run)
    logger.debug(f"HMM: best path {result.best_path} (p={result.probability:.4f})")

    return AlgorithmExecutionResult(
        algorithm_name="Hidden Markov Model (HMM)",
        execution_time=elapsed,
        complexity=Complexity("O(T × N²)", "O(T × N)"),
        description="Probabilistic model for inferring hidden knowledge states from observable student responses.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.SEQUENCE,
            data={
                "observations": list(observations),
                "states": [{"state": h.state, "name": h.name} for h in result.state_sequence],
                "transitions": transitions,
                "bestPath": result.best_path,
            },
        ),
    )
