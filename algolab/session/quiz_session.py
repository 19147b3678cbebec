"""
Quiz Session - headless test flow around the algorithm library.

Drives one test from question selection to completion:
1. generate_test(): pick questions with the configured selector and run
   one algorithm per family for the initial dashboard
2. answer(): grade, update Q-table / priorities / DKT history / BKT prior
   and explain every family's view of the answer
3. complete(): rerun the families on the final answers and summarise

Algorithm failures never break the flow: an InvalidInputError is logged
and the affected explanation falls back to the generic sentence.
"""

from __future__ import annotations

import random
import time
from typing import Callable

from loguru import logger

from config import Settings, get_settings
from algolab.algorithms import (
    AlgorithmExecutionResult,
    AlgorithmName,
    InvalidInputError,
    ReviewTask,
    a_star,
    adaptive_round_robin,
    bkt,
    dkt,
    dkt_running_average,
    dp_streak,
    explain,
    fallback_explanation,
    fenwick_tree,
    fsrs,
    greedy,
    hmm,
    knapsack,
    mdp,
    min_heap,
    q_learning,
    sm2,
    thompson_sampling,
    ucb,
    variable_ratio,
)
from algolab.algorithms.models import Activity

from .bank import ordered_pool
from .models import (
    AlgorithmInsights,
    AlgorithmSelection,
    AnswerFeedback,
    AttemptType,
    Question,
    TestAttempt,
)
from .state import SessionState

ROUND_ROBIN_QUANTUM = 2.0
HMM_STATES = [0, 1]  # 0 = not yet known, 1 = known
HMM_TRANSITIONS = [[0.7, 0.3], [0.2, 0.8]]


class QuizSession:
    """
    One test over a question pool.

    Args:
        questions: Full question bank
        selection: Algorithm per family (defaults to QLearning/MinHeap/FenwickTree/BKT)
        settings: Settings instance (uses cached settings if None)
        state: Carried-over session state (fresh if None)
        previous_answers: Earlier answers keyed by question id, used as
            bandit / knapsack evidence when picking questions
        review_mode: Mark the attempt as a spaced-repetition review
        rng: Random source (seeded from settings if None)
    """

    def __init__(
        self,
        questions: list[Question],
        selection: AlgorithmSelection | None = None,
        settings: Settings | None = None,
        state: SessionState | None = None,
        previous_answers: dict[str, int] | None = None,
        review_mode: bool = False,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.pool = ordered_pool(questions)
        self.selection = selection or AlgorithmSelection()
        self.state = state or SessionState()
        self.previous_answers = previous_answers or {}
        self.review_mode = review_mode
        self.rng = rng or random.Random(self.settings.random_seed)

        self.test_questions: list[Question] = []
        self.selected_indices: list[int] = []
        self.current_index = 0
        self.execution_results: list[AlgorithmExecutionResult] = []
        self._started_at: float | None = None

    # =========================================================================
    # Public flow
    # =========================================================================

    def generate_test(self) -> list[AlgorithmExecutionResult]:
        """Select the test questions and compute the initial family results."""
        if not self.pool:
            raise ValueError("Question pool is empty")

        prior = [self.previous_answers.get(q.id) for q in self.pool]
        selector_result = self._select_questions(prior)

        self.current_index = 0
        self.state.answers = [None] * len(self.test_questions)
        self.state.reset_priorities(len(self.test_questions), self.settings.default_priority)
        self._started_at = time.monotonic()

        results = [selector_result] + self._run_families(self.state.answers, current=None)
        self.execution_results = [r for r in results if r is not None]

        logger.info(
            f"Generated test with {len(self.test_questions)} questions using "
            f"{self.selection.question_selection.value}"
        )
        return self.execution_results

    @property
    def current_question(self) -> Question | None:
        if self.current_index < len(self.test_questions):
            return self.test_questions[self.current_index]
        return None

    @property
    def finished(self) -> bool:
        return bool(self.test_questions) and self.current_index >= len(self.test_questions)

    def answer(self, choice: int) -> AnswerFeedback:
        """Grade the current question and update per-test state."""
        question = self.current_question
        if question is None:
            raise RuntimeError("No question to answer; generate a test first")

        index = self.current_index
        correct = question.is_correct(choice)
        self.state.answers[index] = choice

        if self.selection.question_selection is AlgorithmName.Q_LEARNING and self.selected_indices:
            config = self.settings.get_q_learning_config()
            self.state.update_q_table(
                state=0,
                action=self.selected_indices[index],
                reward=1 if correct else -1,
                next_state=0,
                alpha=config["alpha"],
                gamma=config["gamma"],
            )

        self.state.record_dkt(index, correct)
        self.state.update_priority(
            index, correct, len(self.test_questions), self.settings.default_priority
        )

        insights = self._insights(index, correct)
        self.current_index += 1
        logger.info(f"Question {index + 1}: {'correct' if correct else 'incorrect'}")

        return AnswerFeedback(
            question_index=index,
            is_correct=correct,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
            insights=insights,
            finished=self.finished,
        )

    def complete(self) -> TestAttempt:
        """Rerun every family on the final answers and build the attempt."""
        answers = list(self.state.answers)
        final = [self._selection_over(self.test_questions, answers)] + self._run_families(
            answers, current=None
        )
        self.execution_results = [r for r in final if r is not None]

        score = sum(1 for q, a in zip(self.test_questions, answers) if q.is_correct(a))
        elapsed = time.monotonic() - self._started_at if self._started_at else 0.0

        logger.info(f"Test complete: {score}/{len(self.test_questions)} in {elapsed:.1f}s")
        return TestAttempt(
            questions=list(self.test_questions),
            answers=answers,
            score=score,
            time_spent=elapsed,
            algorithms_used=self.selection,
            execution_times={r.algorithm_name: r.execution_time for r in self.execution_results},
            test_type=AttemptType.SPACED_REPETITION if self.review_mode else AttemptType.NORMAL,
        )

    # =========================================================================
    # Question selection
    # =========================================================================

    def _select_questions(self, prior: list[int | None]) -> AlgorithmExecutionResult | None:
        limit = min(self.settings.questions_per_test, len(self.pool))
        name = self.selection.question_selection

        if name is AlgorithmName.Q_LEARNING:
            self.selected_indices = self._epsilon_greedy_draws(limit)
            result = self._selection_over(self.pool, prior)
        else:
            result = self._selection_over(self.pool, prior)
            self.selected_indices = self._indices_from(name, result, limit)

        self.test_questions = [self.pool[i] for i in self.selected_indices]
        return result

    def _epsilon_greedy_draws(self, limit: int) -> list[int]:
        """Draw distinct actions from Q-table row 0 with epsilon-greedy."""
        q_values = self.state.ensure_q_table(len(self.pool))[0]
        epsilon = self.settings.q_learning_epsilon
        used: list[int] = []
        max_tries = 10 * len(q_values)

        for _ in range(limit):
            tries = 0
            while True:
                if self.rng.random() < epsilon:
                    action = self.rng.randrange(len(q_values))
                else:
                    action = max(range(len(q_values)), key=lambda i: (q_values[i], -i))
                tries += 1
                if action not in used or tries >= max_tries:
                    break
            if action in used:
                # Retry budget exhausted; take the first unused question
                action = next(i for i in range(len(q_values)) if i not in used)
            used.append(action)
        return used

    def _indices_from(
        self, name: AlgorithmName, result: AlgorithmExecutionResult | None, limit: int
    ) -> list[int]:
        """Turn a selector result into distinct pool indices, topped up in pool order."""
        ranked: list[int] = []
        if result is not None:
            payload = result.result
            # UCB and Thompson only feed the dashboard; the test keeps pool order
            if name is AlgorithmName.KNAPSACK:
                ranked = list(payload.selected_items)
            elif name is AlgorithmName.A_STAR:
                ranked = list(payload.path)

        indices: list[int] = []
        for i in ranked + list(range(len(self.pool))):
            if 0 <= i < len(self.pool) and i not in indices:
                indices.append(i)
            if len(indices) == limit:
                break
        return indices

    def _selection_over(
        self, questions: list[Question], answers: list[int | None]
    ) -> AlgorithmExecutionResult | None:
        """Run the configured selector with evidence from ``answers``."""
        name = self.selection.question_selection
        correct = [q.is_correct(a) for q, a in zip(questions, answers)]

        if name is AlgorithmName.Q_LEARNING:
            self.state.ensure_q_table(len(self.pool))
            return self._safe(
                name,
                lambda: q_learning(self.state.q_table, 0, self.settings.q_learning_epsilon, self.rng),
            )
        if name is AlgorithmName.KNAPSACK:
            return self._safe(
                name,
                lambda: knapsack(
                    [q.difficulty_weight for q in questions],
                    [1 if c else 0 for c in correct],
                    self.settings.knapsack_capacity,
                ),
            )
        if name is AlgorithmName.UCB:
            counts = [0 if a is None else 1 for a in answers]
            return self._safe(
                name,
                lambda: ucb(
                    [1 if c else 0 for c in correct],
                    counts,
                    sum(counts) or 1,
                    self.settings.ucb_exploration,
                ),
            )
        if name is AlgorithmName.THOMPSON_SAMPLING:
            return self._safe(
                name,
                lambda: thompson_sampling(
                    [2 if c else 1 for c in correct],
                    [1 if c else 2 for c in correct],
                    self.rng,
                ),
            )
        return self._safe(
            name,
            lambda: a_star(0, max(len(questions), 1) - 1, step_cap=self.settings.astar_step_cap),
        )

    # =========================================================================
    # Family runs
    # =========================================================================

    def _run_families(
        self, answers: list[int | None], current: int | None
    ) -> list[AlgorithmExecutionResult | None]:
        return [
            self._review_result(),
            self._reward_result(answers, current),
            self._tracing_result(answers, current),
        ]

    def _review_result(self) -> AlgorithmExecutionResult | None:
        name = self.selection.review_scheduling
        size = len(self.test_questions)

        if name is AlgorithmName.MIN_HEAP:
            priorities = (
                list(self.state.priorities)
                if len(self.state.priorities) == size
                else [self.settings.default_priority] * size
            )
            return self._safe(name, lambda: min_heap(priorities))
        if name is AlgorithmName.SM2:
            s = self.settings
            return self._safe(name, lambda: sm2(s.sm2_difficulty, s.sm2_interval, s.sm2_repetitions))
        if name is AlgorithmName.FSRS:
            s = self.settings
            return self._safe(name, lambda: fsrs(s.fsrs_stability, s.fsrs_difficulty))
        tasks = [ReviewTask(remaining_time=q.difficulty_weight * 2) for q in self.test_questions]
        return self._safe(name, lambda: adaptive_round_robin(tasks, ROUND_ROBIN_QUANTUM, self.rng))

    def _reward_result(
        self, answers: list[int | None], current: int | None
    ) -> AlgorithmExecutionResult | None:
        name = self.selection.reward_system
        rewards = [1 if q.is_correct(a) else 0 for q, a in zip(self.test_questions, answers)]

        if name is AlgorithmName.FENWICK_TREE:
            if current is None:
                return self._safe(name, lambda: fenwick_tree(rewards, 0, 0))
            base = list(rewards)
            base[current] = 0
            return self._safe(name, lambda: fenwick_tree(base, current, rewards[current]))
        if name is AlgorithmName.VARIABLE_RATIO:
            responses = sum(1 for a in answers if a is not None)
            return self._safe(
                name,
                lambda: variable_ratio(responses, self.settings.variable_ratio_schedule, self.rng),
            )
        if name is AlgorithmName.GREEDY:
            return self._safe(name, lambda: greedy([Activity(reward=r, time=1) for r in rewards]))
        policy = [min(i + 1, len(rewards) - 1) for i in range(len(rewards))]
        return self._safe(
            name,
            lambda: mdp(
                [[i] for i in range(len(rewards))],
                rewards,
                policy,
                self.settings.mdp_discount,
                self.settings.mdp_iterations,
            ),
        )

    def _tracing_result(
        self, answers: list[int | None], current: int | None
    ) -> AlgorithmExecutionResult | None:
        name = self.selection.knowledge_tracing
        answered = [q.is_correct(a) for q, a in zip(self.test_questions, answers) if a is not None]

        if name is AlgorithmName.DP:
            return self._safe(name, lambda: dp_streak(answered))
        if name is AlgorithmName.DKT:
            return self._safe(name, lambda: dkt(self.state.dkt_inputs, self.state.dkt_targets))
        if name is AlgorithmName.HMM:
            return self._safe(
                name,
                lambda: hmm(
                    [int(c) for c in answered],
                    HMM_STATES,
                    HMM_TRANSITIONS,
                    self.settings.hmm_max_steps,
                ),
            )

        params = self.settings.get_bkt_params()
        if self.state.p_know is not None:
            params["p_know"] = self.state.p_know
        correct = False
        if current is not None:
            correct = self.test_questions[current].is_correct(answers[current])
        result = self._safe(name, lambda: bkt(correct=correct, **params))
        if result is not None and current is not None:
            self.state.p_know = result.result.p_know_next
        return result

    # =========================================================================
    # Insights
    # =========================================================================

    def _insights(self, index: int, correct: bool) -> AlgorithmInsights:
        answers = self.state.answers
        selection = self._selection_over(self.test_questions, answers)
        review = self._review_result()
        reward = self._reward_result(answers, index)

        tracing_name = self.selection.knowledge_tracing
        if tracing_name is AlgorithmName.DKT:
            tracing_text = explain(
                tracing_name, dkt_running_average(self.state.dkt_targets), is_correct=correct
            )
        else:
            tracing_text = _describe(
                tracing_name, self._tracing_result(answers, index), is_correct=correct
            )

        return AlgorithmInsights(
            question_selection=_describe(
                self.selection.question_selection, selection, question_index=index
            ),
            review_scheduler=_describe(self.selection.review_scheduling, review),
            reward_system=_describe(self.selection.reward_system, reward, is_correct=correct),
            knowledge_tracing=tracing_text,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _safe(
        self, name: AlgorithmName, run: Callable[[], AlgorithmExecutionResult]
    ) -> AlgorithmExecutionResult | None:
        try:
            return run()
        except InvalidInputError as e:
            logger.warning(f"{name.value} skipped: {e}")
            return None


def _describe(
    name: AlgorithmName,
    result: AlgorithmExecutionResult | None,
    question_index: int = 0,
    is_correct: bool = False,
) -> str:
    """Explain a result, or fall back to the generic sentence when the run failed."""
    if result is None:
        return fallback_explanation(name, question_index)
    return explain(name, result.result, question_index=question_index, is_correct=is_correct)
