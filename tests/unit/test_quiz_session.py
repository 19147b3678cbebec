"""
Unit tests for QuizSession.

Tests:
- Question selection per selector (Q-learning, knapsack, bandits, A*)
- Per-answer state updates and insights
- Completion summary
- Fallback explanations when an algorithm rejects its input
"""

import random

import pytest

from config import Settings
from algolab.algorithms import AlgorithmName
from algolab.session import AlgorithmSelection, AttemptType, QuizSession, SessionState


def _settings(**overrides):
    return Settings(artificial_delay_enabled=False, _env_file=None, **overrides)


def _session(questions, settings=None, seed=1, **selection):
    return QuizSession(
        questions,
        selection=AlgorithmSelection(**selection),
        settings=settings or _settings(),
        rng=random.Random(seed),
    )


def _answer_all(session, correct=True):
    feedback = []
    while not session.finished:
        question = session.current_question
        choice = question.correct_answer if correct else (question.correct_answer + 1) % 4
        feedback.append(session.answer(choice))
    return feedback


class TestGenerateTest:
    def test_q_learning_draws_distinct_questions(self, sample_questions, settings):
        session = QuizSession(sample_questions, settings=settings, rng=random.Random(3))

        results = session.generate_test()

        assert len(session.test_questions) == 5
        assert len({q.id for q in session.test_questions}) == 5
        assert sorted(session.selected_indices) == [0, 1, 2, 3, 4]
        assert [r.algorithm_name for r in results] == [
            "Q-Learning",
            "Min-Heap Priority Scheduling",
            "Fenwick Tree (Binary Indexed Tree)",
            "Bayesian Knowledge Tracing (BKT)",
        ]

    def test_greedy_q_learning_keeps_pool_order(self, sample_questions):
        session = _session(sample_questions, settings=_settings(q_learning_epsilon=0))

        session.generate_test()

        # Arrays first, then linked lists
        assert [q.id for q in session.test_questions] == ["1", "2", "5", "3", "4"]

    def test_respects_questions_per_test(self, sample_questions):
        session = _session(sample_questions, settings=_settings(questions_per_test=3))

        session.generate_test()

        assert len(session.test_questions) == 3

    def test_knapsack_prefers_previously_correct(self, sample_questions):
        session = QuizSession(
            sample_questions,
            selection=AlgorithmSelection(question_selection="Knapsack"),
            settings=_settings(),
            previous_answers={"5": 0},
            rng=random.Random(1),
        )

        session.generate_test()

        assert [q.id for q in session.test_questions] == ["5", "1", "2", "3", "4"]

    def test_knapsack_without_history_uses_pool_order(self, sample_questions):
        session = _session(sample_questions, question_selection="Knapsack")

        session.generate_test()

        assert [q.id for q in session.test_questions] == ["1", "2", "5", "3", "4"]

    @pytest.mark.parametrize("selector", ["UCB", "ThompsonSampling", "AStar"])
    def test_other_selectors_take_pool_order(self, sample_questions, selector):
        session = _session(sample_questions, question_selection=selector)

        results = session.generate_test()

        assert [q.id for q in session.test_questions] == ["1", "2", "5", "3", "4"]
        assert len(results) == 4

    def test_priorities_reset(self, sample_questions):
        session = _session(sample_questions)
        session.generate_test()

        assert session.state.priorities == [5, 5, 5, 5, 5]
        assert session.state.answers == [None] * 5

    def test_empty_pool_rejected(self):
        with pytest.raises(ValueError):
            QuizSession([], settings=_settings()).generate_test()


class TestAnswer:
    def test_correct_answer_updates_state(self, sample_questions):
        session = _session(sample_questions, settings=_settings(q_learning_epsilon=0))
        session.generate_test()
        question = session.current_question

        feedback = session.answer(question.correct_answer)

        assert feedback.is_correct
        assert feedback.question_index == 0
        assert feedback.explanation == question.explanation
        assert not feedback.finished
        assert session.state.q_table[0][session.selected_indices[0]] == pytest.approx(0.1)
        assert session.state.priorities == [6, 5, 5, 5, 5]
        assert session.state.dkt_inputs == [0]
        assert session.state.dkt_targets == [1]
        assert session.state.p_know == pytest.approx(0.45 / 0.55 + (1 - 0.45 / 0.55) * 0.1)

    def test_incorrect_answer_penalises(self, sample_questions):
        session = _session(sample_questions, settings=_settings(q_learning_epsilon=0))
        session.generate_test()
        question = session.current_question

        feedback = session.answer((question.correct_answer + 1) % 4)

        assert not feedback.is_correct
        assert feedback.correct_answer == question.correct_answer
        assert session.state.q_table[0][session.selected_indices[0]] == pytest.approx(-0.1)
        assert session.state.priorities[0] == 1
        assert session.state.dkt_targets == [0]

    def test_default_insights(self, sample_questions):
        session = _session(sample_questions)
        session.generate_test()

        insights = session.answer(session.current_question.correct_answer).insights

        assert insights.question_selection.startswith("Q-Learning chose question 1")
        assert insights.review_scheduler == "Min Heap priorities: [5, 5, 5, 6, 5]. Next review order: [5, 5, 5, 5, 6]"
        assert insights.reward_system == "Fenwick Tree total reward: 1. Prefix sums: [1, 1, 1, 1, 1]"
        assert insights.knowledge_tracing.startswith("BKT updated mastery from 50.0%")

    def test_bkt_prior_carries_between_answers(self, sample_questions):
        session = _session(sample_questions)
        session.generate_test()
        session.answer(session.current_question.correct_answer)

        insights = session.answer(session.current_question.correct_answer).insights

        assert insights.knowledge_tracing.startswith("BKT updated mastery from 83.6%")

    def test_alternative_family_insights(self, sample_questions):
        session = _session(
            sample_questions,
            review_scheduling="SM2",
            reward_system="Greedy",
            knowledge_tracing="DKT",
        )
        session.generate_test()

        insights = session.answer(session.current_question.correct_answer).insights

        assert insights.review_scheduler == "SM2 scheduled next review in 6 days. Easiness factor: 2.86, Repetitions: 2"
        assert insights.reward_system == "Greedy reward total: 1 over 5 time units (average ratio 0.20)"
        assert insights.knowledge_tracing.startswith("DKT predicted 100.0% chance of success")

    def test_dp_insight_tracks_streak(self, sample_questions):
        session = _session(sample_questions, knowledge_tracing="DP")
        session.generate_test()

        feedback = _answer_all(session, correct=True)

        assert feedback[-1].insights.knowledge_tracing.startswith("DP max streak: 5.")
        assert feedback[-1].finished

    def test_answer_after_finish_rejected(self, sample_questions):
        session = _session(sample_questions)
        session.generate_test()
        _answer_all(session)

        with pytest.raises(RuntimeError):
            session.answer(0)

    def test_answer_before_generate_rejected(self, sample_questions):
        with pytest.raises(RuntimeError):
            _session(sample_questions).answer(0)


class TestComplete:
    def test_attempt_summary(self, sample_questions):
        session = _session(sample_questions)
        session.generate_test()
        _answer_all(session, correct=True)

        attempt = session.complete()

        assert attempt.score == 5
        assert attempt.accuracy == 1.0
        assert attempt.test_type is AttemptType.NORMAL
        assert attempt.algorithms_used.question_selection is AlgorithmName.Q_LEARNING
        assert set(attempt.execution_times) == {
            "Q-Learning",
            "Min-Heap Priority Scheduling",
            "Fenwick Tree (Binary Indexed Tree)",
            "Bayesian Knowledge Tracing (BKT)",
        }
        assert all(t > 0 for t in attempt.execution_times.values())
        assert attempt.time_spent >= 0

    def test_review_mode(self, sample_questions):
        session = QuizSession(
            sample_questions, settings=_settings(), review_mode=True, rng=random.Random(0)
        )
        session.generate_test()
        _answer_all(session, correct=False)

        attempt = session.complete()

        assert attempt.score == 0
        assert attempt.test_type is AttemptType.SPACED_REPETITION

    @pytest.mark.parametrize(
        "selection",
        [
            {"question_selection": "UCB", "review_scheduling": "FSRS", "reward_system": "VariableRatio", "knowledge_tracing": "HMM"},
            {"question_selection": "ThompsonSampling", "review_scheduling": "AdaptiveRoundRobin", "reward_system": "MDP", "knowledge_tracing": "DKT"},
            {"question_selection": "Knapsack", "review_scheduling": "MinHeap", "reward_system": "Greedy", "knowledge_tracing": "DP"},
            {"question_selection": "AStar", "review_scheduling": "SM2", "reward_system": "FenwickTree", "knowledge_tracing": "BKT"},
        ],
    )
    def test_every_algorithm_runs_end_to_end(self, sample_questions, selection):
        session = _session(sample_questions, **selection)
        session.generate_test()
        feedback = _answer_all(session, correct=True)

        attempt = session.complete()

        assert len(feedback) == 5
        assert all(f.insights.knowledge_tracing for f in feedback)
        assert len(attempt.execution_times) == 4

    def test_shared_state_carries_q_values(self, sample_questions):
        state = SessionState()
        first = QuizSession(sample_questions, settings=_settings(), state=state, rng=random.Random(2))
        first.generate_test()
        _answer_all(first, correct=True)

        second = QuizSession(sample_questions, settings=_settings(), state=state, rng=random.Random(2))
        second.generate_test()

        assert any(v > 0 for v in state.q_table[0])
        assert len(second.test_questions) == 5


class TestFallbacks:
    def test_rejected_input_uses_generic_sentence(self, sample_questions):
        session = _session(
            sample_questions,
            settings=_settings(variable_ratio_schedule=[], fsrs_stability=0),
            review_scheduling="FSRS",
            reward_system="VariableRatio",
        )

        results = session.generate_test()
        insights = session.answer(session.current_question.correct_answer).insights

        assert len(results) == 2
        assert insights.review_scheduler == "Review scheduling using FSRS algorithm."
        assert insights.reward_system == "Reward system using VariableRatio algorithm."

    def test_completion_skips_failed_algorithms(self, sample_questions):
        session = _session(
            sample_questions,
            settings=_settings(variable_ratio_schedule=[]),
            reward_system="VariableRatio",
        )
        session.generate_test()
        _answer_all(session)

        attempt = session.complete()

        assert "Variable Ratio Reinforcement" not in attempt.execution_times
        assert len(attempt.execution_times) == 3
