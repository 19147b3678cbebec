"""
Unit tests for session state, question models and the question bank.

Tests:
- Q-table temporal-difference update
- Min-heap priority adjustment
- DKT history
- Question / AlgorithmSelection validation
- Question bank loading
- Student progress accumulation
"""

import json

import pytest
from pydantic import ValidationError

from algolab.algorithms import AlgorithmName
from algolab.session import (
    AlgorithmSelection,
    AttemptType,
    Question,
    QuestionBankError,
    SessionState,
    StudentProgress,
    TestAttempt,
    Topic,
    load_question_bank,
    ordered_pool,
)


class TestQTable:
    def test_ensure_creates_single_zero_row(self):
        state = SessionState()

        assert state.ensure_q_table(4) == [[0.0, 0.0, 0.0, 0.0]]

    def test_ensure_keeps_existing_table(self):
        state = SessionState(q_table=[[1.0, 2.0]])
        assert state.ensure_q_table(5) == [[1.0, 2.0]]

    def test_correct_answer_update(self):
        state = SessionState()
        state.ensure_q_table(3)

        updated = state.update_q_table(0, 1, reward=1, next_state=0)

        # 0 + 0.1 * (1 + 0.9 * 0 - 0)
        assert updated == pytest.approx(0.1)
        assert state.q_table[0] == [0.0, pytest.approx(0.1), 0.0]

    def test_bootstraps_from_best_next_value(self):
        state = SessionState(q_table=[[0.0, 0.5]])

        updated = state.update_q_table(0, 0, reward=-1, next_state=0, alpha=0.5, gamma=0.9)

        # 0 + 0.5 * (-1 + 0.9 * 0.5 - 0)
        assert updated == pytest.approx(-0.275)


class TestPriorities:
    def test_correct_increments(self):
        state = SessionState(priorities=[5, 5, 5])

        assert state.update_priority(1, True, 3) == [5, 6, 5]

    def test_incorrect_resets_to_one(self):
        state = SessionState(priorities=[5, 5, 5])

        assert state.update_priority(2, False, 3) == [5, 5, 1]

    def test_size_mismatch_reinitializes(self):
        state = SessionState(priorities=[1])

        assert state.update_priority(0, True, 3, default=5) == [6, 5, 5]

    def test_unset_priority_counts_from_one(self):
        state = SessionState(priorities=[0, 0])

        assert state.update_priority(0, True, 2) == [2, 0]


class TestStateSerialization:
    def test_round_trip(self):
        state = SessionState(q_table=[[0.1]], priorities=[2], p_know=0.6)
        state.record_dkt(0, True)

        restored = SessionState.from_dict(state.to_dict())

        assert restored == state
        assert restored.dkt_inputs == [0]
        assert restored.dkt_targets == [1]


class TestQuestionModel:
    def test_camel_case_aliases(self, sample_questions):
        question = sample_questions[1]

        assert question.correct_answer == 1
        assert question.difficulty_weight == 2
        assert question.is_correct(1)
        assert not question.is_correct(0)
        assert not question.is_correct(None)

    def test_requires_four_options(self):
        with pytest.raises(ValidationError):
            Question(
                id="x",
                topic="arrays",
                difficulty="easy",
                title="t",
                description="d",
                options=["a", "b"],
                correct_answer=0,
            )

    def test_rejects_unknown_topic(self):
        with pytest.raises(ValidationError):
            Question(
                id="x",
                topic="graphs",
                difficulty="easy",
                title="t",
                description="d",
                options=["a", "b", "c", "d"],
                correct_answer=0,
            )

    def test_ordered_pool_puts_arrays_first(self, sample_questions):
        pool = ordered_pool(sample_questions)

        assert [q.id for q in pool] == ["1", "2", "5", "3", "4"]


class TestAlgorithmSelection:
    def test_defaults(self):
        selection = AlgorithmSelection()

        assert selection.question_selection is AlgorithmName.Q_LEARNING
        assert selection.review_scheduling is AlgorithmName.MIN_HEAP
        assert selection.reward_system is AlgorithmName.FENWICK_TREE
        assert selection.knowledge_tracing is AlgorithmName.BKT

    def test_accepts_name_strings(self):
        selection = AlgorithmSelection(question_selection="Knapsack", knowledge_tracing="HMM")

        assert selection.question_selection is AlgorithmName.KNAPSACK
        assert selection.knowledge_tracing is AlgorithmName.HMM

    def test_rejects_wrong_family(self):
        with pytest.raises(ValidationError):
            AlgorithmSelection(question_selection="SM2")


class TestQuestionBank:
    def test_loads_shipped_bank(self, project_root):
        questions = load_question_bank(project_root / "data" / "questions.json")

        assert len(questions) >= 5
        assert questions[0].title == "Array Basic Operations"
        assert {q.topic for q in questions} == {Topic.ARRAYS, Topic.LINKED_LISTS}

    def test_missing_file(self, tmp_path):
        with pytest.raises(QuestionBankError):
            load_question_bank(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(QuestionBankError):
            load_question_bank(path)

    def test_invalid_question(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text(json.dumps([{"id": "1", "topic": "arrays"}]), encoding="utf-8")

        with pytest.raises(QuestionBankError):
            load_question_bank(path)


class TestStudentProgress:
    def _attempt(self, questions, answers):
        score = sum(1 for q, a in zip(questions, answers) if q.is_correct(a))
        return TestAttempt(
            questions=questions,
            answers=answers,
            score=score,
            time_spent=50.0,
            algorithms_used=AlgorithmSelection(),
            execution_times={},
        )

    def test_topic_counters_and_mastery(self, sample_questions):
        progress = StudentProgress(student_id="s1")
        # arrays: 1 right, 1 wrong, 1 right; linked lists: 1 right, 1 wrong
        attempt = self._attempt(sample_questions, [0, 0, 0, 0, 0])

        progress.apply(attempt)

        arrays = progress.topics[Topic.ARRAYS]
        linked = progress.topics[Topic.LINKED_LISTS]
        assert arrays.questions_answered == 3
        assert arrays.correct_answers == 2
        assert arrays.mastery == pytest.approx(2 / 3 * 10)
        assert linked.mastery == pytest.approx(5.0)
        assert arrays.streak == 0
        assert arrays.average_time == pytest.approx(10.0)
        assert progress.total_tests == 1
        assert progress.achievements == []

    def test_perfect_score_badge_and_streak(self, sample_questions):
        progress = StudentProgress(student_id="s1")
        answers = [q.correct_answer for q in sample_questions]

        progress.apply(self._attempt(sample_questions, answers))

        assert progress.achievements == ["Perfect Score"]
        assert progress.topics[Topic.ARRAYS].streak == 1
        assert progress.topics[Topic.ARRAYS].mastery == pytest.approx(10.0)

    def test_mastery_capped(self, sample_questions):
        progress = StudentProgress(student_id="s1")
        answers = [q.correct_answer for q in sample_questions]

        for _ in range(12):
            progress.apply(self._attempt(sample_questions, answers))

        assert progress.topics[Topic.ARRAYS].mastery == 100.0
        assert progress.achievements == ["Perfect Score", "5 Tests Completed", "10 Tests Completed"]

    def test_attempt_defaults(self, sample_questions):
        attempt = self._attempt(sample_questions[:2], [0, 0])

        assert attempt.test_type is AttemptType.NORMAL
        assert attempt.accuracy == pytest.approx(0.5)
