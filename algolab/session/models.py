"""
Quiz session data models.

Questions and algorithm selections arrive from the question bank and the
test setup screen; attempts and progress are what a finished test produces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from algolab.algorithms.names import AlgorithmFamily, AlgorithmName


class Topic(str, Enum):
    ARRAYS = "arrays"
    LINKED_LISTS = "linkedlists"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DIFFICULTY_WEIGHTS = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
}


class AttemptType(str, Enum):
    NORMAL = "normal"
    SPACED_REPETITION = "spaced_repetition"


class Question(BaseModel):
    """A four-option multiple choice question."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    topic: Topic
    difficulty: Difficulty
    title: str
    description: str
    options: list[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., alias="correctAnswer", ge=0, le=3)
    explanation: str = ""
    created_by: str = Field("system", alias="createdBy")
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")

    @property
    def difficulty_weight(self) -> int:
        """Knapsack cost of the question (easy=1, medium=2, hard=3)."""
        return DIFFICULTY_WEIGHTS[self.difficulty]

    def is_correct(self, answer: int | None) -> bool:
        return answer is not None and answer == self.correct_answer


class AlgorithmSelection(BaseModel):
    """Which algorithm drives each family during a test."""

    question_selection: AlgorithmName = AlgorithmName.Q_LEARNING
    review_scheduling: AlgorithmName = AlgorithmName.MIN_HEAP
    reward_system: AlgorithmName = AlgorithmName.FENWICK_TREE
    knowledge_tracing: AlgorithmName = AlgorithmName.BKT

    @field_validator("question_selection")
    @classmethod
    def _check_selection(cls, v: AlgorithmName) -> AlgorithmName:
        return _require_family(v, AlgorithmFamily.QUESTION_SELECTION)

    @field_validator("review_scheduling")
    @classmethod
    def _check_scheduling(cls, v: AlgorithmName) -> AlgorithmName:
        return _require_family(v, AlgorithmFamily.REVIEW_SCHEDULING)

    @field_validator("reward_system")
    @classmethod
    def _check_reward(cls, v: AlgorithmName) -> AlgorithmName:
        return _require_family(v, AlgorithmFamily.REWARD_SYSTEM)

    @field_validator("knowledge_tracing")
    @classmethod
    def _check_tracing(cls, v: AlgorithmName) -> AlgorithmName:
        return _require_family(v, AlgorithmFamily.KNOWLEDGE_TRACING)


def _require_family(name: AlgorithmName, family: AlgorithmFamily) -> AlgorithmName:
    if name.family is not family:
        raise ValueError(f"{name.value} is not a {family.value} algorithm")
    return name


@dataclass
class AlgorithmInsights:
    """One explanation sentence per family for the current question."""

    question_selection: str = ""
    review_scheduler: str = ""
    reward_system: str = ""
    knowledge_tracing: str = ""


@dataclass
class AnswerFeedback:
    question_index: int
    is_correct: bool
    correct_answer: int
    explanation: str
    insights: AlgorithmInsights
    finished: bool = False


@dataclass
class TestAttempt:
    """Outcome of a completed test."""

    __test__ = False

    questions: list[Question]
    answers: list[int | None]
    score: int
    time_spent: float  # seconds
    algorithms_used: AlgorithmSelection
    execution_times: dict[str, float]
    completed_at: datetime = field(default_factory=datetime.now)
    test_type: AttemptType = AttemptType.NORMAL

    @property
    def accuracy(self) -> float:
        return self.score / len(self.questions) if self.questions else 0.0


@dataclass
class TopicProgress:
    mastery: float = 0.0
    questions_answered: int = 0
    correct_answers: int = 0
    average_time: float = 0.0
    streak: int = 0


@dataclass
class StudentProgress:
    """Per-topic progress accumulated across attempts (in memory only)."""

    student_id: str
    topics: dict[Topic, TopicProgress] = field(
        default_factory=lambda: {topic: TopicProgress() for topic in Topic}
    )
    total_tests: int = 0
    achievements: list[str] = field(default_factory=list)
    last_activity: datetime | None = None

    def apply(self, attempt: TestAttempt) -> None:
        """Fold one attempt into the running totals."""
        per_question_time = attempt.time_spent / len(attempt.questions) if attempt.questions else 0.0

        for topic, progress in self.topics.items():
            answered = [
                (q, a) for q, a in zip(attempt.questions, attempt.answers) if q.topic is topic
            ]
            correct = sum(1 for q, a in answered if q.is_correct(a))
            progress.questions_answered += len(answered)
            progress.correct_answers += correct
            progress.mastery = min(100.0, progress.mastery + correct / max(len(answered), 1) * 10)
            progress.average_time = per_question_time
            progress.streak = progress.streak + 1 if correct == len(answered) else 0

        self.total_tests += 1
        self.last_activity = attempt.completed_at

        earned = []
        if attempt.questions and attempt.score == len(attempt.questions):
            earned.append("Perfect Score")
        if self.total_tests == 5:
            earned.append("5 Tests Completed")
        if self.total_tests == 10:
            earned.append("10 Tests Completed")
        for badge in earned:
            if badge not in self.achievements:
                self.achievements.append(badge)
