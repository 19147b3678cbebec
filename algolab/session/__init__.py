"""
Quiz session layer.

Loads the question bank, runs one test through the algorithm library and
folds finished attempts into student progress.
"""
from algolab.session.bank import QuestionBankError, load_question_bank, ordered_pool
from algolab.session.models import (
    AlgorithmInsights,
    AlgorithmSelection,
    AnswerFeedback,
    AttemptType,
    Difficulty,
    Question,
    StudentProgress,
    TestAttempt,
    Topic,
    TopicProgress,
)
from algolab.session.quiz_session import QuizSession
from algolab.session.state import SessionState

__all__ = [
    "QuestionBankError",
    "load_question_bank",
    "ordered_pool",
    "AlgorithmInsights",
    "AlgorithmSelection",
    "AnswerFeedback",
    "AttemptType",
    "Difficulty",
    "Question",
    "StudentProgress",
    "TestAttempt",
    "Topic",
    "TopicProgress",
    "QuizSession",
    "SessionState",
]
