"""
Question bank loading.

The bank is a JSON list of question objects using the camelCase field
names of the quiz UI (``correctAnswer``, ``createdBy``, ``createdAt``).
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from .models import Question, Topic

_QUESTIONS = TypeAdapter(list[Question])


class QuestionBankError(Exception):
    """Raised when a question bank file is missing or malformed."""
    pass


def load_question_bank(path: str | Path) -> list[Question]:
    """
    Load and validate questions from a JSON file.

    Raises:
        QuestionBankError: File missing, not JSON, or failing validation
    """
    path = Path(path)
    if not path.exists():
        raise QuestionBankError(f"Question bank not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        questions = _QUESTIONS.validate_python(data)
    except json.JSONDecodeError as e:
        raise QuestionBankError(f"Invalid JSON in {path}: {e}") from e
    except ValidationError as e:
        raise QuestionBankError(f"Invalid question in {path}: {e}") from e

    logger.info(f"Loaded {len(questions)} questions from {path}")
    return questions


def ordered_pool(questions: list[Question]) -> list[Question]:
    """Arrays questions first, then linked-list questions, bank order kept."""
    return [q for q in questions if q.topic is Topic.ARRAYS] + [
        q for q in questions if q.topic is Topic.LINKED_LISTS
    ]
