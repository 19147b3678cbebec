"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings, get_settings  # noqa: E402
from algolab.session import Question  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def no_artificial_delay(monkeypatch):
    """Disable the busy-wait before each algorithm run."""
    monkeypatch.setenv("ARTIFICIAL_DELAY_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def rng():
    """Seeded random source for reproducible draws."""
    return random.Random(42)


@pytest.fixture
def settings():
    """Settings with the artificial delay off and a fixed seed."""
    return Settings(artificial_delay_enabled=False, random_seed=7, _env_file=None)


def _question(qid, topic, difficulty, title, options, correct):
    return Question(
        id=qid,
        topic=topic,
        difficulty=difficulty,
        title=title,
        description=f"{title}?",
        options=options,
        correctAnswer=correct,
        explanation=f"Explanation for {title}.",
    )


@pytest.fixture
def sample_questions():
    """The five default questions, in bank order (arrays and linked lists interleaved)."""
    return [
        _question("1", "arrays", "easy", "Array Basic Operations", ["O(1)", "O(n)", "O(log n)", "O(n²)"], 0),
        _question("2", "arrays", "medium", "Array Searching", ["O(1)", "O(log n)", "O(n)", "O(n log n)"], 1),
        _question("3", "linkedlists", "easy", "Linked List Basics", ["O(1)", "O(n)", "O(log n)", "O(n²)"], 0),
        _question("4", "linkedlists", "medium", "Linked List Traversal", ["O(1)", "O(log n)", "O(n)", "O(n²)"], 2),
        _question("5", "arrays", "hard", "Dynamic Arrays", ["O(1)", "O(log n)", "O(n)", "O(n²)"], 0),
    ]
