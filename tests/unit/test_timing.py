"""
Unit tests for execution timing and settings.

Tests:
- Measured duration includes the artificial delay
- Reported time is never zero
- Delay range follows settings
"""

import random

import pytest

from config import Settings, get_settings
from algolab.algorithms import sm2
from algolab.algorithms.timing import MIN_REPORTED_MS, artificial_delay_ms, measure_execution


class TestMeasureExecution:
    def test_returns_function_result(self):
        result, elapsed = measure_execution(lambda: 42, delay_ms=0)

        assert result == 42
        assert elapsed >= MIN_REPORTED_MS

    def test_includes_delay(self):
        _, elapsed = measure_execution(lambda: None, delay_ms=5)
        assert elapsed >= 5

    def test_algorithms_report_positive_time(self):
        assert sm2(3, 1, 1).execution_time > 0

    def test_algorithms_follow_configured_delay(self, monkeypatch):
        monkeypatch.setenv("ARTIFICIAL_DELAY_ENABLED", "true")
        monkeypatch.setenv("ARTIFICIAL_DELAY_MIN_MS", "5")
        monkeypatch.setenv("ARTIFICIAL_DELAY_MAX_MS", "5")
        get_settings.cache_clear()

        result = sm2(3, 1, 1)

        assert result.execution_time >= 5
        assert result.result.new_interval == 6


class TestArtificialDelay:
    def test_disabled_delay_is_zero(self):
        # conftest disables the delay through the environment
        assert artificial_delay_ms(random.Random(1)) == 0

    def test_enabled_delay_within_bounds(self, monkeypatch):
        monkeypatch.setenv("ARTIFICIAL_DELAY_ENABLED", "true")
        monkeypatch.setenv("ARTIFICIAL_DELAY_MIN_MS", "2")
        monkeypatch.setenv("ARTIFICIAL_DELAY_MAX_MS", "4")
        get_settings.cache_clear()

        rng = random.Random(0)
        delays = {artificial_delay_ms(rng) for _ in range(50)}

        assert delays <= {2, 3, 4}


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.ucb_exploration == 2.0
        assert settings.knapsack_capacity == 8
        assert settings.variable_ratio_schedule == [2, 3, 4, 5]
        assert settings.get_bkt_params() == {"p_know": 0.5, "p_learn": 0.1, "p_guess": 0.2, "p_slip": 0.1}
        assert settings.get_q_learning_config() == {"epsilon": 0.2, "alpha": 0.1, "gamma": 0.9}

    def test_delay_range(self):
        assert Settings(artificial_delay_enabled=False, _env_file=None).get_delay_range() == (0, 0)
        assert Settings(
            artificial_delay_enabled=True,
            artificial_delay_min_ms=5,
            artificial_delay_max_ms=3,
            _env_file=None,
        ).get_delay_range() == (5, 5)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("KNAPSACK_CAPACITY", "12")
        assert Settings(_env_file=None).knapsack_capacity == 12

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValueError):
            Settings(log_level="LOUD", _env_file=None)
