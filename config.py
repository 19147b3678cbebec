"""
Configuration settings for the algolab quiz algorithm library.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Execution Timing
    # ========================================
    artificial_delay_enabled: bool = Field(
        default=True,
        description="Busy-wait before each algorithm so displayed timings are non-zero",
    )
    artificial_delay_min_ms: int = Field(
        default=1,
        description="Lower bound of the artificial delay (milliseconds)",
    )
    artificial_delay_max_ms: int = Field(
        default=30,
        description="Upper bound of the artificial delay (milliseconds)",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for the quiz session RNG (None for nondeterministic runs)",
    )

    # ========================================
    # Quiz Session
    # ========================================
    question_bank_path: str = Field(
        default="data/questions.json",
        description="JSON file holding the question pool",
    )
    questions_per_test: int = Field(
        default=5,
        description="Number of questions drawn for one test",
    )

    # ========================================
    # Question Selection
    # ========================================
    ucb_exploration: float = Field(
        default=2.0,
        description="UCB exploration constant c",
    )
    q_learning_epsilon: float = Field(
        default=0.2,
        description="Probability of exploring a random action",
    )
    q_learning_alpha: float = Field(
        default=0.1,
        description="Q-table learning rate",
    )
    q_learning_gamma: float = Field(
        default=0.9,
        description="Q-table discount factor",
    )
    knapsack_capacity: int = Field(
        default=8,
        description="Difficulty budget for knapsack question selection",
    )
    astar_step_cap: int = Field(
        default=10,
        description="Expansion cap for A* learning path search",
    )

    # ========================================
    # Review Scheduling
    # ========================================
    default_priority: int = Field(
        default=5,
        description="Initial min-heap priority for unanswered questions",
    )
    sm2_difficulty: float = Field(default=3.0, description="SM2 demo difficulty")
    sm2_interval: int = Field(default=1, description="SM2 demo previous interval (days)")
    sm2_repetitions: int = Field(default=1, description="SM2 demo repetition count")
    fsrs_stability: float = Field(default=2.0, description="FSRS demo stability (days)")
    fsrs_difficulty: float = Field(default=3.0, description="FSRS demo difficulty (1-10)")

    # ========================================
    # Reward System
    # ========================================
    variable_ratio_schedule: list[int] = Field(
        default=[2, 3, 4, 5],
        description="Reinforcement ratios cycled by response count",
    )
    mdp_discount: float = Field(default=0.9, description="MDP value iteration discount")
    mdp_iterations: int = Field(default=5, description="MDP value iteration sweeps")

    # ========================================
    # Knowledge Tracing
    # ========================================
    bkt_p_know: float = Field(default=0.5, description="BKT prior P(known)")
    bkt_p_learn: float = Field(default=0.1, description="BKT learning transition P(T)")
    bkt_p_guess: float = Field(default=0.2, description="BKT guess probability P(G)")
    bkt_p_slip: float = Field(default=0.1, description="BKT slip probability P(S)")
    hmm_max_steps: int = Field(
        default=5,
        description="Observation cap for Viterbi decoding",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_delay_range(self) -> tuple[int, int]:
        """Return the artificial delay bounds, or (0, 0) when disabled."""
        if not self.artificial_delay_enabled:
            return (0, 0)
        low = max(0, self.artificial_delay_min_ms)
        return (low, max(low, self.artificial_delay_max_ms))

    def get_bkt_params(self) -> dict[str, float]:
        """Get BKT priors as keyword arguments for ``bkt``."""
        return {
            "p_know": self.bkt_p_know,
            "p_learn": self.bkt_p_learn,
            "p_guess": self.bkt_p_guess,
            "p_slip": self.bkt_p_slip,
        }

    def get_q_learning_config(self) -> dict[str, float]:
        """Get Q-learning exploration and update parameters."""
        return {
            "epsilon": self.q_learning_epsilon,
            "alpha": self.q_learning_alpha,
            "gamma": self.q_learning_gamma,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
