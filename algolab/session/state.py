"""
Per-test mutable state threaded through algorithm calls.

Created when a test starts, updated once per answered question and
discarded when the test completes. The algorithm functions never hold
this state themselves; the quiz session passes the relevant pieces in.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from loguru import logger


@dataclass
class SessionState:
    """Serializable per-test state (Q-table, priorities, DKT history, BKT prior)."""

    q_table: list[list[float]] = field(default_factory=list)
    priorities: list[int] = field(default_factory=list)
    dkt_inputs: list[int] = field(default_factory=list)
    dkt_targets: list[int] = field(default_factory=list)
    answers: list[int | None] = field(default_factory=list)
    p_know: float | None = None

    def ensure_q_table(self, num_actions: int) -> list[list[float]]:
        """Create a single-state zero Q-table on first use."""
        if not self.q_table:
            self.q_table = [[0.0] * num_actions]
        return self.q_table

    def update_q_table(
        self,
        state: int,
        action: int,
        reward: float,
        next_state: int,
        alpha: float = 0.1,
        gamma: float = 0.9,
    ) -> float:
        """
        Temporal-difference update of one Q-table entry.

        Q[s][a] <- Q[s][a] + alpha * (r + gamma * max_a' Q[s'][a'] - Q[s][a])

        Returns:
            The updated Q-value
        """
        best_next = max(self.q_table[next_state])
        current = self.q_table[state][action]
        updated = current + alpha * (reward + gamma * best_next - current)
        self.q_table[state][action] = updated
        logger.debug(f"Q[{state}][{action}]: {current:.3f} -> {updated:.3f} (r={reward})")
        return updated

    def reset_priorities(self, size: int, default: int) -> None:
        self.priorities = [default] * size

    def update_priority(self, index: int, correct: bool, size: int, default: int = 5) -> list[int]:
        """
        Adjust the min-heap priority of one question.

        Correct answers push the question back (+1); wrong answers make it
        the most urgent (reset to 1).
        """
        if len(self.priorities) != size:
            self.reset_priorities(size, default)
        if correct:
            self.priorities[index] = (self.priorities[index] or 1) + 1
        else:
            self.priorities[index] = 1
        return self.priorities

    def record_dkt(self, question_index: int, correct: bool) -> None:
        self.dkt_inputs.append(question_index)
        self.dkt_targets.append(1 if correct else 0)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        """Create from dictionary."""
        return cls(**data)
