"""Algorithm identifiers and the family each belongs to."""

from __future__ import annotations

from enum import Enum


class AlgorithmFamily(str, Enum):
    REVIEW_SCHEDULING = "reviewScheduling"
    QUESTION_SELECTION = "questionSelection"
    REWARD_SYSTEM = "rewardSystem"
    KNOWLEDGE_TRACING = "knowledgeTracing"


class AlgorithmName(str, Enum):
    """One member per algorithm; values match the names stored on test attempts."""

    SM2 = "SM2"
    FSRS = "FSRS"
    MIN_HEAP = "MinHeap"
    ADAPTIVE_ROUND_ROBIN = "AdaptiveRoundRobin"

    UCB = "UCB"
    THOMPSON_SAMPLING = "ThompsonSampling"
    Q_LEARNING = "QLearning"
    KNAPSACK = "Knapsack"
    A_STAR = "AStar"

    FENWICK_TREE = "FenwickTree"
    GREEDY = "Greedy"
    VARIABLE_RATIO = "VariableRatio"
    MDP = "MDP"

    BKT = "BKT"
    DKT = "DKT"
    DP = "DP"
    HMM = "HMM"

    @property
    def family(self) -> AlgorithmFamily:
        return _FAMILIES[self]

    @classmethod
    def coerce(cls, value: AlgorithmName | str) -> AlgorithmName | None:
        """Resolve a member from its value, case-insensitively; None if unknown."""
        if isinstance(value, cls):
            return value
        lowered = str(value).lower()
        for member in cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
        return None

    @classmethod
    def in_family(cls, family: AlgorithmFamily) -> list[AlgorithmName]:
        return [member for member in cls if member.family is family]


_FAMILIES = {
    AlgorithmName.SM2: AlgorithmFamily.REVIEW_SCHEDULING,
    AlgorithmName.FSRS: AlgorithmFamily.REVIEW_SCHEDULING,
    AlgorithmName.MIN_HEAP: AlgorithmFamily.REVIEW_SCHEDULING,
    AlgorithmName.ADAPTIVE_ROUND_ROBIN: AlgorithmFamily.REVIEW_SCHEDULING,
    AlgorithmName.UCB: AlgorithmFamily.QUESTION_SELECTION,
    AlgorithmName.THOMPSON_SAMPLING: AlgorithmFamily.QUESTION_SELECTION,
    AlgorithmName.Q_LEARNING: AlgorithmFamily.QUESTION_SELECTION,
    AlgorithmName.KNAPSACK: AlgorithmFamily.QUESTION_SELECTION,
    AlgorithmName.A_STAR: AlgorithmFamily.QUESTION_SELECTION,
    AlgorithmName.FENWICK_TREE: AlgorithmFamily.REWARD_SYSTEM,
    AlgorithmName.GREEDY: AlgorithmFamily.REWARD_SYSTEM,
    AlgorithmName.VARIABLE_RATIO: AlgorithmFamily.REWARD_SYSTEM,
    AlgorithmName.MDP: AlgorithmFamily.REWARD_SYSTEM,
    AlgorithmName.BKT: AlgorithmFamily.KNOWLEDGE_TRACING,
    AlgorithmName.DKT: AlgorithmFamily.KNOWLEDGE_TRACING,
    AlgorithmName.DP: AlgorithmFamily.KNOWLEDGE_TRACING,
    AlgorithmName.HMM: AlgorithmFamily.KNOWLEDGE_TRACING,
}
