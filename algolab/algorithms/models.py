"""
Result contract shared by every algorithm.

Each algorithm returns an ``AlgorithmExecutionResult`` carrying static
metadata (name, complexity, description), the measured execution time,
an algorithm-specific ``result`` payload and an optional chart-ready
``Visualization``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
from typing import Any


class VisualizationType(str, Enum):
    """Chart vocabulary understood by the dashboard renderer."""

    TIMELINE = "timeline"
    CURVE = "curve"
    TREE = "tree"
    GANTT = "gantt"
    BAR = "bar"
    DISTRIBUTION = "distribution"
    HEATMAP = "heatmap"
    MATRIX = "matrix"
    GRAPH = "graph"
    SEQUENCE = "sequence"
    NETWORK = "network"
    PROBABILITY = "probability"
    CONVERGENCE = "convergence"


@dataclass(frozen=True)
class Complexity:
    """Big-O annotations (descriptive only, never measured)."""

    time: str
    space: str


@dataclass
class Visualization:
    """Chart type plus the data the renderer plots."""

    type: VisualizationType
    data: Any


@dataclass
class AlgorithmExecutionResult:
    """Uniform output of every algorithm function."""

    algorithm_name: str
    execution_time: float  # milliseconds
    complexity: Complexity
    description: str
    result: Any
    visualization: Visualization | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase contract consumed by the dashboard."""
        payload: dict[str, Any] = {
            "algorithmName": self.algorithm_name,
            "executionTime": self.execution_time,
            "complexity": {"time": self.complexity.time, "space": self.complexity.space},
            "description": self.description,
            "result": _plain(self.result),
        }
        if self.visualization is not None:
            payload["visualization"] = {
                "type": self.visualization.type.value,
                "data": _plain(self.visualization.data),
            }
        return payload


def _plain(value: Any) -> Any:
    """Convert dataclasses, enums and tuples into JSON-friendly values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {k: _plain(v) for k, v in asdict(value).items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


# =============================================================================
# Review Scheduling payloads
# =============================================================================


@dataclass
class SM2Result:
    new_interval: int
    easiness_factor: float
    repetitions: int


@dataclass
class FSRSResult:
    retrievability: float
    new_stability: float
    new_difficulty: float


@dataclass
class HeapSwap:
    """One sift-down swap recorded while building the heap."""

    swapped: tuple[int, int]
    array: list[float]


@dataclass
class MinHeapResult:
    heap: list[float]
    scheduling_order: list[float]
    steps: list[HeapSwap] = field(default_factory=list)


@dataclass
class ReviewTask:
    """A pending review with the time it still needs (minutes)."""

    remaining_time: float | None = None


@dataclass
class TaskSlice:
    task_id: int
    execution_time: float
    start_time: float
    end_time: float


@dataclass
class RoundRobinResult:
    total_time: float
    execution_order: list[TaskSlice]
    adaptive_quantum: float


# =============================================================================
# Question Selection payloads
# =============================================================================


@dataclass
class ArmScore:
    """UCB score breakdown for one question."""

    index: int
    exploitation: float
    exploration: float
    ucb: float
    reward: float
    count: int


@dataclass
class UCBResult:
    ucb_values: list[ArmScore]
    selected_index: int
    selected_arm: ArmScore


@dataclass
class ArmSample:
    """Thompson draw for one question."""

    index: int
    alpha: float
    beta: float
    sample: float
    probability: float


@dataclass
class ThompsonResult:
    samples: list[ArmSample]
    selected_index: int
    selected_arm: ArmSample


class ActionType(str, Enum):
    EXPLORE = "explore"
    EXPLOIT = "exploit"


@dataclass
class QLearningResult:
    state_values: list[float]
    selected_action: int
    action_type: ActionType
    epsilon: float
    q_value: float


@dataclass
class KnapsackStep:
    item: int
    weight: int
    value: float
    capacity: int
    include: float
    exclude: float
    decision: str


@dataclass
class KnapsackResult:
    max_value: float
    selected_items: list[int]
    dp: list[list[float]]
    steps: list[KnapsackStep] = field(default_factory=list)


@dataclass
class AStarStep:
    current: int
    open_set: list[int]
    closed_set: list[int]
    g_score: float | None
    f_score: float | None


@dataclass
class AStarResult:
    path: list[int]
    steps: list[AStarStep]
    cost: float


# =============================================================================
# Reward System payloads
# =============================================================================


@dataclass
class FenwickOperation:
    index: int
    value: float
    operation: str = "update"


@dataclass
class FenwickResult:
    tree: list[float]
    operations: list[FenwickOperation]
    prefix_sums: list[float]
    total_reward: float


@dataclass
class Activity:
    """A rewarded activity and the time it costs."""

    reward: float
    time: float


@dataclass
class RankedActivity:
    index: int
    reward: float
    time: float
    ratio: float


@dataclass
class GreedyResult:
    sorted: list[RankedActivity]
    selected_activities: list[RankedActivity]
    total_reward: float
    total_time: float
    average_ratio: float


@dataclass
class ReinforcementEvent:
    response: int
    ratio: int
    probability: float
    rewarded: bool


@dataclass
class VariableRatioResult:
    avg_ratio: float
    current_ratio: int
    reward_probability: float
    should_reward: bool
    reinforcement_history: list[ReinforcementEvent]
    total_rewards: int


@dataclass
class ValueIteration:
    iteration: int
    values: list[float]
    max_change: float


@dataclass
class MDPResult:
    final_values: list[float]
    iterations: list[ValueIteration]
    policy: list[int]
    optimal_value: float


# =============================================================================
# Knowledge Tracing payloads
# =============================================================================


@dataclass
class BKTResult:
    p_know_before: float
    p_know_after: float
    p_know_next: float
    p_correct: float
    evidence: str
    parameters: dict[str, float]


@dataclass
class NetworkLayer:
    name: str
    values: list[float]


@dataclass
class DKTResult:
    knowledge_state: float
    layers: list[NetworkLayer]
    hidden_activations: list[float]
    confidence: float

    @property
    def predictions(self) -> list[float]:
        return [self.knowledge_state]


@dataclass
class DKTPrediction:
    """Running-average stand-in used between forward passes."""

    predictions: list[float]
    hidden_states: list[float] = field(default_factory=list)


@dataclass
class MatrixCell:
    row: int
    col: int
    value: float


@dataclass
class DPResult:
    dp: list[list[int]]
    path: list[MatrixCell]
    max_value: int


@dataclass
class ViterbiStep:
    observation: int
    paths: list[list[int]]
    probabilities: list[float]


@dataclass
class HiddenState:
    state: int
    name: str


@dataclass
class HMMResult:
    best_path: list[int]
    probability: float
    steps: list[ViterbiStep]
    state_sequence: list[HiddenState]
