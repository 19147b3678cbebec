"""
Review Scheduling Algorithms.

Decide when a question should next be reviewed:
- SM2: SuperMemo 2 interval / easiness factor update
- FSRS: retrievability-driven stability and difficulty update
- MinHeap: urgency ordering of per-question priorities
- AdaptiveRoundRobin: time-sliced review plan with a jittered quantum

SM-2 easiness update:
    EF' = max(1.3, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))
"""

from __future__ import annotations

import math
import random
from typing import Any, Mapping

from loguru import logger

from .errors import InvalidInputError
from .models import (
    AlgorithmExecutionResult,
    Complexity,
    FSRSResult,
    HeapSwap,
    MinHeapResult,
    ReviewTask,
    RoundRobinResult,
    SM2Result,
    TaskSlice,
    Visualization,
    VisualizationType,
)
from .primitives import build_min_heap, sift_down
from .timing import measure_execution

# =============================================================================
# Constants
# =============================================================================

SM2_MINIMUM_EASINESS = 1.3
SM2_FIRST_INTERVAL = 1
SM2_SECOND_INTERVAL = 6

FSRS_DIFFICULTY_STEP = 0.32
FSRS_MIN_DIFFICULTY = 1.0
FSRS_MAX_DIFFICULTY = 10.0

DEFAULT_TASK_TIME = 5.0
QUANTUM_JITTER = 0.5


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (0.5 -> 1, 2.5 -> 3), unlike the builtin banker's rounding."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


# =============================================================================
# SM-2
# =============================================================================


def sm2(difficulty: float, interval: int, repetitions: int) -> AlgorithmExecutionResult:
    """
    SuperMemo 2 scheduling step.

    ``difficulty`` doubles as the current easiness factor and as the recall
    grade q in the easiness update.

    Args:
        difficulty: Easiness/grade value (typically 0-5)
        interval: Previous interval in days
        repetitions: Successful repetitions so far

    Returns:
        Result carrying ``SM2Result`` and a review timeline
    """

    def run() -> SM2Result:
        easiness = difficulty
        if repetitions == 0:
            new_interval = SM2_FIRST_INTERVAL
        elif repetitions == 1:
            new_interval = SM2_SECOND_INTERVAL
        else:
            new_interval = int(round_half_up(interval * easiness))

        q_gap = 5 - difficulty
        easiness = max(SM2_MINIMUM_EASINESS, easiness + (0.1 - q_gap * (0.08 + q_gap * 0.02)))
        return SM2Result(
            new_interval=new_interval,
            easiness_factor=easiness,
            repetitions=repetitions + 1,
        )

    result, elapsed = measure_execution(run)
    logger.debug(f"SM2: next review in {result.new_interval}d (EF={result.easiness_factor:.2f})")

    return AlgorithmExecutionResult(
        algorithm_name="SM2 Spaced Repetition",
        execution_time=elapsed,
        complexity=Complexity("O(1)", "O(1)"),
        description="SuperMemo 2 algorithm for optimal review scheduling based on difficulty and previous intervals.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.TIMELINE,
            data=[
                {"day": 0, "interval": 0, "label": "Initial"},
                {"day": 1, "interval": 1, "label": "First Review"},
                {"day": 7, "interval": 6, "label": "Second Review"},
                {
                    "day": 7 + result.new_interval,
                    "interval": result.new_interval,
                    "label": "Next Review",
                },
            ],
        ),
    )


# =============================================================================
# FSRS
# =============================================================================


def fsrs(stability: float, difficulty: float) -> AlgorithmExecutionResult:
    """
    Simplified FSRS memory update.

    R = e^(-1/S)
    S' = S * (2.5 + (D - 3) * 0.15) ^ R
    D' = clamp(D + (1 - R) * 0.32, 1, 10)

    All outputs are rounded to two decimals.
    """
    if stability <= 0:
        raise InvalidInputError("FSRS", f"stability must be positive, got {stability}")

    def run() -> FSRSResult:
        retrievability = math.exp(-1.0 / stability)
        new_stability = stability * math.pow(2.5 + (difficulty - 3) * 0.15, retrievability)
        new_difficulty = max(
            FSRS_MIN_DIFFICULTY,
            min(FSRS_MAX_DIFFICULTY, difficulty + (1 - retrievability) * FSRS_DIFFICULTY_STEP),
        )
        return FSRSResult(
            retrievability=round_half_up(retrievability, 2),
            new_stability=round_half_up(new_stability, 2),
            new_difficulty=round_half_up(new_difficulty, 2),
        )

    result, elapsed = measure_execution(run)
    logger.debug(
        f"FSRS: R={result.retrievability} S'={result.new_stability} D'={result.new_difficulty}"
    )

    return AlgorithmExecutionResult(
        algorithm_name="FSRS (Free Spaced Repetition Scheduler)",
        execution_time=elapsed,
        complexity=Complexity("O(1)", "O(1)"),
        description="Modern spaced repetition algorithm that improves upon SM2 with more sophisticated difficulty calculation.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.CURVE,
            data=[
                {"x": 0, "y": 100, "label": "Initial Memory"},
                {"x": 1, "y": result.retrievability * 100, "label": "Current Retention"},
                {"x": result.new_stability, "y": 50, "label": "Next Review Point"},
            ],
        ),
    )


# =============================================================================
# Min-Heap Priority Scheduling
# =============================================================================


def min_heap(priorities: list[float]) -> AlgorithmExecutionResult:
    """
    Order questions by urgency using a binary min-heap.

    The lowest priority value is the most urgent. ``heap`` is the array
    after bottom-up heapify; ``scheduling_order`` is the full extraction
    sequence (non-decreasing).
    """

    def run() -> MinHeapResult:
        heap = list(priorities)
        steps: list[HeapSwap] = []
        build_min_heap(heap, steps)

        scheduling_order = []
        pending = list(heap)
        while pending:
            scheduling_order.append(pending[0])
            pending[0] = pending[-1]
            pending.pop()
            sift_down(pending, len(pending), 0)

        return MinHeapResult(heap=heap, scheduling_order=scheduling_order, steps=steps)

    result, elapsed = measure_execution(run)
    logger.debug(f"MinHeap: {len(result.steps)} swaps, order={result.scheduling_order}")

    return AlgorithmExecutionResult(
        algorithm_name="Min-Heap Priority Scheduling",
        execution_time=elapsed,
        complexity=Complexity("O(n log n)", "O(1)"),
        description="Uses a min-heap to prioritize reviews based on urgency and importance scores.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.TREE,
            data=[
                {
                    "id": i,
                    "value": value,
                    "parent": (i - 1) // 2 if i > 0 else None,
                    "level": int(math.log2(i + 1)),
                }
                for i, value in enumerate(result.heap)
            ],
        ),
    )


# =============================================================================
# Adaptive Round Robin
# =============================================================================


def _remaining_time(task: ReviewTask | Mapping[str, Any]) -> float:
    if isinstance(task, Mapping):
        value = task.get("remaining_time", task.get("remainingTime"))
    else:
        value = task.remaining_time
    # Unset or zero remaining time falls back to the default slice
    return value or DEFAULT_TASK_TIME


def adaptive_round_robin(
    tasks: list[ReviewTask | Mapping[str, Any]],
    time_quantum: float,
    rng: random.Random | None = None,
) -> AlgorithmExecutionResult:
    """
    Single round-robin pass with a jittered quantum.

    The quantum is drawn from ``[q, 1.5q)``; each task gets
    ``min(remaining_time, quantum)`` in list order.
    """
    if time_quantum < 0:
        raise InvalidInputError("AdaptiveRoundRobin", "time quantum must be non-negative")
    rng = rng or random

    def run() -> RoundRobinResult:
        adaptive_quantum = time_quantum * (1 + rng.random() * QUANTUM_JITTER)
        total_time = 0.0
        execution_order = []
        for task_id, task in enumerate(tasks):
            slice_time = min(_remaining_time(task), adaptive_quantum)
            total_time += slice_time
            execution_order.append(
                TaskSlice(
                    task_id=task_id,
                    execution_time=slice_time,
                    start_time=total_time - slice_time,
                    end_time=total_time,
                )
            )
        return RoundRobinResult(
            total_time=total_time,
            execution_order=execution_order,
            adaptive_quantum=adaptive_quantum,
        )

    result, elapsed = measure_execution(run)
    logger.debug(
        f"AdaptiveRoundRobin: {len(tasks)} tasks, quantum={result.adaptive_quantum:.2f}, "
        f"total={result.total_time:.2f}"
    )

    return AlgorithmExecutionResult(
        algorithm_name="Adaptive Round Robin",
        execution_time=elapsed,
        complexity=Complexity("O(n)", "O(1)"),
        description="Round-robin scheduling with adaptive time quantum based on task difficulty and student performance.",
        result=result,
        visualization=Visualization(
            type=VisualizationType.GANTT,
            data=[
                {
                    "task": f"Task {s.task_id}",
                    "start": s.start_time,
                    "duration": s.execution_time,
                    "end": s.end_time,
                }
                for s in result.execution_order
            ],
        ),
    )
