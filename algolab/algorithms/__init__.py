"""
Quiz Algorithm Library.

Stateless simulators invoked per question during a quiz:

- Review Scheduling: SM2, FSRS, MinHeap, AdaptiveRoundRobin
- Question Selection: UCB, ThompsonSampling, QLearning, Knapsack, AStar
- Reward System: FenwickTree, Greedy, VariableRatio, MDP
- Knowledge Tracing: BKT, DKT, DP, HMM

Every function returns an AlgorithmExecutionResult; explanation
formatters turn a result into the sentence shown to the learner.
"""
from algolab.algorithms.errors import InvalidInputError
from algolab.algorithms.explanations import (
    explain,
    fallback_explanation,
    get_knowledge_tracing_explanation,
    get_question_selection_explanation,
    get_review_scheduler_explanation,
    get_reward_system_explanation,
)
from algolab.algorithms.knowledge_tracing import (
    bkt,
    build_reachability_matrix,
    dkt,
    dkt_running_average,
    dp,
    dp_streak,
    hmm,
)
from algolab.algorithms.models import (
    Activity,
    AlgorithmExecutionResult,
    Complexity,
    ReviewTask,
    Visualization,
    VisualizationType,
)
from algolab.algorithms.names import AlgorithmFamily, AlgorithmName
from algolab.algorithms.question_selection import a_star, knapsack, q_learning, thompson_sampling, ucb
from algolab.algorithms.registry import AlgorithmInfo, get_algorithm, list_algorithms, run_algorithm
from algolab.algorithms.review_scheduling import adaptive_round_robin, fsrs, min_heap, sm2
from algolab.algorithms.reward_system import fenwick_tree, greedy, mdp, variable_ratio

__all__ = [
    # Result contract
    "AlgorithmExecutionResult",
    "Complexity",
    "Visualization",
    "VisualizationType",
    "ReviewTask",
    "Activity",
    "InvalidInputError",
    # Dispatch
    "AlgorithmFamily",
    "AlgorithmName",
    "AlgorithmInfo",
    "get_algorithm",
    "list_algorithms",
    "run_algorithm",
    # Review scheduling
    "sm2",
    "fsrs",
    "min_heap",
    "adaptive_round_robin",
    # Question selection
    "ucb",
    "thompson_sampling",
    "q_learning",
    "knapsack",
    "a_star",
    # Reward system
    "fenwick_tree",
    "greedy",
    "variable_ratio",
    "mdp",
    # Knowledge tracing
    "bkt",
    "dkt",
    "dkt_running_average",
    "dp",
    "dp_streak",
    "build_reachability_matrix",
    "hmm",
    # Explanations
    "explain",
    "fallback_explanation",
    "get_question_selection_explanation",
    "get_knowledge_tracing_explanation",
    "get_review_scheduler_explanation",
    "get_reward_system_explanation",
]
