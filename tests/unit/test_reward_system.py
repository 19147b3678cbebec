"""
Unit tests for reward system algorithms.

Tests:
- Fenwick tree prefix sums after a point update
- Greedy ratio ranking
- Variable ratio reinforcement schedule
- MDP value iteration
"""

import random

import pytest

from algolab.algorithms import (
    Activity,
    InvalidInputError,
    VisualizationType,
    fenwick_tree,
    greedy,
    mdp,
    variable_ratio,
)


class TestFenwickTree:
    """Tests for the Fenwick tree reward accumulator."""

    def test_prefix_sums_without_extra_reward(self):
        result = fenwick_tree([1, 2, 3, 4, 5], 0, 0).result

        assert result.prefix_sums == [1, 3, 6, 10, 15]
        assert result.prefix_sums[3] == 10
        assert result.total_reward == 15

    def test_point_update_shifts_later_prefixes(self):
        result = fenwick_tree([1, 2, 3, 4, 5], 1, 5).result

        assert result.prefix_sums == [1, 8, 11, 15, 20]
        assert result.total_reward == 20

    def test_tree_is_one_indexed(self):
        result = fenwick_tree([1, 2, 3, 4], 0, 0).result

        assert result.tree == [0, 1, 3, 3, 10]

    def test_operations_cover_build_and_update(self):
        result = fenwick_tree([1, 1], 1, 1).result

        # Build: 1 -> 2, 2; update at 1: 2
        assert [op.index for op in result.operations] == [1, 2, 2, 2]
        assert all(op.operation == "update" for op in result.operations)

    @pytest.mark.parametrize("index", [-1, 5])
    def test_index_out_of_range_rejected(self, index):
        with pytest.raises(InvalidInputError):
            fenwick_tree([1, 2, 3, 4, 5], index, 1)

    def test_empty_rewards_rejected(self):
        with pytest.raises(InvalidInputError):
            fenwick_tree([], 0, 1)

    def test_visualization_marks_updated_slots(self):
        result = fenwick_tree([1, 2, 3, 4, 5], 1, 5)
        updated = [d["index"] for d in result.visualization.data if d["isUpdated"]]

        assert result.visualization.type is VisualizationType.TREE
        assert updated == [2, 4]


class TestGreedy:
    """Tests for greedy reward-per-time ranking."""

    def test_sorted_by_ratio_descending(self):
        activities = [{"reward": 3, "time": 1}, {"reward": 4, "time": 2}, {"reward": 6, "time": 2}]

        result = greedy(activities).result

        assert [a.index for a in result.sorted] == [0, 2, 1]
        assert [a.ratio for a in result.sorted] == [3, 3, 2]

    def test_takes_every_activity(self):
        result = greedy([Activity(reward=3, time=1), Activity(reward=4, time=2), Activity(reward=6, time=2)]).result

        assert len(result.selected_activities) == 3
        assert result.total_reward == 13
        assert result.total_time == 5
        assert result.average_ratio == pytest.approx(2.6)

    def test_quiz_style_activities(self):
        result = greedy([Activity(reward=r, time=1) for r in [1, 0, 1, 1]]).result

        assert result.total_reward == 3
        assert result.average_ratio == pytest.approx(0.75)
        assert [a.index for a in result.sorted] == [0, 2, 3, 1]

    def test_empty_list_has_zero_ratio(self):
        result = greedy([]).result

        assert result.total_reward == 0
        assert result.total_time == 0
        assert result.average_ratio == 0

    @pytest.mark.parametrize("time", [0, -1])
    def test_non_positive_time_rejected(self, time):
        with pytest.raises(InvalidInputError):
            greedy([Activity(reward=1, time=time)])

    @pytest.mark.parametrize("activity", [{"reward": 1}, {"time": 2}, {}])
    def test_incomplete_mapping_rejected(self, activity):
        with pytest.raises(InvalidInputError):
            greedy([activity])

    def test_mapping_activities_accepted(self):
        result = greedy([{"reward": 2, "time": 1}, {"reward": 1, "time": 1}]).result

        assert result.total_reward == 3

    def test_bar_visualization_order(self):
        result = greedy([Activity(reward=1, time=2), Activity(reward=1, time=1)])

        assert [d["activity"] for d in result.visualization.data] == ["Activity 2", "Activity 1"]
        assert [d["order"] for d in result.visualization.data] == [1, 2]


class TestVariableRatio:
    """Tests for variable ratio reinforcement."""

    def test_current_ratio_cycles_schedule(self, rng):
        result = variable_ratio(5, [2, 3, 4, 5], rng).result

        assert result.current_ratio == 3
        assert result.reward_probability == pytest.approx(1 / 3)
        assert result.avg_ratio == pytest.approx(3.5)

    def test_history_replays_every_response(self, rng):
        result = variable_ratio(6, [2, 3, 4, 5], rng).result

        assert [h.response for h in result.reinforcement_history] == [1, 2, 3, 4, 5, 6]
        assert [h.ratio for h in result.reinforcement_history] == [2, 3, 4, 5, 2, 3]
        assert result.total_rewards == sum(h.rewarded for h in result.reinforcement_history)

    def test_ratio_one_always_rewards(self, rng):
        result = variable_ratio(4, [1], rng).result

        assert result.should_reward is True
        assert result.total_rewards == 4

    def test_zero_responses(self, rng):
        result = variable_ratio(0, [2, 3], rng).result

        assert result.current_ratio == 2
        assert result.reinforcement_history == []
        assert result.total_rewards == 0

    def test_seeded_draws_repeat(self):
        first = variable_ratio(10, [2, 3, 4, 5], random.Random(3)).result
        second = variable_ratio(10, [2, 3, 4, 5], random.Random(3)).result

        assert first.should_reward == second.should_reward
        assert first.total_rewards == second.total_rewards

    @pytest.mark.parametrize("schedule", [[], [0, 2], [3, -1]])
    def test_invalid_schedule_rejected(self, schedule):
        with pytest.raises(InvalidInputError):
            variable_ratio(3, schedule)

    def test_negative_responses_rejected(self):
        with pytest.raises(InvalidInputError):
            variable_ratio(-1, [2])


class TestMDP:
    """Tests for fixed-sweep value iteration."""

    def test_absorbing_state_converges_geometrically(self):
        result = mdp([[0], [1], [2]], [1, 0, 1], [1, 2, 2], discount=0.9, iterations=5).result

        expected_last = sum(0.9 ** k for k in range(5))
        assert result.final_values[2] == pytest.approx(expected_last)
        assert result.optimal_value == pytest.approx(expected_last)
        assert len(result.iterations) == 5

    def test_first_sweep_equals_rewards(self):
        result = mdp([[0], [1]], [2, 3], [1, 1]).result

        assert result.iterations[0].values == [2, 3]
        assert result.iterations[0].max_change == pytest.approx(3)

    def test_missing_policy_entries_take_action_zero(self):
        result = mdp([[0], [1]], [1, 1], [], discount=0.5, iterations=2).result

        # Both states point at state 0
        assert result.final_values == [pytest.approx(1.5), pytest.approx(1.5)]

    def test_out_of_range_actions_are_clamped(self):
        clamped = mdp([[0], [1]], [0, 1], [99, -5], iterations=3).result
        explicit = mdp([[0], [1]], [0, 1], [1, 0], iterations=3).result

        assert clamped.final_values == pytest.approx(explicit.final_values)

    def test_zero_iterations(self):
        result = mdp([[0]], [1], [0], iterations=0).result

        assert result.final_values == [0.0]
        assert result.iterations == []

    def test_empty_states_rejected(self):
        with pytest.raises(InvalidInputError):
            mdp([], [], [])

    def test_short_rewards_rejected(self):
        with pytest.raises(InvalidInputError):
            mdp([[0], [1]], [1], [0, 0])

    def test_convergence_visualization(self):
        result = mdp([[0], [1]], [1, 0], [1, 1], iterations=3)

        assert result.visualization.type is VisualizationType.CONVERGENCE
        assert [d["iteration"] for d in result.visualization.data] == [0, 1, 2]
