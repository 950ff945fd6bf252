#!/usr/bin/env python3
"""
Unit tests for the task interaction tracker.
"""
import pytest
from datetime import datetime
from unittest.mock import Mock

from adhdone.adaptive_nudge import InteractionTracker
from adhdone.errors import InvalidArgument
from adhdone.models import AppState, RecommendedAdjustments, Suggestion


@pytest.fixture
def save_state():
    return Mock(return_value=True)


@pytest.fixture
def tracker(save_state):
    return InteractionTracker(AppState(), save_state)


# ============================================================================
# 1. CONSECUTIVE SKIP COUNTING
# ============================================================================

class TestConsecutiveSkips:
    """Tests for the skip counter."""

    def test_skip_increments(self, tracker):
        for expected in (1, 2, 3):
            summary = tracker.record_interaction("task-1", "skip")
            assert summary.consecutive_skips == expected

    @pytest.mark.parametrize("action", ["complete", "snooze"])
    def test_complete_and_snooze_reset(self, tracker, action):
        for _ in range(7):
            tracker.record_interaction("task-1", "skip")

        summary = tracker.record_interaction("task-1", action)

        assert summary.consecutive_skips == 0
        assert tracker.get_task("task-1").consecutive_skips == 0

    def test_other_actions_leave_counter_alone(self, tracker):
        tracker.record_interaction("task-1", "skip")
        tracker.record_interaction("task-1", "skip")

        summary = tracker.record_interaction("task-1", "opened")

        assert summary.consecutive_skips == 2
        assert tracker.get_task("task-1").history[-1].action == "opened"

    def test_tasks_are_independent(self, tracker):
        tracker.record_interaction("task-1", "skip")
        tracker.record_interaction("task-2", "complete")
        tracker.record_interaction("task-1", "skip")

        assert tracker.get_task("task-1").consecutive_skips == 2
        assert tracker.get_task("task-2").consecutive_skips == 0

    @pytest.mark.parametrize("task_id,action", [("", "skip"), (None, "skip"), ("task-1", ""), ("task-1", None)])
    def test_missing_arguments_raise(self, tracker, save_state, task_id, action):
        with pytest.raises(InvalidArgument):
            tracker.record_interaction(task_id, action)

        assert tracker.state.tasks == {}
        save_state.assert_not_called()


# ============================================================================
# 2. HISTORY
# ============================================================================

class TestHistory:
    """Tests for the bounded interaction history."""

    def test_history_keeps_last_fifty_in_order(self, tracker):
        for i in range(60):
            tracker.record_interaction("task-1", "other", timestamp=f"t{i}")

        history = tracker.get_task("task-1").history
        assert len(history) == 50
        assert [entry.timestamp for entry in history] == [f"t{i}" for i in range(10, 60)]

    def test_custom_history_limit(self, save_state):
        tracker = InteractionTracker(AppState(), save_state, history_limit=3)
        for i in range(5):
            tracker.record_interaction("task-1", "skip", timestamp=str(i))

        assert [e.timestamp for e in tracker.get_task("task-1").history] == ["2", "3", "4"]

    def test_default_timestamp_is_iso8601(self, tracker):
        tracker.record_interaction("task-1", "skip")

        timestamp = tracker.get_task("task-1").history[0].timestamp
        assert datetime.fromisoformat(timestamp).tzinfo is not None

    def test_summary_has_last_five_and_context(self, tracker):
        for i in range(8):
            tracker.record_interaction("task-1", "skip", timestamp=f"t{i}")

        summary = tracker.record_interaction(
            "task-1", "skip", timestamp="t8", context={"description": "Write report"}
        )

        assert summary.task_id == "task-1"
        assert [e.timestamp for e in summary.recent_interactions] == ["t4", "t5", "t6", "t7", "t8"]
        assert summary.context == {"description": "Write report"}
        assert summary.recent_interactions[-1].context == {"description": "Write report"}

    def test_context_is_copied(self, tracker):
        context = {"description": "Laundry"}
        tracker.record_interaction("task-1", "skip", context=context)
        context["description"] = "changed"

        assert tracker.get_task("task-1").history[0].context == {"description": "Laundry"}

    def test_every_interaction_persists(self, tracker, save_state):
        tracker.record_interaction("task-1", "skip")
        tracker.record_interaction("task-1", "complete")

        assert save_state.call_count == 2


# ============================================================================
# 3. RESET
# ============================================================================

class TestReset:
    """Tests for forgetting a task."""

    def test_reset_removes_task_and_suggestion(self, tracker):
        tracker.record_interaction("task-1", "skip")
        tracker.state.last_suggestion["task-1"] = Suggestion(
            task_id="task-1",
            message="m",
            recommended_adjustments=RecommendedAdjustments("step", 20),
        )

        assert tracker.reset("task-1") is True
        assert tracker.get_task("task-1") is None
        assert "task-1" not in tracker.state.last_suggestion

    def test_reset_unknown_task_is_noop(self, tracker):
        tracker.record_interaction("task-1", "skip")

        assert tracker.reset("missing") is False
        assert tracker.get_task("task-1") is not None
