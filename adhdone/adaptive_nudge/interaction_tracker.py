#!/usr/bin/env python3
"""
Task Interaction Tracker for Adaptive Nudge Engine

Keeps a bounded history of reminder interactions per task and the count of
consecutive skips, which is what decides whether a suggestion is due.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from ..errors import InvalidArgument
from ..models import (
    RESETTING_ACTIONS,
    SKIP,
    AppState,
    InteractionEntry,
    ReminderSummary,
    TaskState,
)

RECENT_INTERACTIONS = 5


class InteractionTracker:
    """
    Records reminder interactions into the shared AppState.

    The tracker owns ``state.tasks``. Every mutation is followed by a call to
    ``save_state`` so the stored copy never lags behind.
    """

    def __init__(self, state: AppState, save_state: Callable[[], bool], history_limit: int = 50):
        """
        Initialize the interaction tracker.

        Args:
            state: The application state to mutate
            save_state: Persists the whole state; failures are reported, not raised
            history_limit: Maximum interactions kept per task
        """
        self.state = state
        self.save_state = save_state
        self.history_limit = history_limit
        self.logger = logging.getLogger("adhdone.adaptive_nudge.interaction_tracker")

    def get_task(self, task_id: str) -> Optional[TaskState]:
        return self.state.tasks.get(task_id)

    def _get_or_create_task(self, task_id: str) -> TaskState:
        task_state = self.state.tasks.get(task_id)
        if task_state is None:
            task_state = TaskState()
            self.state.tasks[task_id] = task_state
            self.logger.info(f"Tracking new task {task_id}")
        return task_state

    def _track_history(self, task_state: TaskState, entry: InteractionEntry) -> None:
        task_state.history.append(entry)
        overflow = len(task_state.history) - self.history_limit
        if overflow > 0:
            del task_state.history[:overflow]

    def record_interaction(
        self,
        task_id: str,
        action: str,
        timestamp: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ReminderSummary:
        """
        Record one interaction with a task's reminder.

        ``skip`` increments the consecutive skip count, ``complete`` and
        ``snooze`` reset it, any other action is only logged in the history.

        Args:
            task_id: Identifier of the task the reminder belongs to
            action: What the user did with the reminder
            timestamp: ISO-8601 time of the interaction (defaults to now, UTC)
            context: Host-supplied details, stored with the entry

        Returns:
            ReminderSummary: Skip count and last interactions for the task

        Raises:
            InvalidArgument: If task_id or action is empty
        """
        if not task_id or not action:
            raise InvalidArgument("record_interaction requires a task_id and action")

        context = dict(context or {})
        task_state = self._get_or_create_task(task_id)

        if action == SKIP:
            task_state.consecutive_skips += 1
        elif action in RESETTING_ACTIONS:
            task_state.consecutive_skips = 0

        entry = InteractionEntry(
            action=action,
            timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
            context=context,
        )
        self._track_history(task_state, entry)
        self.save_state()

        self.logger.debug(
            f"Recorded {action} for {task_id} "
            f"(consecutive_skips={task_state.consecutive_skips}, history={len(task_state.history)})"
        )

        return ReminderSummary(
            task_id=task_id,
            consecutive_skips=task_state.consecutive_skips,
            recent_interactions=list(task_state.history[-RECENT_INTERACTIONS:]),
            context=context,
        )

    def reset(self, task_id: str) -> bool:
        """
        Forget a task's history and its last suggestion.

        Returns:
            bool: True if anything was removed
        """
        if not task_id:
            return False
        removed_task = self.state.tasks.pop(task_id, None)
        removed_suggestion = self.state.last_suggestion.pop(task_id, None)
        self.save_state()
        removed = removed_task is not None or removed_suggestion is not None
        if removed:
            self.logger.info(f"Reset history for task {task_id}")
        return removed
