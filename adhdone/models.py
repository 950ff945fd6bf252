"""
Data model for ADHDone.

All records are dataclasses with ``to_dict``/``from_dict`` so the whole
AppState can be written to the key-value store as one JSON document.
Hydration is per-field: missing fields take their defaults and malformed
records are dropped instead of poisoning the whole state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger("adhdone.models")

SKIP = "skip"
COMPLETE = "complete"
SNOOZE = "snooze"
RESETTING_ACTIONS = (COMPLETE, SNOOZE)

CONSECUTIVE_SKIPS_REASON = "consecutive-skips"


@dataclass(frozen=True)
class InteractionEntry:
    """A single reminder interaction. Never mutated after it is recorded."""
    action: str
    timestamp: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "timestamp": self.timestamp, "context": dict(self.context)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InteractionEntry":
        context = data.get("context")
        return cls(
            action=str(data["action"]),
            timestamp=str(data.get("timestamp", "")),
            context=dict(context) if isinstance(context, dict) else {},
        )


@dataclass
class TaskState:
    history: List[InteractionEntry] = field(default_factory=list)
    consecutive_skips: int = 0
    last_suggestion_timestamp: int = 0  # epoch milliseconds, 0 = never

    def to_dict(self) -> Dict[str, Any]:
        return {
            "history": [entry.to_dict() for entry in self.history],
            "consecutive_skips": self.consecutive_skips,
            "last_suggestion_timestamp": self.last_suggestion_timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskState":
        history = []
        for raw in data.get("history") or []:
            try:
                history.append(InteractionEntry.from_dict(raw))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Dropping malformed interaction entry: {e}")
        return cls(
            history=history,
            consecutive_skips=max(0, int(data.get("consecutive_skips", 0) or 0)),
            last_suggestion_timestamp=int(data.get("last_suggestion_timestamp", 0) or 0),
        )


@dataclass
class RecommendedAdjustments:
    suggested_start_step: str
    reminder_interval_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggested_start_step": self.suggested_start_step,
            "reminder_interval_minutes": self.reminder_interval_minutes,
        }


@dataclass
class Suggestion:
    """An adjustment proposed after a task was skipped repeatedly."""
    task_id: str
    message: str
    recommended_adjustments: RecommendedAdjustments
    reason: str = CONSECUTIVE_SKIPS_REASON
    raw_response: Optional[Any] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "task_id": self.task_id,
            "reason": self.reason,
            "message": self.message,
            "recommended_adjustments": self.recommended_adjustments.to_dict(),
        }
        if self.raw_response is not None:
            data["raw_response"] = self.raw_response
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Suggestion":
        adjustments = data.get("recommended_adjustments") or {}
        return cls(
            task_id=str(data["task_id"]),
            reason=data.get("reason", CONSECUTIVE_SKIPS_REASON),
            message=data.get("message", ""),
            recommended_adjustments=RecommendedAdjustments(
                suggested_start_step=adjustments.get("suggested_start_step", ""),
                reminder_interval_minutes=adjustments.get("reminder_interval_minutes", 0),
            ),
            raw_response=data.get("raw_response"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class BrainDumpRecord:
    items: List[Any]
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"items": list(self.items), "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrainDumpRecord":
        items = data.get("items")
        return cls(items=list(items) if isinstance(items, list) else [], timestamp=str(data.get("timestamp", "")))


@dataclass
class BrainDumpResult:
    categories: Dict[str, List[str]]
    focus_recommendation: str
    summary: str
    raw_response: Optional[Any] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "categories": {label: list(items) for label, items in self.categories.items()},
            "focus_recommendation": self.focus_recommendation,
            "summary": self.summary,
            "raw_response": self.raw_response,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class AppState:
    """Everything ADHDone persists, stored under one versioned key."""
    tasks: Dict[str, TaskState] = field(default_factory=dict)
    last_suggestion: Dict[str, Suggestion] = field(default_factory=dict)
    brain_dump_history: List[BrainDumpRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": {task_id: task.to_dict() for task_id, task in self.tasks.items()},
            "last_suggestion": {task_id: s.to_dict() for task_id, s in self.last_suggestion.items()},
            "brain_dump_history": [record.to_dict() for record in self.brain_dump_history],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AppState":
        """Hydrate state from stored JSON, defaulting every missing or malformed field."""
        state = cls()
        if not isinstance(data, dict):
            return state

        tasks = data.get("tasks")
        if isinstance(tasks, dict):
            for task_id, raw in tasks.items():
                try:
                    state.tasks[task_id] = TaskState.from_dict(raw)
                except (TypeError, ValueError, AttributeError) as e:
                    logger.warning(f"Dropping malformed task state for {task_id}: {e}")

        suggestions = data.get("last_suggestion")
        if isinstance(suggestions, dict):
            for task_id, raw in suggestions.items():
                try:
                    state.last_suggestion[task_id] = Suggestion.from_dict(raw)
                except (KeyError, TypeError, AttributeError) as e:
                    logger.warning(f"Dropping malformed suggestion for {task_id}: {e}")

        history = data.get("brain_dump_history")
        if isinstance(history, list):
            for raw in history:
                try:
                    state.brain_dump_history.append(BrainDumpRecord.from_dict(raw))
                except (TypeError, AttributeError) as e:
                    logger.warning(f"Dropping malformed brain dump record: {e}")

        return state


@dataclass
class ReminderSummary:
    """What the suggestion generator needs to know about a task after an interaction."""
    task_id: str
    consecutive_skips: int
    recent_interactions: List[InteractionEntry]
    context: Dict[str, Any] = field(default_factory=dict)
