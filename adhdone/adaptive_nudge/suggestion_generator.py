#!/usr/bin/env python3
"""
Suggestion Generator for Adaptive Nudge Engine

Decides when a run of skipped reminders deserves a suggestion and produces
one. The LLM path is preferred; any failure on it degrades to a
deterministic heuristic that needs no network.

Goal: Always hand the host app a usable suggestion, never an exception,
when a task keeps getting skipped.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..config import Settings
from ..errors import CompletionError
from ..models import (
    AppState,
    RecommendedAdjustments,
    ReminderSummary,
    Suggestion,
    TaskState,
)
from ..parsing import coerce_positive_number, parse_json_object, round_half_up
from ..prompts.adhdone import DEFAULT_SYSTEM_PROMPT, REMINDER_ADJUSTMENT_PROMPT
from ..providers import CompletionClient

DEFAULT_START_STEP = "Set a 2-minute timer and only prep the very first thing."
DEFAULT_REMINDER_INTERVAL = 45
MIN_REMINDER_INTERVAL = 15
INTERVAL_SHRINK_FACTOR = 0.5
DEFAULT_LLM_MESSAGE = "Let's tweak this reminder with something gentler and more specific."


def heuristic_interval(previous_interval: Any) -> int:
    """Halve the previous interval, rounding half up, never going below 15 minutes."""
    previous = coerce_positive_number(previous_interval) or DEFAULT_REMINDER_INTERVAL
    return max(MIN_REMINDER_INTERVAL, round_half_up(previous * INTERVAL_SHRINK_FACTOR))


class SuggestionGenerator:
    """
    Produces reminder adjustments for tasks that keep being skipped.

    Only writes ``state.last_suggestion`` and the triggering task's
    ``last_suggestion_timestamp``.
    """

    def __init__(
        self,
        state: AppState,
        completion_client: CompletionClient,
        settings: Settings,
        save_state: Callable[[], bool],
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the suggestion generator.

        Args:
            state: The application state
            completion_client: Client used for the LLM path
            settings: Threshold, throttle window and network availability
            save_state: Persists the whole state
            clock: Returns the current time in epoch seconds
        """
        self.state = state
        self.completion_client = completion_client
        self.settings = settings
        self.save_state = save_state
        self.clock = clock
        self.logger = logging.getLogger("adhdone.adaptive_nudge.suggestion_generator")

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def is_throttled(self, task_state: TaskState, now_ms: int) -> bool:
        return now_ms - task_state.last_suggestion_timestamp < self.settings.throttle_seconds * 1000

    def is_due(self, task_state: TaskState, now_ms: int) -> bool:
        return (
            task_state.consecutive_skips >= self.settings.skip_threshold
            and not self.is_throttled(task_state, now_ms)
        )

    def fallback_suggestion(self, summary: ReminderSummary) -> Suggestion:
        """Build the deterministic suggestion used whenever the LLM path is unavailable."""
        context = summary.context or {}
        return Suggestion(
            task_id=summary.task_id,
            message=(
                f"You've skipped this task {summary.consecutive_skips} times. "
                "Try choosing a smaller first step and consider shortening the reminder interval."
            ),
            recommended_adjustments=RecommendedAdjustments(
                suggested_start_step=context.get("baseline_step") or DEFAULT_START_STEP,
                reminder_interval_minutes=heuristic_interval(context.get("reminder_interval_minutes")),
            ),
        )

    def _build_messages(self, summary: ReminderSummary) -> list:
        context = summary.context or {}
        interval = context.get("reminder_interval_minutes")
        recent = ", ".join(f"{entry.action} @ {entry.timestamp}" for entry in summary.recent_interactions)
        prompt = REMINDER_ADJUSTMENT_PROMPT.format(
            description=context.get("description") or "(no description)",
            reminder_interval=interval if interval is not None else "unknown",
            consecutive_skips=summary.consecutive_skips,
            recent_interactions=recent,
        )
        return [
            {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def _parse_suggestion(self, summary: ReminderSummary, parsed: Dict[str, Any]) -> Suggestion:
        """Fill a Suggestion from model JSON, taking heuristic values for unusable fields."""
        fallback = self.fallback_suggestion(summary).recommended_adjustments

        message = parsed.get("message")
        if not isinstance(message, str) or not message.strip():
            message = DEFAULT_LLM_MESSAGE

        start_step = parsed.get("suggestedStartStep")
        if not isinstance(start_step, str) or not start_step.strip():
            start_step = fallback.suggested_start_step

        interval = coerce_positive_number(parsed.get("reminderIntervalMinutes"))
        interval_minutes = round_half_up(interval) if interval else 0
        if interval_minutes < 1:
            interval_minutes = fallback.reminder_interval_minutes

        return Suggestion(
            task_id=summary.task_id,
            message=message.strip(),
            recommended_adjustments=RecommendedAdjustments(
                suggested_start_step=start_step.strip(),
                reminder_interval_minutes=interval_minutes,
            ),
            raw_response=parsed,
        )

    async def generate(self, summary: ReminderSummary, force_fallback: bool = False) -> Suggestion:
        """
        Produce a suggestion for the summarized task.

        Never raises for completion failures: the heuristic suggestion is
        returned instead, carrying the error message or the raw model text.

        Args:
            summary: Output of InteractionTracker.record_interaction
            force_fallback: Skip the LLM path entirely

        Returns:
            Suggestion: The generated suggestion
        """
        if not self.settings.network_available or force_fallback:
            return self.fallback_suggestion(summary)

        try:
            text = await self.completion_client.request_completion(
                messages=self._build_messages(summary),
                temperature=0.4,
                max_output_tokens=500,
            )
        except CompletionError as e:
            self.logger.warning(f"Falling back to heuristic suggestion for {summary.task_id}: {e}")
            suggestion = self.fallback_suggestion(summary)
            suggestion.error = str(e)
            return suggestion

        parsed = parse_json_object(text)
        if parsed is None:
            self.logger.warning(f"Unparseable suggestion from model for {summary.task_id}, using heuristic")
            suggestion = self.fallback_suggestion(summary)
            suggestion.raw_response = text
            return suggestion

        return self._parse_suggestion(summary, parsed)

    async def maybe_suggest(
        self,
        summary: ReminderSummary,
        task_state: TaskState,
        on_suggestion: Optional[Callable[[Suggestion], Any]] = None,
        force_fallback: bool = False,
    ) -> Optional[Suggestion]:
        """
        Generate and store a suggestion if one is due, otherwise return None.

        Storing the suggestion, stamping the task, persisting and calling
        ``on_suggestion`` always happen together.
        """
        now_ms = self.now_ms()
        if not self.is_due(task_state, now_ms):
            return None

        suggestion = await self.generate(summary, force_fallback=force_fallback)

        self.state.last_suggestion[summary.task_id] = suggestion
        task_state.last_suggestion_timestamp = now_ms
        self.save_state()
        self.logger.info(
            f"Suggestion generated for {summary.task_id} after {summary.consecutive_skips} skips "
            f"(interval={suggestion.recommended_adjustments.reminder_interval_minutes}m)"
        )

        if callable(on_suggestion):
            result = on_suggestion(suggestion)
            if asyncio.iscoroutine(result):
                await result

        return suggestion
