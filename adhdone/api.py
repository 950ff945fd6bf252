#!/usr/bin/env python3
"""
ADHDone public API.

``AdhdoneAI`` is the only surface the host application talks to. It owns
one AppState, hydrated from storage when the instance is built, and wires
the tracker, suggestion generator and brain dump organizer around it.
Separate instances share nothing, so tests can build as many as they like.
"""

import asyncio
import copy
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from .adaptive_nudge import InteractionTracker, SuggestionGenerator
from .brain_dump import BrainDumpOrganizer
from .config import Settings, load_settings
from .models import AppState, BrainDumpResult, Suggestion
from .prompts.adhdone import DEFAULT_SYSTEM_PROMPT
from .providers import CompletionClient, ModelProvider, create_provider
from .storage import CredentialStore, KeyValueStore, SQLAlchemyKeyValueStore, StateStore


class AdhdoneAI:
    """Reminder personalization and brain dump organization for the host app."""

    DEFAULT_SYSTEM_PROMPT = DEFAULT_SYSTEM_PROMPT

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[KeyValueStore] = None,
        state: Optional[AppState] = None,
        clock: Callable[[], float] = time.time,
        provider_factory: Callable[..., ModelProvider] = create_provider,
    ):
        """
        Build an instance.

        Args:
            settings: Configuration (defaults to ``load_settings()``)
            backend: Key-value store (defaults to SQLite at the configured path)
            state: Use this state instead of loading it from storage
            clock: Returns the current time in epoch seconds
            provider_factory: Builds completion providers from a model name
        """
        self.settings = settings or load_settings()
        self.logger = logging.getLogger("adhdone.api")

        if backend is None:
            backend = SQLAlchemyKeyValueStore(self.settings.resolve_db_path())
        self.state_store = StateStore(backend)
        self.credentials = CredentialStore(backend)
        self.state = state if state is not None else self.state_store.load_app_state()

        self.completion_client = CompletionClient(self.credentials, self.settings, provider_factory)
        self.tracker = InteractionTracker(self.state, self._persist_state, self.settings.history_limit)
        self.suggestions = SuggestionGenerator(
            self.state, self.completion_client, self.settings, self._persist_state, clock=clock
        )
        self.brain_dump = BrainDumpOrganizer(
            self.state, self.completion_client, self.settings, self._persist_state
        )

        self._task_locks: Dict[str, asyncio.Lock] = {}

    def _persist_state(self) -> bool:
        return self.state_store.save_app_state(self.state)

    def _lock_for(self, task_id: str) -> asyncio.Lock:
        lock = self._task_locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._task_locks[task_id] = lock
        return lock

    # Credentials

    def set_api_key(self, key: Optional[str]) -> None:
        self.credentials.set(key)

    def get_api_key(self) -> str:
        return self.credentials.get()

    # Reminders

    async def record_reminder_interaction(
        self,
        task_id: str,
        action: str,
        timestamp: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        on_suggestion: Optional[Callable[[Suggestion], Any]] = None,
        force_fallback: bool = False,
    ) -> Optional[Suggestion]:
        """
        Record a reminder interaction and return a suggestion if one is due.

        Interactions for the same task are serialized, so concurrent skips
        neither lose increments nor produce two suggestions.

        Args:
            task_id: Task the reminder belongs to
            action: 'skip', 'complete', 'snooze' or any other label
            timestamp: ISO-8601 time of the interaction (defaults to now)
            context: Host details such as description, reminder_interval_minutes, baseline_step
            on_suggestion: Called (or awaited) with the suggestion when one is produced
            force_fallback: Use the heuristic path even if the network is available

        Returns:
            Suggestion or None

        Raises:
            InvalidArgument: If task_id or action is missing
        """
        async with self._lock_for(task_id or ""):
            summary = self.tracker.record_interaction(task_id, action, timestamp=timestamp, context=context)
            return await self.suggestions.maybe_suggest(
                summary,
                self.tracker.get_task(task_id),
                on_suggestion=on_suggestion,
                force_fallback=force_fallback,
            )

    def get_last_suggestion(self, task_id: str) -> Optional[Suggestion]:
        suggestion = self.state.last_suggestion.get(task_id)
        return copy.deepcopy(suggestion) if suggestion else None

    def reset_task_history(self, task_id: str) -> None:
        self.tracker.reset(task_id)
        lock = self._task_locks.get(task_id)
        if lock is not None and not lock.locked():
            del self._task_locks[task_id]

    # Brain dumps

    async def organize_brain_dump(self, items: List[str], force_fallback: bool = False) -> BrainDumpResult:
        return await self.brain_dump.organize(items, force_fallback=force_fallback)

    # Misc

    def get_state(self) -> AppState:
        """Return a deep copy of the state; changing it has no effect on this instance."""
        return copy.deepcopy(self.state)

    async def request_openai(self, messages: List[Dict[str, Any]], **options) -> str:
        """
        Send a bespoke prompt straight to the completion client.

        Unlike the other entry points, completion errors propagate.
        """
        return await self.completion_client.request_completion(messages, **options)
