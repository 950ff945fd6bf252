#!/usr/bin/env python3
"""
Adaptive Nudge Engine Module

Watches how the user reacts to reminders and proposes gentler ones when a
task keeps getting skipped.

Components:
- interaction_tracker: Per-task interaction history and consecutive skip count
- suggestion_generator: Throttled LLM/heuristic reminder adjustments
"""

from .interaction_tracker import InteractionTracker
from .suggestion_generator import SuggestionGenerator, heuristic_interval

__all__ = [
    'InteractionTracker',
    'SuggestionGenerator',
    'heuristic_interval',
]
