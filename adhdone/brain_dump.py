#!/usr/bin/env python3
"""
Brain Dump Organizer

Groups free-text brain dump items into actionable buckets. Keyword rules
give a deterministic offline answer; when the network is available the
completion service is asked first and the rules take over on any failure.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import Settings
from .errors import CompletionError
from .models import AppState, BrainDumpRecord, BrainDumpResult
from .parsing import parse_json_object
from .prompts.adhdone import BRAIN_DUMP_PROMPT, DEFAULT_SYSTEM_PROMPT
from .providers import CompletionClient

MISCELLANEOUS = "Miscellaneous"
DEFAULT_FOCUS = "Choose one quick win task that takes under 5 minutes."


@dataclass(frozen=True)
class CategoryRule:
    """A bucket label and the keywords that put an item into it."""
    label: str
    keywords: Sequence[str]
    _pattern: Any = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        pattern = re.compile("|".join(re.escape(k) for k in self.keywords), re.IGNORECASE)
        object.__setattr__(self, "_pattern", pattern)

    def matches(self, text: str) -> bool:
        return bool(self._pattern.search(text))


# Evaluated in order, first match wins
DEFAULT_CATEGORY_RULES = (
    CategoryRule("2-minute Wins", ("call", "email", "text", "pay", "tidy")),
    CategoryRule("Prep & Planning", ("plan", "prepare", "research", "outline")),
    CategoryRule("Deep Work", ("write", "design", "build", "develop", "analyze")),
    CategoryRule("Personal Care", ("cook", "exercise", "meditate", "laundry", "clean", "rest", "self")),
)


def normalize_items(items: Any) -> List[Any]:
    return list(items) if isinstance(items, (list, tuple)) else []


def _clean(item: Any) -> str:
    return "" if item is None else str(item).strip()


def focus_recommendation(categories: Dict[str, List[str]]) -> str:
    """Point at the first item of the fullest bucket; ties go to the bucket populated first."""
    populated = [(label, items) for label, items in categories.items() if items]
    if not populated:
        return DEFAULT_FOCUS
    label, items = max(populated, key=lambda pair: len(pair[1]))
    return f'Start with "{items[0]}" from "{label}" today.'


def summarize(categories: Dict[str, List[str]]) -> str:
    item_count = sum(len(items) for items in categories.values())
    category_count = sum(1 for items in categories.values() if items)
    return f"Organized {item_count} items into {category_count or 1} categories."


def categorize(items: Sequence[Any], rules: Sequence[CategoryRule] = DEFAULT_CATEGORY_RULES) -> Dict[str, List[str]]:
    """Bucket non-blank items by the first matching rule, preserving first-populated order."""
    categories: Dict[str, List[str]] = {}
    for item in items:
        text = _clean(item)
        if not text:
            continue
        label = next((rule.label for rule in rules if rule.matches(text)), MISCELLANEOUS)
        categories.setdefault(label, []).append(text)
    return categories


def fallback_brain_dump(items: Sequence[Any], rules: Sequence[CategoryRule] = DEFAULT_CATEGORY_RULES) -> BrainDumpResult:
    categories = categorize(items, rules)
    return BrainDumpResult(
        categories=categories,
        focus_recommendation=focus_recommendation(categories),
        summary=summarize(categories),
    )


class BrainDumpOrganizer:
    """
    Categorizes brain dumps and keeps the raw submissions in ``state.brain_dump_history``.
    """

    def __init__(
        self,
        state: AppState,
        completion_client: CompletionClient,
        settings: Settings,
        save_state: Callable[[], bool],
        rules: Sequence[CategoryRule] = DEFAULT_CATEGORY_RULES,
    ):
        self.state = state
        self.completion_client = completion_client
        self.settings = settings
        self.save_state = save_state
        self.rules = tuple(rules)
        self.logger = logging.getLogger("adhdone.brain_dump")

    def _record(self, items: List[Any]) -> None:
        self.state.brain_dump_history.append(
            BrainDumpRecord(items=list(items), timestamp=datetime.now(timezone.utc).isoformat())
        )
        self.save_state()

    def _parse_result(self, parsed: Dict[str, Any], text: str) -> Optional[BrainDumpResult]:
        """Coerce model JSON into a BrainDumpResult, or None if it has no usable categories."""
        raw_categories = parsed.get("categories")
        if not isinstance(raw_categories, dict):
            return None

        categories: Dict[str, List[str]] = {}
        for label, values in raw_categories.items():
            if isinstance(values, str):
                values = [values]
            elif not isinstance(values, list):
                continue
            cleaned = [_clean(v) for v in values if _clean(v)]
            if cleaned:
                categories[str(label)] = cleaned

        focus = parsed.get("focusRecommendation")
        summary = parsed.get("summary")
        return BrainDumpResult(
            categories=categories,
            focus_recommendation=focus.strip() if isinstance(focus, str) and focus.strip() else focus_recommendation(categories),
            summary=summary.strip() if isinstance(summary, str) and summary.strip() else summarize(categories),
            raw_response=text,
        )

    async def organize(self, items: Any, force_fallback: bool = False) -> BrainDumpResult:
        """
        Record a brain dump and categorize it.

        The submission is appended to the history before categorization, so
        the history holds every raw submission whatever the outcome.

        Args:
            items: Free-text items; anything other than a list counts as empty
            force_fallback: Skip the LLM path entirely

        Returns:
            BrainDumpResult: Categories, a focus recommendation and a summary
        """
        items = normalize_items(items)
        self._record(items)

        if not self.settings.network_available or force_fallback:
            result = fallback_brain_dump(items, self.rules)
            self.logger.info(f"Brain dump organized offline: {result.summary}")
            return result

        prompt = BRAIN_DUMP_PROMPT.format(items="".join(f"\n- {_clean(item)}" for item in items))
        try:
            text = await self.completion_client.request_completion(
                messages=[
                    {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_output_tokens=800,
            )
        except CompletionError as e:
            self.logger.warning(f"Falling back to heuristic brain dump: {e}")
            result = fallback_brain_dump(items, self.rules)
            result.error = str(e)
            return result

        parsed = parse_json_object(text)
        result = self._parse_result(parsed, text) if parsed is not None else None
        if result is None:
            self.logger.warning("Unusable brain dump answer from model, using heuristic")
            result = fallback_brain_dump(items, self.rules)
            result.raw_response = text
            return result

        self.logger.info(f"Brain dump organized by model: {len(result.categories)} categories")
        return result
