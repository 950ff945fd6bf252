#!/usr/bin/env python3
"""
Tests for the brain dump organizer: keyword rules, history logging and the
LLM path with its fallbacks.
"""
import json
import pytest

from adhdone.brain_dump import (
    DEFAULT_CATEGORY_RULES,
    DEFAULT_FOCUS,
    CategoryRule,
    categorize,
    fallback_brain_dump,
)
from adhdone.errors import RequestFailed


# ============================================================================
# 1. KEYWORD RULES
# ============================================================================

class TestHeuristicCategorizer:
    """Tests for the offline categorizer."""

    def test_rule_order(self):
        assert [rule.label for rule in DEFAULT_CATEGORY_RULES] == [
            "2-minute Wins",
            "Prep & Planning",
            "Deep Work",
            "Personal Care",
        ]

    def test_first_matching_rule_wins(self):
        # "plan" (Prep & Planning) is checked before "write" (Deep Work)
        assert categorize(["write a plan"]) == {"Prep & Planning": ["write a plan"]}

    def test_case_insensitive(self):
        assert categorize(["CALL the dentist"]) == {"2-minute Wins": ["CALL the dentist"]}

    def test_blank_items_are_skipped(self):
        result = fallback_brain_dump(["", "   ", None, "  do laundry  "])

        assert result.categories == {"Personal Care": ["do laundry"]}
        assert result.summary == "Organized 1 items into 1 categories."

    def test_empty_input(self):
        result = fallback_brain_dump([])

        assert result.categories == {}
        assert result.focus_recommendation == DEFAULT_FOCUS
        assert result.summary == "Organized 0 items into 1 categories."

    def test_focus_picks_fullest_bucket(self):
        result = fallback_brain_dump(["write essay", "call bank", "email landlord"])

        assert result.focus_recommendation == 'Start with "call bank" from "2-minute Wins" today.'
        assert result.summary == "Organized 3 items into 2 categories."

    def test_focus_tie_goes_to_first_populated_bucket(self):
        result = fallback_brain_dump(["meditate", "research flights"])

        assert result.focus_recommendation == 'Start with "meditate" from "Personal Care" today.'

    def test_custom_rules(self):
        rules = (CategoryRule("Errands", ("groceries",)),)

        assert categorize(["buy groceries", "call mom"], rules) == {
            "Errands": ["buy groceries"],
            "Miscellaneous": ["call mom"],
        }


# ============================================================================
# 2. ORGANIZE THROUGH THE API
# ============================================================================

class TestOrganizeBrainDump:
    """Tests for organize_brain_dump."""

    @pytest.mark.asyncio
    async def test_forced_fallback_example(self, api):
        result = await api.organize_brain_dump(["call mom", "write report", "nonsense xyz"], force_fallback=True)

        assert result.categories == {
            "2-minute Wins": ["call mom"],
            "Deep Work": ["write report"],
            "Miscellaneous": ["nonsense xyz"],
        }
        assert list(result.categories) == ["2-minute Wins", "Deep Work", "Miscellaneous"]
        assert any(f'"{label}"' in result.focus_recommendation for label in result.categories)
        assert result.summary == "Organized 3 items into 3 categories."

    @pytest.mark.asyncio
    async def test_history_records_every_submission(self, api):
        await api.organize_brain_dump(["call mom"], force_fallback=True)
        await api.organize_brain_dump([], force_fallback=True)
        await api.organize_brain_dump("not a list", force_fallback=True)

        history = api.get_state().brain_dump_history
        assert [record.items for record in history] == [["call mom"], [], []]
        assert all(record.timestamp for record in history)

    @pytest.mark.asyncio
    async def test_history_recorded_even_when_llm_fails(self, api, provider):
        api.set_api_key("sk-test")
        provider.complete.side_effect = RequestFailed("Service unavailable", status_code=503)

        result = await api.organize_brain_dump(["pay rent"])

        assert result.error == "Service unavailable"
        assert result.categories == {"2-minute Wins": ["pay rent"]}
        assert len(api.get_state().brain_dump_history) == 1

    @pytest.mark.asyncio
    async def test_llm_categories(self, api, provider):
        api.set_api_key("sk-test")
        answer = {
            "categories": {"Today": ["pay rent", "  "], "Later": "plan trip", "Ignored": 5},
            "focusRecommendation": "Pay rent first.",
            "summary": "Two groups.",
        }
        provider.complete.return_value = json.dumps(answer)

        result = await api.organize_brain_dump(["pay rent", "plan trip"])

        assert result.categories == {"Today": ["pay rent"], "Later": ["plan trip"]}
        assert result.focus_recommendation == "Pay rent first."
        assert result.summary == "Two groups."
        assert result.raw_response == json.dumps(answer)

        kwargs = provider.complete.await_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_output_tokens"] == 800
        assert "\n- pay rent\n- plan trip" in provider.complete.await_args.args[0][1]["content"]

    @pytest.mark.asyncio
    async def test_llm_missing_focus_and_summary_are_computed(self, api, provider):
        api.set_api_key("sk-test")
        provider.complete.return_value = '{"categories": {"Now": ["email boss", "call mom"]}}'

        result = await api.organize_brain_dump(["email boss", "call mom"])

        assert result.focus_recommendation == 'Start with "email boss" from "Now" today.'
        assert result.summary == "Organized 2 items into 1 categories."

    @pytest.mark.asyncio
    async def test_unparseable_llm_answer_falls_back(self, api, provider):
        api.set_api_key("sk-test")
        provider.complete.return_value = "Here are your groups: ..."

        result = await api.organize_brain_dump(["call mom"])

        assert result.categories == {"2-minute Wins": ["call mom"]}
        assert result.raw_response == "Here are your groups: ..."
        assert result.error is None

    @pytest.mark.asyncio
    async def test_llm_answer_without_categories_falls_back(self, api, provider):
        api.set_api_key("sk-test")
        provider.complete.return_value = '{"summary": "nothing"}'

        result = await api.organize_brain_dump(["write poem"])

        assert result.categories == {"Deep Work": ["write poem"]}
        assert result.raw_response == '{"summary": "nothing"}'

    @pytest.mark.asyncio
    async def test_missing_key_falls_back(self, api, provider):
        result = await api.organize_brain_dump(["tidy desk"])

        assert result.error == "Missing OpenAI API key"
        assert result.categories == {"2-minute Wins": ["tidy desk"]}
        provider.complete.assert_not_called()
