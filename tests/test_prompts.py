"""Tests for prompt construction and history conversion."""
from carbon_coach.api.v1.schemas.advice import HistoryMessage, SuggestionsRequest
from carbon_coach.api.v1.schemas.footprint import FootprintSnapshot
from carbon_coach.services.prompts import (
    build_chat_prompt,
    build_suggestions_prompt,
    describe_trend,
    format_tons,
    to_gemini_history,
)


def _history(roles):
    return [HistoryMessage(role=role, content=f"msg {i}") for i, role in enumerate(roles)]


class TestFormatting:
    def test_zero_is_not_missing(self):
        assert format_tons(0) == "0.00"
        assert format_tons(None) == "N/A"

    def test_two_decimals(self):
        assert format_tons(4.32628) == "4.33"

    def test_trend(self):
        assert describe_trend(10, 12) == "improving"
        assert describe_trend(12, 10) == "worsening"
        assert describe_trend(10, 10) == "stable"
        assert describe_trend(10, None) == "unknown"


class TestChatPrompt:
    def test_includes_numbers_and_missing_markers(self):
        prompt = build_chat_prompt(
            "How can I improve?",
            FootprintSnapshot(transport=4.3263, energy=0, total=12.47),
        )
        assert "Transport: 4.33" in prompt
        assert "Home Energy: 0.00" in prompt
        assert "Diet: N/A" in prompt
        assert "Waste: N/A" in prompt
        assert '"How can I improve?"' in prompt
        assert "not available" in prompt

    def test_previous_total_and_trend(self):
        prompt = build_chat_prompt("Am I improving?", FootprintSnapshot(total=10, previousTotal=12))
        assert "12.00 tons" in prompt
        assert "improving trend" in prompt

    def test_habit_text_is_verbatim(self):
        prompt = build_chat_prompt("Hi", None, "  I cycle to work and eat rice daily  ")
        assert '"I cycle to work and eat rice daily"' in prompt

    def test_no_habit_block_when_blank(self):
        assert "describes their habits" not in build_chat_prompt("Hi", None, "   ")


class TestSuggestionsPrompt:
    def test_requires_raw_array_of_three(self):
        request = SuggestionsRequest(transport=4.3, energy=5.2, diet=2.5, waste=0.4, total=12.4)
        prompt = build_suggestions_prompt(request, "an Indian audience")
        assert "an Indian audience" in prompt
        assert "exactly 3" in prompt
        assert "ONLY a raw JSON array" in prompt
        assert "Transport: 4.30 tons CO2" in prompt

    def test_habit_description(self):
        request = SuggestionsRequest(
            transport=1, energy=1, diet=1, waste=1, total=4, habitDescription="I fly monthly"
        )
        assert '"I fly monthly"' in build_suggestions_prompt(request, "everyone")


class TestGeminiHistory:
    def test_drops_greeting_and_maps_roles(self):
        turns = to_gemini_history(_history(["assistant", "user", "assistant"]))
        assert turns == [
            {"role": "user", "parts": ["msg 1"]},
            {"role": "model", "parts": ["msg 2"]},
        ]

    def test_ten_entries_truncated_to_last_six_starting_with_user(self):
        roles = ["assistant"] + ["user", "assistant"] * 4 + ["user"]
        turns = to_gemini_history(_history(roles))
        assert len(turns) <= 6
        assert turns[0]["role"] == "user"
        assert turns[-1]["parts"] == ["msg 9"]
        assert all(t["parts"] != ["msg 0"] for t in turns)

    def test_leading_model_turns_are_dropped(self):
        roles = ["assistant", "user", "assistant", "user", "assistant", "user", "assistant", "assistant", "user"]
        turns = to_gemini_history(_history(roles))
        # window is msgs 3..8; msg 3 is a user turn
        assert turns[0] == {"role": "user", "parts": ["msg 3"]}
        assert len(turns) == 6

    def test_window_of_only_model_turns_becomes_empty(self):
        assert to_gemini_history(_history(["assistant", "assistant", "assistant"])) == []

    def test_empty_history(self):
        assert to_gemini_history([]) == []
