"""Tests for control-token detection and input sanitizing."""

import pytest

from booking_bot.conversation.intents import ControlIntent, detect_control_intent, sanitize_input


class TestDetectControlIntent:
    @pytest.mark.parametrize("text", ["hi", "Hello", "HEY!", "  hi.  ", "good morning"])
    def test_greetings(self, text):
        assert detect_control_intent(text) == ControlIntent.GREETING

    @pytest.mark.parametrize("text", ["restart", "Start over", "start_over", "reset"])
    def test_restart(self, text):
        assert detect_control_intent(text) == ControlIntent.RESTART

    @pytest.mark.parametrize("text", ["menu", "help", "back_to_menu"])
    def test_menu(self, text):
        assert detect_control_intent(text) == ControlIntent.MENU

    def test_info_keywords(self):
        assert detect_control_intent("specials") == ControlIntent.SPECIALS
        assert detect_control_intent("free_quote") == ControlIntent.QUOTE
        assert detect_control_intent("Customer reviews") == ControlIntent.REVIEWS

    @pytest.mark.parametrize(
        "text",
        ["Hilda", "12 Hillside Rd, Arlington", "hi there, I'm Sam", "they said hello", "", "3"],
    )
    def test_only_whole_messages_match(self, text):
        assert detect_control_intent(text) is None


class TestSanitizeInput:
    def test_trims_whitespace(self):
        result = sanitize_input("  Jordan  ", 100)
        assert result.text == "Jordan"
        assert not result.truncated

    def test_none_becomes_empty(self):
        assert sanitize_input(None, 100).text == ""

    def test_caps_length(self):
        result = sanitize_input("x" * 50, 10)
        assert result.text == "x" * 10
        assert result.truncated
