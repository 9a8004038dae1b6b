"""Tests for slot generation and booking-request parsing."""

import dataclasses

import pytest

from booking_bot.config import BusinessConfig
from booking_bot.tools.availability import (
    ParseError,
    ParseErrorReason,
    Slot,
    canonical_slot,
    extract_time,
    list_slots,
    parse_booking_request,
    slot_key,
    weekly_availability,
)
from tests.conftest import FIXED_NOW

BUSINESS = BusinessConfig(
    name="Test Steamers",
    open_hour=8,
    close_hour=18,
    window_days=7,
    excluded_weekdays=("Saturday", "Sunday"),
    workers=("Alice", "Bob", "Charlie"),
)


class TestCanonicalSlot:
    def test_spellings_collapse_to_one_form(self):
        a = parse_booking_request("2:00pm Tuesday", BUSINESS)
        b = parse_booking_request("2pm tuesday", BUSINESS)
        assert isinstance(a, Slot) and isinstance(b, Slot)
        assert a.key == b.key == "Tuesday 2:00pm"

    def test_minutes_zero_padded(self):
        assert canonical_slot("monday", 9, 5, "AM") == "Monday 9:05am"

    def test_slot_key_is_case_folded(self):
        assert slot_key(" Monday 10:00AM ") == slot_key("monday 10:00am")


class TestListSlots:
    def test_weekdays_only_whole_hours(self):
        slots = list_slots(FIXED_NOW, BUSINESS)
        days = {s.day for s in slots}
        assert days == {"Monday", "Tuesday", "Wednesday", "Thursday", "Friday"}
        assert len(slots) == 5 * 11
        assert all(s.minute == 0 for s in slots)

    def test_first_and_last_slot_of_day(self):
        monday = [s for s in list_slots(FIXED_NOW, BUSINESS) if s.day == "Monday"]
        assert monday[0].key == "Monday 8:00am"
        assert monday[-1].key == "Monday 6:00pm"
        assert monday[4].key == "Monday 12:00pm"

    def test_window_starts_today(self):
        slots = list_slots(FIXED_NOW, BUSINESS)
        assert slots[0].calendar_date == FIXED_NOW.date()

    def test_no_excluded_days_keeps_weekend(self):
        business = dataclasses.replace(BUSINESS, excluded_weekdays=())
        slots = list_slots(FIXED_NOW, business)
        assert len({s.day for s in slots}) == 7


class TestWeeklyAvailability:
    def test_bands(self):
        monday = weekly_availability(FIXED_NOW, (), BUSINESS)[0]
        assert monday.day == "Monday"
        assert monday.date == "2025-03-17"
        assert monday.morning == ["8:00am", "9:00am", "10:00am", "11:00am"]
        assert monday.afternoon == ["12:00pm", "1:00pm", "2:00pm", "3:00pm"]
        assert monday.evening == ["4:00pm", "5:00pm", "6:00pm"]

    def test_taken_slots_are_omitted_case_insensitively(self):
        days = weekly_availability(FIXED_NOW, ["monday 10:00AM"], BUSINESS)
        assert "10:00am" not in days[0].times
        assert len(days[0].times) == 10

    def test_fully_booked_day_stays_listed(self):
        taken = [s.key for s in list_slots(FIXED_NOW, BUSINESS) if s.day == "Monday"]
        days = weekly_availability(FIXED_NOW, taken, BUSINESS)
        assert days[0].day == "Monday"
        assert days[0].times == []
        assert len(days) == 5


class TestParseBookingRequest:
    def test_phrase_found_anywhere_in_text(self):
        result = parse_booking_request("Could you Book 10am Monday please", BUSINESS)
        assert isinstance(result, Slot)
        assert result.key == "Monday 10:00am"

    def test_no_match(self):
        result = parse_booking_request("next week sometime", BUSINESS)
        assert isinstance(result, ParseError)
        assert result.reason == ParseErrorReason.NO_MATCH
        assert "Book 10am Monday" in result.message

    @pytest.mark.parametrize("text", ["Book 13pm Monday", "Book 0am Monday", "Book 10:75am Monday"])
    def test_bad_time(self, text):
        result = parse_booking_request(text, BUSINESS)
        assert isinstance(result, ParseError)
        assert result.reason == ParseErrorReason.BAD_TIME

    @pytest.mark.parametrize("text", ["Book 8am Monday", "Book 6pm Friday", "Book 6:30pm Friday"])
    def test_within_hours(self, text):
        assert isinstance(parse_booking_request(text, BUSINESS), Slot)

    @pytest.mark.parametrize("text", ["Book 7am Monday", "Book 7pm Monday", "Book 12am Monday"])
    def test_outside_hours(self, text):
        result = parse_booking_request(text, BUSINESS)
        assert isinstance(result, ParseError)
        assert result.reason == ParseErrorReason.OUTSIDE_HOURS
        assert result.message.startswith("Business hours are 8am - 6pm")

    def test_noon_is_twelve_pm(self):
        result = parse_booking_request("12pm wednesday", BUSINESS)
        assert isinstance(result, Slot)
        assert result.hour24 == 12

    def test_empty_text(self):
        assert isinstance(parse_booking_request("", BUSINESS), ParseError)

    @pytest.mark.parametrize("text", ["Book10am Monday", "at10am monday"])
    def test_time_glued_to_preceding_word(self, text):
        result = parse_booking_request(text, BUSINESS)
        assert isinstance(result, Slot)
        assert result.key == "Monday 10:00am"

    def test_longer_number_is_not_read_as_an_hour(self):
        result = parse_booking_request("Book 110am Monday", BUSINESS)
        assert isinstance(result, ParseError)
        assert result.reason == ParseErrorReason.NO_MATCH


class TestExtractTime:
    def test_finds_time_token(self):
        assert extract_time("how about 2:30 pm?") == "2:30 pm"

    def test_no_time(self):
        assert extract_time("the first one") is None

    def test_glued_time_token(self):
        assert extract_time("at10am") == "10am"
