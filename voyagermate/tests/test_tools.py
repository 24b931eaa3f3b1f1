"""
Tests for the deterministic travel tools.
"""

from datetime import date

import pytest

from voyagermate.tools.travel_tools import (
    build_travel_tools,
    estimate_budget,
    find_attractions,
    travel_gap_checker,
    validate_calendar,
)


class TestFindAttractions:
    def test_known_city_case_insensitive(self):
        assert find_attractions("TOKYO") == [
            "Tsukiji outer market tasting",
            "Ghibli Museum",
            "Mount Takao hike",
        ]

    def test_limit(self):
        assert find_attractions("rome", 1) == ["Colosseum tour"]

    def test_negative_limit(self):
        assert find_attractions("rome", -2) == []

    def test_unknown_city(self):
        assert find_attractions("Reykjavik") == ["Curate experiences locally upon arrival"]


class TestEstimateBudget:
    @pytest.mark.parametrize(
        "city,nights,expected",
        [("Rome", 3, 555.0), ("bali", 7, 770.0), ("Osaka", 2, 300.0), ("tokyo", 0, 0.0)],
    )
    def test_estimate(self, city, nights, expected):
        assert estimate_budget(city, nights) == expected


class TestTravelGapChecker:
    def test_short_trip(self):
        result = travel_gap_checker(date(2025, 4, 3), date(2025, 4, 5))
        assert result.startswith("Trip is very short")

    def test_long_trip(self):
        result = travel_gap_checker(date(2025, 4, 1), date(2025, 4, 20))
        assert "rest day every 4 days" in result

    @pytest.mark.parametrize("nights", [3, 14])
    def test_balanced_bounds(self, nights):
        start = date(2025, 4, 1)
        result = travel_gap_checker(start, date.fromordinal(start.toordinal() + nights))
        assert result.startswith("Duration looks balanced")


class TestValidateCalendar:
    TODAY = date(2025, 3, 1)

    def test_future_weekend_date(self):
        result = validate_calendar("2025-04-05", today=self.TODAY)

        assert result == (
            "Date 2025-04-05 is 35 days from now. It falls on a Saturday. "
            "This is a weekend day. Month: April (Spring in Northern Hemisphere)."
        )

    def test_past_date(self):
        result = validate_calendar("2025-01-15", today=self.TODAY)
        assert result.startswith("WARNING: Date 2025-01-15 is in the past.")
        assert "Winter" in result
        assert "This is a weekday." in result

    def test_today(self):
        assert validate_calendar("2025-03-01", today=self.TODAY).startswith("Date 2025-03-01 is today.")

    def test_invalid_date(self):
        result = validate_calendar("01/04/2025", today=self.TODAY)
        assert result.startswith("ERROR: Invalid date format '01/04/2025'")

    def test_valid_timezone(self):
        result = validate_calendar("2025-07-01", timezone="Asia/Tokyo", today=self.TODAY)
        assert "Local timezone: Asia/Tokyo." in result
        assert "Current local time:" in result

    def test_invalid_timezone(self):
        result = validate_calendar("2025-07-01", timezone="Mars/Olympus", today=self.TODAY)
        assert "Note: Invalid timezone 'Mars/Olympus'" in result


class TestBuildTravelTools:
    def test_tool_names(self):
        assert [tool.name for tool in build_travel_tools()] == [
            "find_attractions",
            "estimate_budget",
            "travel_gap_checker",
            "calendar_validator",
        ]

    def test_gap_tool_parses_iso_dates(self):
        gap_tool = build_travel_tools()[2]
        result = gap_tool.invoke('{"start": "2025-04-01", "end": "2025-04-08"}')
        assert result.startswith("Duration looks balanced")

    def test_calendar_tool_does_not_expose_today(self):
        calendar_tool = build_travel_tools()[3]
        properties = calendar_tool.to_openai()["function"]["parameters"]["properties"]
        assert set(properties) == {"date_string", "timezone"}
