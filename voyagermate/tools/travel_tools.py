"""
Deterministic travel tools offered to the itinerary planner.

Each tool is a plain function plus a pydantic argument model; the model can
call them through the completion port's tool loop.
"""

from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

from voyagermate.shared.llm.completion import Tool


ATTRACTIONS = {
    "rome": ["Colosseum tour", "Sunset walk at Trastevere", "Day trip to Pompeii"],
    "tokyo": ["Tsukiji outer market tasting", "Ghibli Museum", "Mount Takao hike"],
    "barcelona": ["Sagrada Família early access", "Tapas crawl in El Born", "Costa Brava sail"],
}

FALLBACK_ATTRACTIONS = ["Curate experiences locally upon arrival"]

# Average daily spend per traveller, USD
AVERAGE_DAILY_BUDGET = {
    "rome": 185.0,
    "tokyo": 220.0,
    "barcelona": 170.0,
    "bali": 110.0,
}

DEFAULT_DAILY_BUDGET = 150.0

SEASONS = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Autumn", 10: "Autumn", 11: "Autumn",
}


# ============================================================================
# Tool functions
# ============================================================================


def find_attractions(city: str, limit: Optional[int] = None) -> List[str]:
    """Must-see experiences for a destination, at most ``limit`` of them."""
    attractions = ATTRACTIONS.get(city.strip().lower(), FALLBACK_ATTRACTIONS)
    if limit is None or limit >= len(attractions):
        return list(attractions)
    return attractions[: max(limit, 0)]


def estimate_budget(city: str, nights: int) -> float:
    """Base budget per traveller: nights times the city's average daily spend."""
    baseline = AVERAGE_DAILY_BUDGET.get(city.strip().lower(), DEFAULT_DAILY_BUDGET)
    return nights * baseline


def travel_gap_checker(start: date, end: date) -> str:
    """Suggest buffer days for a trip leaving ``start`` and returning ``end``."""
    nights = (end - start).days
    if nights < 3:
        return "Trip is very short. Add at least 1 buffer night to adjust to time zone changes."
    if nights > 14:
        return "Consider planning a rest day every 4 days to avoid burnout."
    return "Duration looks balanced. Add a flex day for unexpected discoveries."


def validate_calendar(
    date_string: str,
    timezone: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """
    Describe a date for trip planning: distance from today, weekday,
    season and, when a timezone is given, the current local time there.

    Args:
        date_string: Date in YYYY-MM-DD format
        timezone: Optional IANA timezone (e.g., Europe/Rome)
        today: Reference date (defaults to the current date)

    Returns:
        Human-readable description, or an ERROR line for unparseable dates
    """
    try:
        target = date.fromisoformat(date_string.strip())
    except ValueError:
        return (
            f"ERROR: Invalid date format '{date_string}'. "
            "Please use YYYY-MM-DD format (e.g., 2024-12-01)."
        )

    if today is None:
        today = date.today()

    parts = []
    if target < today:
        parts.append(f"WARNING: Date {date_string} is in the past.")
    elif target == today:
        parts.append(f"Date {date_string} is today.")
    else:
        parts.append(f"Date {date_string} is {(target - today).days} days from now.")

    weekday = target.strftime("%A")
    parts.append(f"It falls on a {weekday}.")
    parts.append("This is a weekend day." if target.weekday() >= 5 else "This is a weekday.")
    parts.append(
        f"Month: {target.strftime('%B')} ({SEASONS[target.month]} in Northern Hemisphere)."
    )

    if timezone and timezone.strip():
        try:
            zone = ZoneInfo(timezone.strip())
        except (ZoneInfoNotFoundError, ValueError):
            parts.append(f"Note: Invalid timezone '{timezone}' - using system default.")
        else:
            now_local = datetime.now(zone)
            parts.append(f"Local timezone: {zone.key}.")
            parts.append(f"Current local time: {now_local.strftime('%H:%M on %A, %B %d, %Y')}.")

    return " ".join(parts)


# ============================================================================
# Tool argument models
# ============================================================================


class AttractionsArgs(BaseModel):
    city: str = Field(description="Destination city")
    limit: Optional[int] = Field(default=None, description="Maximum number of items")


class BudgetArgs(BaseModel):
    city: str = Field(description="Destination city")
    nights: int = Field(ge=0, description="Number of nights")


class GapArgs(BaseModel):
    start: date = Field(description="Date you leave origin (YYYY-MM-DD)")
    end: date = Field(description="Date you depart destination (YYYY-MM-DD)")


class CalendarArgs(BaseModel):
    date_string: str = Field(description="Date to validate (YYYY-MM-DD format)")
    timezone: Optional[str] = Field(
        default=None,
        description="Optional timezone for local time context (e.g., Europe/Rome, Asia/Tokyo)",
    )


def build_travel_tools() -> List[Tool]:
    """Travel tools in the completion port's format."""
    return [
        Tool(
            name="find_attractions",
            description="Return must-see experiences for a destination",
            args_model=AttractionsArgs,
            handler=find_attractions,
        ),
        Tool(
            name="estimate_budget",
            description="Estimate base budget per traveller for a trip",
            args_model=BudgetArgs,
            handler=estimate_budget,
        ),
        Tool(
            name="travel_gap_checker",
            description="Suggest buffer days between travel legs",
            args_model=GapArgs,
            handler=travel_gap_checker,
        ),
        Tool(
            name="calendar_validator",
            description="Validate dates and provide calendar information for trip planning accuracy",
            args_model=CalendarArgs,
            handler=validate_calendar,
        ),
    ]
