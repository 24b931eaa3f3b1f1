"""
Trip context contract.

The immutable trip parameters captured by a surface (CLI or API) and handed
to exactly one workflow per run, plus the flattened text every prompt uses.
"""

from datetime import date
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TripContext(BaseModel):
    """
    Trip parameters shared by every step of a workflow run.

    Any field may be missing; missing and blank values are rendered as
    documented defaults, never as null.
    """

    model_config = ConfigDict(frozen=True)

    traveller_name: Optional[str] = Field(default=None, description="Traveller name")
    origin_city: Optional[str] = Field(default=None, description="Origin city")
    destination_city: Optional[str] = Field(default=None, description="Destination city")
    departure_date: Optional[date] = Field(
        default=None, description="Departure date (YYYY-MM-DD)"
    )
    return_date: Optional[date] = Field(default=None, description="Return date (YYYY-MM-DD)")
    budget_focus: Optional[str] = Field(
        default=None, description="Budget focus (e.g. budget, balanced, premium)"
    )
    interests: Tuple[str, ...] = Field(
        default=(), description="Traveller interest tags"
    )

    @field_validator("interests", mode="before")
    @classmethod
    def _split_interests(cls, value: Any) -> Any:
        """Accept a comma separated string as well as a list of tags."""
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)) or not all(isinstance(tag, str) for tag in value):
            raise ValueError("interests must be strings")
        return tuple(tag.strip() for tag in value if tag.strip())


def _default_value(value: Optional[str], fallback: str) -> str:
    return fallback if value is None or not value.strip() else value


def _format_date(value: Optional[date]) -> str:
    return "unscheduled" if value is None else value.isoformat()


def render_context(trip: Optional[TripContext]) -> str:
    """
    Flatten a trip into the context text consumed by every workflow step.

    Args:
        trip: Trip parameters; None renders the all-defaults context

    Returns:
        Multi-line context string
    """
    if trip is None:
        trip = TripContext()

    interests = ", ".join(trip.interests) if trip.interests else "unspecified"

    return (
        f"Traveller: {_default_value(trip.traveller_name, 'Guest Traveller')}\n"
        f"Route: {_default_value(trip.origin_city, 'Unknown')} to "
        f"{_default_value(trip.destination_city, 'Unknown')}\n"
        f"Dates: {_format_date(trip.departure_date)} to {_format_date(trip.return_date)}\n"
        f"Budget: {_default_value(trip.budget_focus, 'flexible')}\n"
        f"Interests: {interests}\n"
    )
