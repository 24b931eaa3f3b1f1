"""
Itinerary planner output contract.

Structured day-by-day plan decoded from the itinerary planner's reply.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ItineraryDay(BaseModel):
    """A single day in the itinerary."""

    day: str = Field(description="Day label (e.g., 'Day 1 - 2025-04-03')")
    theme: str = Field(description="Day theme (e.g., 'Arrival & Exploration')")
    activities: List[str] = Field(default_factory=list, description="Planned activities")
    dining_recommendation: str = Field(description="Where or what to eat")


class ItineraryPlan(BaseModel):
    """Personalised itinerary produced by the itinerary planner."""

    destination_overview: str = Field(description="Short overview of the destination")
    highlights: List[str] = Field(default_factory=list, description="Trip highlights")
    daily_schedule: List[ItineraryDay] = Field(
        default_factory=list, description="Day-by-day schedule"
    )
    booking_reminders: List[str] = Field(
        default_factory=list, description="Things to book ahead"
    )
    estimated_budget: float = Field(ge=0, description="Estimated budget per traveller")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "destination_overview": "Osaka pairs street food with easy day trips.",
                "highlights": ["Dotonbori night walk", "Day trip to Nara"],
                "daily_schedule": [
                    {
                        "day": "Day 1 - 2025-04-03",
                        "theme": "Arrival & Exploration",
                        "activities": ["Check in", "Kuromon market"],
                        "dining_recommendation": "Ramen in Namba",
                    }
                ],
                "booking_reminders": ["Reserve a teamLab slot"],
                "estimated_budget": 1760.0,
            }
        }
    )
