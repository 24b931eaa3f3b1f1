"""Travel tools and expert delegates callable by the model."""

from voyagermate.tools.travel_tools import build_travel_tools
from voyagermate.tools.experts import DelegationBudget, DelegationLimitError, build_expert_tools

__all__ = [
    "build_travel_tools",
    "DelegationBudget",
    "DelegationLimitError",
    "build_expert_tools",
]
