"""
Expert tools for the multi-agent delegate.

Each expert is a fresh persona completion exposed to the lead orchestrator
as a tool. A per-request DelegationBudget bounds how many experts the lead
may consult.
"""

import logging
import threading
from typing import List, NamedTuple

from pydantic import BaseModel, Field

from voyagermate.shared.llm.completion import CompletionPort, Tool


logger = logging.getLogger(__name__)


class DelegationLimitError(RuntimeError):
    """Raised when an expert is consulted after the budget is spent."""


class Expert(NamedTuple):
    tool_name: str
    description: str
    persona: str


EXPERTS: List[Expert] = [
    Expert(
        tool_name="ask_logistics_expert",
        description="Consult the travel logistics expert for flights, trains, and transfers",
        persona=(
            "You are a Travel Logistics Expert. Focus on routes, times, transit modes, "
            "and practical transfer details. Be precise."
        ),
    ),
    Expert(
        tool_name="ask_accommodation_expert",
        description="Consult the accommodation expert for hotels, areas to stay, and lodging advice",
        persona=(
            "You are a Hospitality & Accommodation Expert. Suggest specific neighborhoods "
            "and hotel types (boutique, luxury, budget) matching the traveller's style."
        ),
    ),
    Expert(
        tool_name="ask_activity_expert",
        description="Consult the local activity expert for things to do, culture, and dining",
        persona=(
            "You are a Local Experience Guide. Focus on cultural immersion, dining, "
            "hidden gems, and must-see attractions."
        ),
    ),
]


class ExpertQuery(BaseModel):
    query: str = Field(description="The specific question or request for the expert")


class DelegationBudget:
    """
    Counts expert consultations for one request.

    Thread-safe; ``spend`` raises once ``max_delegations`` have been used.
    """

    def __init__(self, max_delegations: int = 6):
        if max_delegations < 0:
            raise ValueError("max_delegations must not be negative")
        self.max_delegations = max_delegations
        self._used = 0
        self._lock = threading.Lock()

    @property
    def used(self) -> int:
        with self._lock:
            return self._used

    def spend(self, tool_name: str) -> None:
        with self._lock:
            if self._used >= self.max_delegations:
                raise DelegationLimitError(
                    f"Delegation budget of {self.max_delegations} consultation(s) exhausted; "
                    f"'{tool_name}' was not called. Answer with the information gathered so far."
                )
            self._used += 1


def _make_handler(expert: Expert, completion: CompletionPort, budget: DelegationBudget):
    def consult(query: str) -> str:
        budget.spend(expert.tool_name)
        logger.info(
            f"Consulting '{expert.tool_name}' ({budget.used}/{budget.max_delegations}) "
            f"| query_chars={len(query)}"
        )
        return completion.complete(expert.persona, query)

    return consult


def build_expert_tools(completion: CompletionPort, budget: DelegationBudget) -> List[Tool]:
    """
    Expert tools sharing one delegation budget.

    Args:
        completion: Port used for every expert consultation
        budget: Budget for the current request

    Returns:
        One Tool per expert
    """
    return [
        Tool(
            name=expert.tool_name,
            description=expert.description,
            args_model=ExpertQuery,
            handler=_make_handler(expert, completion, budget),
        )
        for expert in EXPERTS
    ]
