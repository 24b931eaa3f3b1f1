"""
VoyagerMate: travel-planning workflows over a chat completion model.

Modules:
- shared: completion port, OpenAI client, logging, contracts, error reports
- tools: deterministic travel tools and expert delegates
- workflows: the workflow services, their LangGraph graphs and HTTP router
- cli: command line entry point
- main: FastAPI application
"""

__version__ = "0.1.0"
