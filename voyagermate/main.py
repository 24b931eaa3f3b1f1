"""
FastAPI application entry point.

Assembles the FastAPI app with the workflow router.
"""

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voyagermate.workflows.workflow_api import router as workflow_router


# ============================================================================
# Logging configuration (single source of truth for all workflows)
# ============================================================================
LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"
)

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,  # Override any prior basicConfig calls
)

# Quiet noisy third-party loggers
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)


# Create FastAPI app
app = FastAPI(
    title="VoyagerMate",
    description="Travel-planning workflows built with LangGraph and OpenAI",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(workflow_router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "VoyagerMate",
        "version": "0.1.0",
        "workflows": {
            "sequential": "/api/workflows/sequential",
            "parallel": "/api/workflows/parallel",
            "routing": "/api/workflows/route",
            "refinement": "/api/workflows/refine",
            "orchestrator_workers": "/api/workflows/orchestrator-workers",
            "multi_agent": "/api/workflows/multi-agent",
            "itinerary": "/api/workflows/itinerary",
        },
    }


@app.get("/health")
async def health():
    """Global health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
