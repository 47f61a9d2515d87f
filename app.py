"""
Loss Mitigation Calculator API

Entry point for the HTTP service exposing the loss-mitigation calculators:
- Ratio, reserve and contribution tests
- Servicing payment calculations
- Payment deferral eligibility
- Composite workout-option evaluation

Run with ``uvicorn app:app``.
"""

from core.config import configure_logging, load_settings

# Load environment variables FIRST - before building the application
settings = load_settings()
configure_logging(settings.log_level)

from typing import Dict
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.calculators import router as calculators_router
from lossmit import __version__

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.api_title,
    description="Loss-mitigation eligibility tests and calculations for mortgage servicing",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(calculators_router)
logger.info(f"{settings.api_title} {__version__} ready")


@app.get("/", response_model=Dict[str, str])
async def root() -> Dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": settings.api_title,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "status": "running",
    }


@app.get("/health", response_model=Dict[str, str])
async def health_check() -> Dict[str, str]:
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy", "service": settings.api_title}
