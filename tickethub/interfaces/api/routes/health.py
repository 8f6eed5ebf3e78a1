"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from tickethub import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "tickethub"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "TicketHub Search API",
        "version": __version__,
        "description": "Full-text search over tickets and comments",
        "docs": "/docs",
    }
