"""
API v1 endpoints.
"""

from .health import router as health_router
from .places import router as places_router

__all__ = ["health_router", "places_router"]
