"""API v1: operational routes and the composition root."""

from app.api.v1.router import api_router

__all__ = ["api_router"]
