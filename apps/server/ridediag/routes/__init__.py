"""Route package: assembles domain-specific sub-routers into one APIRouter.

Each sub-module defines a ``create_*_routes(state)`` function that returns
an ``APIRouter`` with endpoints scoped to a single domain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from .debug import create_debug_routes
from .diagnostics import create_diagnostics_routes
from .health import create_health_routes

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_router(state: RuntimeState) -> APIRouter:
    """Assemble all domain-specific route groups into one router."""
    router = APIRouter()
    router.include_router(create_health_routes(state))
    router.include_router(create_diagnostics_routes(state))
    router.include_router(create_debug_routes(state))
    return router
