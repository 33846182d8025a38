"""Debug endpoints: recent diagnostics log feed."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from ..api_models import DebugLogResponse, StatusResponse

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_debug_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.get("/api/debug/log", response_model=DebugLogResponse)
    async def debug_log() -> DebugLogResponse:
        """Newest-first diagnostics log entries for the debug overlay."""
        return {"entries": state.debug_log.entries()}

    @router.delete("/api/debug/log", response_model=StatusResponse)
    async def clear_debug_log() -> StatusResponse:
        state.debug_log.clear()
        return {"status": "ok"}

    return router
