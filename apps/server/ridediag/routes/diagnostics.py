"""Diagnostics endpoints: sensor inputs, session lifecycle, snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from ..api_models import (
    CapabilitiesRequest,
    DiagnosticsSnapshotResponse,
    HealthReportRequest,
    PermissionsRequest,
    RawSampleRequest,
    StatusResponse,
)
from ..domain_models import (
    CapabilitiesReport,
    CollectionHealth,
    DiagnosticsPermissions,
    RawSample,
)

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_diagnostics_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.get("/api/diagnostics", response_model=DiagnosticsSnapshotResponse)
    async def get_diagnostics() -> DiagnosticsSnapshotResponse:
        """Current snapshot without re-evaluating."""
        return state.manager.snapshot().to_dict()

    @router.post("/api/diagnostics/permissions", response_model=StatusResponse)
    async def update_permissions(req: PermissionsRequest) -> StatusResponse:
        state.manager.update_permissions(DiagnosticsPermissions.from_dict(req.model_dump()))
        return {"status": "ok"}

    @router.post("/api/diagnostics/capabilities", response_model=StatusResponse)
    async def update_capabilities(req: CapabilitiesRequest) -> StatusResponse:
        state.manager.update_capabilities(CapabilitiesReport.from_dict(req.model_dump()))
        return {"status": "ok"}

    @router.post("/api/diagnostics/samples", response_model=StatusResponse)
    async def record_sample(req: RawSampleRequest) -> StatusResponse:
        state.manager.record_sample(
            RawSample(
                timestamp_ms=req.timestamp_ms,
                has_motion=req.has_motion,
                gps_timestamp_ms=req.gps_timestamp_ms,
            )
        )
        return {"status": "ok"}

    @router.post("/api/diagnostics/health", response_model=DiagnosticsSnapshotResponse)
    async def update_health(req: HealthReportRequest) -> DiagnosticsSnapshotResponse:
        health = CollectionHealth.from_dict(req.model_dump())
        return state.manager.update_health(health, state.now_ms()).to_dict()

    @router.post("/api/diagnostics/tick", response_model=DiagnosticsSnapshotResponse)
    async def tick() -> DiagnosticsSnapshotResponse:
        return state.manager.tick(state.now_ms()).to_dict()

    @router.post("/api/diagnostics/session/start", response_model=DiagnosticsSnapshotResponse)
    async def start_session() -> DiagnosticsSnapshotResponse:
        return state.manager.start_session(state.now_ms()).to_dict()

    @router.post("/api/diagnostics/session/stop", response_model=DiagnosticsSnapshotResponse)
    async def stop_session() -> DiagnosticsSnapshotResponse:
        return state.manager.stop_session(state.now_ms()).to_dict()

    @router.post("/api/diagnostics/reset", response_model=DiagnosticsSnapshotResponse)
    async def reset_all() -> DiagnosticsSnapshotResponse:
        return state.manager.reset_all(state.now_ms()).to_dict()

    return router
