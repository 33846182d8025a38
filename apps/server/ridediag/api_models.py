"""Pydantic request/response models for the ridediag HTTP API.

Separated from the route modules to keep routing logic distinct from data
contracts.  Request models accept the camelCase field names produced by
the browser collector as aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PermissionsRequest(BaseModel):
    # Unrecognised states are accepted here and treated as "prompt".
    motion: str = "prompt"
    location: str = "prompt"
    orientation: str | None = None


class CapabilityStatusModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supported_by_api: bool = Field(default=True, alias="supportedByApi")
    supported_in_practice: bool = Field(default=True, alias="supportedInPractice")


class CapabilitiesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gps: CapabilityStatusModel = Field(default_factory=CapabilityStatusModel)
    motion: CapabilityStatusModel = Field(
        default_factory=CapabilityStatusModel, alias="deviceMotion"
    )


class StreamHealthModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    samples_count: int | None = Field(default=None, ge=0, alias="samplesCount")
    observed_hz: float | None = Field(default=None, ge=0, alias="observedHz")
    last_sample_age_ms: float | None = Field(default=None, ge=0, alias="lastSampleAgeMs")
    accuracy_p95_m: float | None = Field(default=None, ge=0, alias="accuracyP95M")


class HealthReportRequest(BaseModel):
    gps: StreamHealthModel | None = None
    motion: StreamHealthModel | None = None


class RawSampleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp_ms: float = Field(alias="timestamp", allow_inf_nan=False)
    has_motion: bool = False
    gps_timestamp_ms: float | None = Field(default=None, allow_inf_nan=False)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class StatusResponse(BaseModel):
    status: str


class HealthResponse(BaseModel):
    status: str
    tick_state: str
    tick_failures: int
    session_active: bool


class DiagnosticIssueResponse(BaseModel):
    kind: str
    title: str
    severity: str
    sensor: str
    status: str
    metrics: dict[str, float] | None = None


class DiagnosticEventResponse(BaseModel):
    kind: str
    t_start_sec: float
    t_end_sec: float | None = None
    duration_sec: float | None = None
    severity: str
    metrics: dict[str, float] | None = None


class DiagnosticsSummaryResponse(BaseModel):
    status: str
    issues_count: int


class DiagnosticsSnapshotResponse(BaseModel):
    active_issues: list[DiagnosticIssueResponse]
    session_findings: list[DiagnosticEventResponse]
    sensor_status: dict[str, str]
    summary: DiagnosticsSummaryResponse


class DebugLogEntryResponse(BaseModel):
    timestamp_ms: int
    level: str
    message: str


class DebugLogResponse(BaseModel):
    entries: list[DebugLogEntryResponse]
