"""Shared input builders for the diagnostics test suite.

Public API
----------
- ``analysis_config``     - AnalysisConfig with default values, overridable
- ``motion_stream``       - motion StreamHealth (healthy by default)
- ``gps_stream``          - GPS StreamHealth (healthy by default)
- ``health_report``       - CollectionHealth from the two stream builders
- ``permissions``         - DiagnosticsPermissions with everything granted
- ``drive``               - feed the same health report on a fixed cadence
"""

from __future__ import annotations

from ridediag.config import AnalysisConfig
from ridediag.diagnostics import DiagnosticsManager, DiagnosticsSnapshot
from ridediag.domain_models import (
    CollectionHealth,
    DiagnosticsPermissions,
    PermissionState,
    StreamHealth,
)


def analysis_config(**overrides: float) -> AnalysisConfig:
    values: dict[str, float] = {
        "window_size_ms": 5000,
        "min_imu_samples": 120,
        "gps_min_hz": 0.2,
        "gps_max_accuracy_p95_m": 25.0,
    }
    values.update(overrides)
    return AnalysisConfig(
        window_size_ms=int(values["window_size_ms"]),
        min_imu_samples=int(values["min_imu_samples"]),
        gps_min_hz=float(values["gps_min_hz"]),
        gps_max_accuracy_p95_m=float(values["gps_max_accuracy_p95_m"]),
    )


def motion_stream(
    *,
    samples_count: int | None = 300,
    observed_hz: float | None = 60.0,
    last_sample_age_ms: float | None = 10.0,
) -> StreamHealth:
    return StreamHealth(
        samples_count=samples_count,
        observed_hz=observed_hz,
        last_sample_age_ms=last_sample_age_ms,
    )


def gps_stream(
    *,
    samples_count: int | None = 5,
    observed_hz: float | None = 1.0,
    last_sample_age_ms: float | None = 200.0,
    accuracy_p95_m: float | None = 5.0,
) -> StreamHealth:
    return StreamHealth(
        samples_count=samples_count,
        observed_hz=observed_hz,
        last_sample_age_ms=last_sample_age_ms,
        accuracy_p95_m=accuracy_p95_m,
    )


def health_report(
    *,
    gps: StreamHealth | None = None,
    motion: StreamHealth | None = None,
) -> CollectionHealth:
    return CollectionHealth(
        gps=gps if gps is not None else gps_stream(),
        motion=motion if motion is not None else motion_stream(),
    )


def permissions(
    *,
    motion: PermissionState = PermissionState.GRANTED,
    location: PermissionState = PermissionState.GRANTED,
) -> DiagnosticsPermissions:
    return DiagnosticsPermissions(motion=motion, location=location)


def drive(
    manager: DiagnosticsManager,
    health: CollectionHealth,
    *,
    start_ms: float,
    end_ms: float,
    step_ms: float = 500.0,
) -> DiagnosticsSnapshot:
    """Push *health* every *step_ms* from *start_ms* through *end_ms* inclusive."""
    snapshot = manager.snapshot()
    t = start_ms
    while t <= end_ms:
        snapshot = manager.update_health(health, t)
        t += step_ms
    return snapshot
