"""Candidate evaluation: turn the latest inputs into a point-in-time verdict.

Everything here is pure with respect to its arguments: the same inputs
always produce the same candidates and sensor statuses.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..config import AnalysisConfig
from ..constants import GPS_FIRST_FIX_MS, GPS_LOST_MS, IMU_FIRST_SAMPLE_MS, IMU_STALL_MS
from ..domain_models import (
    CapabilitiesReport,
    CollectionHealth,
    DiagnosticKind,
    DiagnosticsPermissions,
    PermissionState,
    SensorKind,
    SensorStatus,
)
from ._types import IssueCandidate
from .metrics import build_issue_metrics


@dataclass(frozen=True, slots=True)
class _SensorRules:
    denied_kind: DiagnosticKind
    unsupported_kind: DiagnosticKind
    lost_kind: DiagnosticKind
    low_rate_kind: DiagnosticKind
    stale_after_ms: int
    first_sample_grace_ms: int


_RULES: dict[SensorKind, _SensorRules] = {
    SensorKind.MOTION: _SensorRules(
        denied_kind=DiagnosticKind.PERMISSION_DENIED_MOTION,
        unsupported_kind=DiagnosticKind.UNSUPPORTED_MOTION,
        lost_kind=DiagnosticKind.IMU_STALLED,
        low_rate_kind=DiagnosticKind.IMU_LOW_RATE,
        stale_after_ms=IMU_STALL_MS,
        first_sample_grace_ms=IMU_FIRST_SAMPLE_MS,
    ),
    SensorKind.GPS: _SensorRules(
        denied_kind=DiagnosticKind.PERMISSION_DENIED_GPS,
        unsupported_kind=DiagnosticKind.UNSUPPORTED_GPS,
        lost_kind=DiagnosticKind.GPS_LOST,
        low_rate_kind=DiagnosticKind.GPS_LOW_RATE,
        stale_after_ms=GPS_LOST_MS,
        first_sample_grace_ms=GPS_FIRST_FIX_MS,
    ),
}


@dataclass(frozen=True, slots=True)
class CandidateEvaluation:
    candidates: list[IssueCandidate]
    sensor_status: dict[SensorKind, SensorStatus]

    def kinds(self) -> set[DiagnosticKind]:
        return {candidate.kind for candidate in self.candidates}


def _candidate(
    kind: DiagnosticKind, health: CollectionHealth | None, *, immediate: bool
) -> IssueCandidate:
    return IssueCandidate(kind=kind, immediate=immediate, metrics=build_issue_metrics(kind, health))


def _evaluate_sensor(
    sensor: SensorKind,
    *,
    health: CollectionHealth | None,
    permission: PermissionState,
    capabilities: CapabilitiesReport | None,
    now_ms: float,
    session_start_ms: float | None,
    last_sample_ms: float | None,
    config: AnalysisConfig,
) -> tuple[SensorStatus, list[IssueCandidate]]:
    rules = _RULES[sensor]
    stream = health.stream(sensor) if health is not None else None

    if stream is not None and stream.samples_count is not None:
        samples = stream.samples_count
    else:
        samples = 1 if last_sample_ms is not None else 0
    if stream is not None and stream.last_sample_age_ms is not None:
        last_age_ms: float | None = stream.last_sample_age_ms
    elif last_sample_ms is not None:
        last_age_ms = now_ms - last_sample_ms
    else:
        last_age_ms = None
    observed_hz = (stream.observed_hz if stream is not None else None) or 0.0

    unsupported = capabilities is not None and not capabilities.status_for(sensor).supported
    baseline_exceeded = (
        session_start_ms is not None
        and (now_ms - session_start_ms) >= rules.first_sample_grace_ms
        and samples == 0
    )

    if permission is PermissionState.DENIED:
        return SensorStatus.DENIED, [_candidate(rules.denied_kind, health, immediate=True)]
    if permission is PermissionState.UNSUPPORTED or unsupported:
        return SensorStatus.UNSUPPORTED, [
            _candidate(rules.unsupported_kind, health, immediate=True)
        ]
    if (last_age_ms is not None and last_age_ms > rules.stale_after_ms) or baseline_exceeded:
        return SensorStatus.LOST, [
            _candidate(rules.lost_kind, health, immediate=baseline_exceeded)
        ]

    min_hz = config.gps_min_hz if sensor is SensorKind.GPS else config.imu_min_hz
    candidates: list[IssueCandidate] = []
    if 0 < observed_hz < min_hz:
        candidates.append(_candidate(rules.low_rate_kind, health, immediate=False))
    if sensor is SensorKind.GPS and stream is not None:
        accuracy = stream.accuracy_p95_m
        if accuracy is not None and accuracy > config.gps_max_accuracy_p95_m:
            candidates.append(
                _candidate(DiagnosticKind.GPS_POOR_ACCURACY, health, immediate=False)
            )
    if candidates:
        return SensorStatus.DEGRADED, candidates
    return SensorStatus.OK, []


def evaluate_candidates(
    *,
    health: CollectionHealth | None,
    permissions: DiagnosticsPermissions | None,
    capabilities: CapabilitiesReport | None,
    now_ms: float,
    session_start_ms: float | None,
    last_motion_sample_ms: float | None,
    last_gps_sample_ms: float | None,
    config: AnalysisConfig,
) -> CandidateEvaluation:
    """Compute the currently-true problem candidates and per-sensor status.

    Permission and capability checks take precedence over liveness, which
    takes precedence over rate/accuracy checks.  Only GPS can report two
    candidates at once (low rate and poor accuracy, both ``DEGRADED``).
    """
    perms = permissions or DiagnosticsPermissions()
    last_samples = {
        SensorKind.MOTION: last_motion_sample_ms,
        SensorKind.GPS: last_gps_sample_ms,
    }
    candidates: list[IssueCandidate] = []
    sensor_status: dict[SensorKind, SensorStatus] = {}
    for sensor in (SensorKind.MOTION, SensorKind.GPS):
        status, sensor_candidates = _evaluate_sensor(
            sensor,
            health=health,
            permission=perms.for_sensor(sensor),
            capabilities=capabilities,
            now_ms=now_ms,
            session_start_ms=session_start_ms,
            last_sample_ms=last_samples[sensor],
            config=config,
        )
        sensor_status[sensor] = status
        candidates.extend(sensor_candidates)
    return CandidateEvaluation(
        candidates=candidates,
        sensor_status=sensor_status,
    )
