"""Read-model projection of the diagnostics state."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from ..domain_models import DiagnosticKind, SensorKind, SensorStatus, Severity
from ._types import DiagnosticEvent, IssueState, Metrics
from .catalog import CATALOG_KINDS, catalog_entry

SUMMARY_OK = "OK"
SUMMARY_ISSUES = "Issues"


@dataclass(frozen=True, slots=True)
class DiagnosticIssue:
    kind: DiagnosticKind
    title: str
    severity: Severity
    sensor: SensorKind
    status: SensorStatus
    metrics: Metrics | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "title": self.title,
            "severity": str(self.severity),
            "sensor": str(self.sensor),
            "status": str(self.status),
            "metrics": dict(self.metrics) if self.metrics is not None else None,
        }


@dataclass(frozen=True, slots=True)
class DiagnosticsSummary:
    status: str
    issues_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "issues_count": self.issues_count}


@dataclass(frozen=True, slots=True)
class DiagnosticsSnapshot:
    active_issues: tuple[DiagnosticIssue, ...]
    session_findings: tuple[DiagnosticEvent, ...]
    sensor_status: dict[SensorKind, SensorStatus]
    summary: DiagnosticsSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_issues": [issue.to_dict() for issue in self.active_issues],
            "session_findings": [event.to_dict() for event in self.session_findings],
            "sensor_status": {
                str(sensor): str(status) for sensor, status in self.sensor_status.items()
            },
            "summary": self.summary.to_dict(),
        }


def _copy_event(event: DiagnosticEvent) -> DiagnosticEvent:
    if event.metrics is None:
        return event
    return replace(event, metrics=dict(event.metrics))


def build_snapshot(
    *,
    states: dict[DiagnosticKind, IssueState],
    findings: list[DiagnosticEvent],
    open_events: dict[DiagnosticKind, DiagnosticEvent],
    sensor_status: dict[SensorKind, SensorStatus],
) -> DiagnosticsSnapshot:
    """Assemble a defensive-copy snapshot; nothing returned aliases live state."""
    active_issues: list[DiagnosticIssue] = []
    for kind in CATALOG_KINDS:
        state = states.get(kind)
        if state is None or not state.active:
            continue
        entry = catalog_entry(kind)
        active_issues.append(
            DiagnosticIssue(
                kind=kind,
                title=entry.title,
                severity=entry.severity,
                sensor=entry.sensor,
                status=sensor_status[entry.sensor],
                metrics=dict(state.metrics) if state.metrics is not None else None,
            )
        )

    session_findings = sorted(
        (_copy_event(event) for event in [*findings, *open_events.values()]),
        key=lambda event: event.t_start_sec,
    )
    issues_count = len(active_issues)
    return DiagnosticsSnapshot(
        active_issues=tuple(active_issues),
        session_findings=tuple(session_findings),
        sensor_status=dict(sensor_status),
        summary=DiagnosticsSummary(
            status=SUMMARY_ISSUES if issues_count > 0 else SUMMARY_OK,
            issues_count=issues_count,
        ),
    )
