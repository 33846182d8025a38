"""Shared value types for the diagnostics state machine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from ..domain_models import DiagnosticKind, Severity

Metrics = dict[str, float]


class IssuePhase(enum.StrEnum):
    INACTIVE = "inactive"
    PENDING = "pending"
    ACTIVE = "active"
    RECOVERING = "recovering"


@dataclass(slots=True)
class IssueState:
    """Debounce state for one :class:`DiagnosticKind`.

    ``since_ms`` is the pending start while ``PENDING`` and the recovery
    start while ``RECOVERING``; it is ``None`` in the other two phases, so a
    kind can never be pending and recovering at once.
    """

    phase: IssuePhase = IssuePhase.INACTIVE
    since_ms: float | None = None
    opened_at_ms: float | None = None
    metrics: Metrics | None = None

    @property
    def active(self) -> bool:
        return self.phase in (IssuePhase.ACTIVE, IssuePhase.RECOVERING)

    @property
    def pending_since_ms(self) -> float | None:
        return self.since_ms if self.phase is IssuePhase.PENDING else None

    @property
    def recover_since_ms(self) -> float | None:
        return self.since_ms if self.phase is IssuePhase.RECOVERING else None


@dataclass(frozen=True, slots=True)
class IssueCandidate:
    kind: DiagnosticKind
    immediate: bool = False
    metrics: Metrics | None = None


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """One session-scoped occurrence of an issue.

    Open events have ``t_end_sec``/``duration_sec`` of ``None``; updates
    produce new instances via :func:`dataclasses.replace`.
    """

    kind: DiagnosticKind
    t_start_sec: float
    severity: Severity
    t_end_sec: float | None = None
    duration_sec: float | None = None
    metrics: Metrics | None = field(default=None)

    @property
    def is_open(self) -> bool:
        return self.t_end_sec is None

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": str(self.kind),
            "t_start_sec": self.t_start_sec,
            "t_end_sec": self.t_end_sec,
            "duration_sec": self.duration_sec,
            "severity": str(self.severity),
            "metrics": dict(self.metrics) if self.metrics is not None else None,
        }
