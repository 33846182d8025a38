"""Issue tracking: hysteresis, activation/recovery decisions, session events."""

from __future__ import annotations

import enum
import logging
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal

from ..constants import EVENT_TIME_DECIMALS, PROBLEM_HOLD_MS, RECOVER_HOLD_MS
from ..domain_models import DiagnosticKind
from ._types import DiagnosticEvent, IssueCandidate, IssuePhase, IssueState
from .catalog import CATALOG_KINDS, catalog_entry
from .evaluator import CandidateEvaluation
from .metrics import merge_metrics

LOGGER = logging.getLogger(__name__)


class IssueTransition(enum.StrEnum):
    ACTIVATED = "activated"
    RECOVERED = "recovered"


_EVENT_TIME_QUANTUM = Decimal(1).scaleb(-EVENT_TIME_DECIMALS)


def round_event_time(value: float) -> float:
    """Round half away from zero to ``EVENT_TIME_DECIMALS`` places (0.125 -> 0.13)."""
    return float(Decimal(value).quantize(_EVENT_TIME_QUANTUM, rounding=ROUND_HALF_UP))


def session_seconds(ts_ms: float, session_start_ms: float) -> float:
    return round_event_time((ts_ms - session_start_ms) / 1000.0)


def advance_issue(
    state: IssueState,
    candidate: IssueCandidate | None,
    now_ms: float,
    *,
    problem_hold_ms: int = PROBLEM_HOLD_MS,
    recover_hold_ms: int = RECOVER_HOLD_MS,
) -> IssueTransition | None:
    """Advance one kind's debounce state in-place.

    Returns the committed transition, if any, so callers can open or close
    the matching session event.
    """
    if candidate is not None:
        if state.active:
            # A flicker back to "present" cancels a running recovery timer.
            state.phase = IssuePhase.ACTIVE
            state.since_ms = None
            state.metrics = merge_metrics(state.metrics, candidate.metrics)
            return None
        pending_since = state.pending_since_ms
        if pending_since is None:
            pending_since = now_ms
        if candidate.immediate or (now_ms - pending_since) >= problem_hold_ms:
            state.phase = IssuePhase.ACTIVE
            state.since_ms = None
            state.opened_at_ms = pending_since
            state.metrics = merge_metrics(state.metrics, candidate.metrics)
            return IssueTransition.ACTIVATED
        state.phase = IssuePhase.PENDING
        state.since_ms = pending_since
        return None

    if state.active:
        recover_since = state.recover_since_ms
        if recover_since is None:
            recover_since = now_ms
        if (now_ms - recover_since) >= recover_hold_ms:
            state.phase = IssuePhase.INACTIVE
            state.since_ms = None
            state.opened_at_ms = None
            state.metrics = None
            return IssueTransition.RECOVERED
        state.phase = IssuePhase.RECOVERING
        state.since_ms = recover_since
        return None

    state.phase = IssuePhase.INACTIVE
    state.since_ms = None
    state.metrics = None
    return None


class HysteresisTracker:
    """Per-kind issue states plus the open/closed session events they drive."""

    def __init__(
        self,
        *,
        problem_hold_ms: int = PROBLEM_HOLD_MS,
        recover_hold_ms: int = RECOVER_HOLD_MS,
    ) -> None:
        self._problem_hold_ms = problem_hold_ms
        self._recover_hold_ms = recover_hold_ms
        self._states: dict[DiagnosticKind, IssueState] = {}
        self._open_events: dict[DiagnosticKind, DiagnosticEvent] = {}
        self._findings: list[DiagnosticEvent] = []
        self.reset()

    def reset(self) -> None:
        self._states = {kind: IssueState() for kind in CATALOG_KINDS}
        self._open_events = {}
        self._findings = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def states(self) -> dict[DiagnosticKind, IssueState]:
        return self._states

    @property
    def open_events(self) -> dict[DiagnosticKind, DiagnosticEvent]:
        return dict(self._open_events)

    @property
    def findings(self) -> list[DiagnosticEvent]:
        return list(self._findings)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def advance(
        self,
        evaluation: CandidateEvaluation,
        now_ms: float,
        *,
        session_start_ms: float | None,
        recording: bool,
    ) -> None:
        by_kind: dict[DiagnosticKind, IssueCandidate] = {}
        for candidate in evaluation.candidates:
            catalog_entry(candidate.kind)
            by_kind[candidate.kind] = candidate

        for kind in CATALOG_KINDS:
            candidate = by_kind.get(kind)
            state = self._states[kind]
            transition = advance_issue(
                state,
                candidate,
                now_ms,
                problem_hold_ms=self._problem_hold_ms,
                recover_hold_ms=self._recover_hold_ms,
            )
            if transition is IssueTransition.ACTIVATED:
                LOGGER.info("Diagnostic issue %s active (onset %.0f ms)", kind, state.opened_at_ms)
                if recording and session_start_ms is not None and state.opened_at_ms is not None:
                    self._open_event(kind, state.opened_at_ms, session_start_ms, candidate)
            elif transition is IssueTransition.RECOVERED:
                LOGGER.info("Diagnostic issue %s recovered", kind)
                self._close_event(kind, now_ms, session_start_ms)
            elif candidate is not None and state.active:
                open_event = self._open_events.get(kind)
                if open_event is not None:
                    self._open_events[kind] = replace(
                        open_event, metrics=merge_metrics(open_event.metrics, candidate.metrics)
                    )

    def close_open_events(self, now_ms: float, session_start_ms: float | None) -> int:
        """Force-close every open event at *now_ms*; returns how many were closed."""
        kinds = list(self._open_events)
        for kind in kinds:
            self._close_event(kind, now_ms, session_start_ms)
        self._open_events.clear()
        return len(kinds)

    def _open_event(
        self,
        kind: DiagnosticKind,
        opened_at_ms: float,
        session_start_ms: float,
        candidate: IssueCandidate | None,
    ) -> None:
        self._open_events[kind] = DiagnosticEvent(
            kind=kind,
            t_start_sec=session_seconds(opened_at_ms, session_start_ms),
            severity=catalog_entry(kind).severity,
            metrics=merge_metrics(None, candidate.metrics if candidate is not None else None),
        )

    def _close_event(
        self, kind: DiagnosticKind, now_ms: float, session_start_ms: float | None
    ) -> None:
        open_event = self._open_events.pop(kind, None)
        if open_event is None or session_start_ms is None:
            return
        t_end_sec = max(open_event.t_start_sec, session_seconds(now_ms, session_start_ms))
        closed = replace(
            open_event,
            t_end_sec=t_end_sec,
            duration_sec=round_event_time(t_end_sec - open_event.t_start_sec),
        )
        self._findings.append(closed)
