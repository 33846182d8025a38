"""DiagnosticsManager: session-scoped orchestrator for sensor diagnostics.

Callers push inputs (permissions, capabilities, raw samples, health
reports) and drive evaluation with caller-supplied timestamps; reads go
through :meth:`DiagnosticsManager.snapshot`.  All calls must be
serialised and applied in non-decreasing ``now_ms`` order.
"""

from __future__ import annotations

import logging

from ..config import AnalysisConfig, default_analysis_config
from ..constants import PROBLEM_HOLD_MS, RECOVER_HOLD_MS
from ..domain_models import (
    CapabilitiesReport,
    CollectionHealth,
    DiagnosticsPermissions,
    RawSample,
    SensorKind,
    SensorStatus,
)
from .evaluator import evaluate_candidates
from .snapshot import DiagnosticsSnapshot, build_snapshot
from .tracker import HysteresisTracker

LOGGER = logging.getLogger(__name__)


def _initial_sensor_status() -> dict[SensorKind, SensorStatus]:
    return {SensorKind.GPS: SensorStatus.OK, SensorKind.MOTION: SensorStatus.OK}


class DiagnosticsManager:
    def __init__(
        self,
        config: AnalysisConfig | None = None,
        *,
        problem_hold_ms: int = PROBLEM_HOLD_MS,
        recover_hold_ms: int = RECOVER_HOLD_MS,
    ) -> None:
        self._config = config or default_analysis_config()
        self._tracker = HysteresisTracker(
            problem_hold_ms=problem_hold_ms,
            recover_hold_ms=recover_hold_ms,
        )
        self._permissions: DiagnosticsPermissions | None = None
        self._capabilities: CapabilitiesReport | None = None
        self._health: CollectionHealth | None = None
        self._last_motion_sample_ms: float | None = None
        self._last_gps_sample_ms: float | None = None
        self._session_start_ms: float | None = None
        self._recording = False
        self._sensor_status = _initial_sensor_status()

    @property
    def recording(self) -> bool:
        return self._recording

    @property
    def session_start_ms(self) -> float | None:
        return self._session_start_ms

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def update_permissions(self, permissions: DiagnosticsPermissions | None) -> None:
        self._permissions = permissions

    def update_capabilities(self, capabilities: CapabilitiesReport | None) -> None:
        self._capabilities = capabilities

    def record_sample(self, sample: RawSample) -> None:
        """Update last-seen timestamps only; evaluation happens on the next tick."""
        if sample.has_motion:
            self._last_motion_sample_ms = sample.timestamp_ms
        gps_ts = sample.gps_timestamp_ms
        if gps_ts is not None and gps_ts != self._last_gps_sample_ms:
            self._last_gps_sample_ms = gps_ts

    def update_health(self, health: CollectionHealth, now_ms: float) -> DiagnosticsSnapshot:
        self._health = health
        self._evaluate(now_ms)
        return self.snapshot()

    def tick(self, now_ms: float) -> DiagnosticsSnapshot:
        self._evaluate(now_ms)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self, now_ms: float) -> DiagnosticsSnapshot:
        self._recording = True
        self._session_start_ms = now_ms
        self._clear_stream_caches()
        self._tracker.reset()
        LOGGER.info("Diagnostics session started at %.0f ms", now_ms)
        self._evaluate(now_ms)
        return self.snapshot()

    def stop_session(self, now_ms: float) -> DiagnosticsSnapshot:
        """Close every open event at *now_ms* and stop recording findings.

        Issue states are kept so sensor status stays meaningful after the
        session (e.g. for a post-ride summary).
        """
        closed = 0
        if self._session_start_ms is not None:
            closed = self._tracker.close_open_events(now_ms, self._session_start_ms)
        self._recording = False
        LOGGER.info(
            "Diagnostics session stopped at %.0f ms; force-closed %d open event(s), "
            "%d finding(s) total",
            now_ms,
            closed,
            len(self._tracker.findings),
        )
        return self.snapshot()

    def reset_all(self, now_ms: float) -> DiagnosticsSnapshot:
        self._recording = False
        self._session_start_ms = None
        self._clear_stream_caches()
        self._tracker.reset()
        LOGGER.info("Diagnostics reset at %.0f ms", now_ms)
        self._evaluate(now_ms)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> DiagnosticsSnapshot:
        return build_snapshot(
            states=self._tracker.states,
            findings=self._tracker.findings,
            open_events=self._tracker.open_events,
            sensor_status=self._sensor_status,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear_stream_caches(self) -> None:
        self._health = None
        self._last_motion_sample_ms = None
        self._last_gps_sample_ms = None

    def _evaluate(self, now_ms: float) -> None:
        evaluation = evaluate_candidates(
            health=self._health,
            permissions=self._permissions,
            capabilities=self._capabilities,
            now_ms=now_ms,
            session_start_ms=self._session_start_ms,
            last_motion_sample_ms=self._last_motion_sample_ms,
            last_gps_sample_ms=self._last_gps_sample_ms,
            config=self._config,
        )
        for sensor, status in evaluation.sensor_status.items():
            previous = self._sensor_status.get(sensor)
            if previous != status:
                LOGGER.debug("Sensor %s status %s -> %s", sensor, previous, status)
        self._sensor_status = dict(evaluation.sensor_status)
        self._tracker.advance(
            evaluation,
            now_ms,
            session_start_ms=self._session_start_ms,
            recording=self._recording,
        )
