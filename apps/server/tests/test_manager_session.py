"""End-to-end behaviour of DiagnosticsManager across a recording session."""

from __future__ import annotations

import random
from collections import Counter

import pytest
from builders import (
    analysis_config,
    drive,
    gps_stream,
    health_report,
    motion_stream,
    permissions,
)

from ridediag.diagnostics import DiagnosticsManager
from ridediag.diagnostics.tracker import round_event_time
from ridediag.domain_models import (
    DiagnosticKind,
    PermissionState,
    RawSample,
    SensorKind,
    SensorStatus,
)


def _active_kinds(snapshot) -> list[DiagnosticKind]:
    return [issue.kind for issue in snapshot.active_issues]


def _slow_gps_manager() -> DiagnosticsManager:
    mgr = DiagnosticsManager(analysis_config(gps_min_hz=1.0))
    mgr.update_permissions(permissions())
    mgr.start_session(0.0)
    return mgr


SLOW_GPS = health_report(gps=gps_stream(observed_hz=0.5))


def test_initial_state(manager: DiagnosticsManager) -> None:
    snap = manager.snapshot()
    assert manager.recording is False
    assert manager.session_start_ms is None
    assert snap.active_issues == ()
    assert snap.session_findings == ()
    assert snap.summary.status == "OK"
    assert snap.summary.issues_count == 0
    assert snap.sensor_status == {
        SensorKind.GPS: SensorStatus.OK,
        SensorKind.MOTION: SensorStatus.OK,
    }


def test_denied_motion_at_session_start_opens_event_at_zero() -> None:
    mgr = DiagnosticsManager()
    mgr.update_permissions(permissions(motion=PermissionState.DENIED))
    snap = mgr.start_session(1000.0)

    assert mgr.recording is True
    assert mgr.session_start_ms == 1000.0
    assert _active_kinds(snap) == [DiagnosticKind.PERMISSION_DENIED_MOTION]
    assert snap.active_issues[0].status is SensorStatus.DENIED
    [event] = snap.session_findings
    assert event.kind is DiagnosticKind.PERMISSION_DENIED_MOTION
    assert event.t_start_sec == 0.0
    assert event.t_end_sec is None
    assert event.duration_sec is None
    assert snap.summary.status == "Issues"
    assert snap.summary.issues_count == 1


def test_slow_gps_activates_after_problem_hold() -> None:
    mgr = _slow_gps_manager()
    snap = drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=2000.0)
    assert snap.active_issues == ()
    assert snap.sensor_status[SensorKind.GPS] is SensorStatus.DEGRADED

    snap = mgr.update_health(SLOW_GPS, 2500.0)
    assert _active_kinds(snap) == [DiagnosticKind.GPS_LOW_RATE]
    issue = snap.active_issues[0]
    assert issue.metrics == {"min_hz": 0.5, "samples_count": 5.0}
    assert issue.status is SensorStatus.DEGRADED
    [event] = snap.session_findings
    assert event.t_start_sec == 0.0
    assert event.is_open


def test_issue_recovers_and_event_closes() -> None:
    mgr = _slow_gps_manager()
    drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=2500.0)

    healthy = health_report()
    snap = mgr.update_health(healthy, 3000.0)
    assert _active_kinds(snap) == [DiagnosticKind.GPS_LOW_RATE]
    snap = mgr.update_health(healthy, 4000.0)
    assert _active_kinds(snap) == [DiagnosticKind.GPS_LOW_RATE]
    snap = mgr.update_health(healthy, 4500.0)

    assert snap.active_issues == ()
    assert snap.summary.status == "OK"
    [finding] = snap.session_findings
    assert finding.t_start_sec == 0.0
    assert finding.t_end_sec == 4.5
    assert finding.duration_sec == 4.5


def test_metrics_track_worst_rate_while_active() -> None:
    mgr = _slow_gps_manager()
    drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=2500.0)
    mgr.update_health(health_report(gps=gps_stream(observed_hz=0.3)), 3000.0)
    snap = mgr.update_health(health_report(gps=gps_stream(observed_hz=0.8)), 3500.0)
    assert snap.active_issues[0].metrics["min_hz"] == 0.3
    assert snap.session_findings[0].metrics["min_hz"] == 0.3


def test_brief_problems_do_not_flap() -> None:
    mgr = _slow_gps_manager()
    healthy = health_report()
    t = 0.0
    for _ in range(10):
        assert mgr.update_health(SLOW_GPS, t).active_issues == ()
        assert mgr.update_health(healthy, t + 1000.0).active_issues == ()
        t += 2000.0
    assert mgr.snapshot().session_findings == ()


def test_stop_session_closes_open_events_and_keeps_state() -> None:
    mgr = _slow_gps_manager()
    drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=2500.0)

    snap = mgr.stop_session(6000.0)
    assert mgr.recording is False
    [finding] = snap.session_findings
    assert finding.t_end_sec == 6.0
    assert finding.duration_sec == 6.0
    assert _active_kinds(snap) == [DiagnosticKind.GPS_LOW_RATE]


def test_no_new_events_after_stop(manager: DiagnosticsManager) -> None:
    manager.start_session(0.0)
    manager.update_health(health_report(), 100.0)
    manager.stop_session(1000.0)

    inaccurate = health_report(gps=gps_stream(accuracy_p95_m=60.0))
    snap = drive(manager, inaccurate, start_ms=1500.0, end_ms=5000.0)
    assert _active_kinds(snap) == [DiagnosticKind.GPS_POOR_ACCURACY]
    assert snap.session_findings == ()


def test_stop_without_session_is_harmless(manager: DiagnosticsManager) -> None:
    snap = manager.stop_session(500.0)
    assert manager.recording is False
    assert snap.session_findings == ()


def test_start_session_clears_previous_findings_and_health() -> None:
    mgr = _slow_gps_manager()
    drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=3000.0)
    mgr.stop_session(4000.0)

    snap = mgr.start_session(20_000.0)
    assert snap.session_findings == ()
    assert snap.active_issues == ()

    # The cached health report is gone, so no motion sample has arrived yet.
    snap = mgr.tick(20_300.0)
    assert _active_kinds(snap) == [DiagnosticKind.IMU_STALLED]
    assert snap.session_findings[0].t_start_sec == 0.3


def test_reset_all_mid_session_starts_from_a_clean_slate() -> None:
    mgr = _slow_gps_manager()
    snap = drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=3000.0)
    assert _active_kinds(snap) == [DiagnosticKind.GPS_LOW_RATE]
    assert snap.session_findings[0].is_open

    snap = mgr.reset_all(3500.0)
    assert snap.active_issues == ()
    assert snap.session_findings == ()
    assert snap.sensor_status == {
        SensorKind.GPS: SensorStatus.OK,
        SensorKind.MOTION: SensorStatus.OK,
    }


def test_reset_all_clears_session_but_keeps_permissions() -> None:
    mgr = DiagnosticsManager()
    mgr.update_permissions(permissions(motion=PermissionState.DENIED))
    mgr.start_session(0.0)

    snap = mgr.reset_all(5000.0)
    assert mgr.recording is False
    assert mgr.session_start_ms is None
    assert snap.session_findings == ()
    assert _active_kinds(snap) == [DiagnosticKind.PERMISSION_DENIED_MOTION]


def test_raw_samples_keep_motion_alive() -> None:
    mgr = DiagnosticsManager()
    mgr.update_permissions(permissions())
    mgr.start_session(0.0)
    mgr.record_sample(RawSample(timestamp_ms=100.0, has_motion=True))

    assert mgr.tick(500.0).active_issues == ()
    mgr.tick(1400.0)
    snap = mgr.tick(3900.0)
    assert _active_kinds(snap) == [DiagnosticKind.IMU_STALLED]
    assert snap.session_findings[0].t_start_sec == 1.4


def test_gps_sample_timestamp_counts_as_fix() -> None:
    mgr = DiagnosticsManager()
    mgr.update_permissions(permissions())
    mgr.start_session(0.0)
    mgr.record_sample(RawSample(timestamp_ms=150.0, has_motion=True, gps_timestamp_ms=150.0))
    mgr.record_sample(RawSample(timestamp_ms=4900.0, has_motion=True, gps_timestamp_ms=4800.0))

    snap = mgr.tick(5000.0)
    assert snap.sensor_status[SensorKind.GPS] is SensorStatus.OK
    assert snap.sensor_status[SensorKind.MOTION] is SensorStatus.OK


def test_snapshot_does_not_alias_live_state() -> None:
    mgr = _slow_gps_manager()
    drive(mgr, SLOW_GPS, start_ms=0.0, end_ms=2500.0)
    snap = mgr.snapshot()
    snap.active_issues[0].metrics["min_hz"] = 99.0
    snap.session_findings[0].metrics["min_hz"] = 99.0

    fresh = mgr.snapshot()
    assert fresh.active_issues[0].metrics["min_hz"] == 0.5
    assert fresh.session_findings[0].metrics["min_hz"] == 0.5


def test_stop_session_keeps_closed_events_and_closes_open_ones_on_both_sensors() -> None:
    mgr = _slow_gps_manager()
    slow_both = health_report(
        gps=gps_stream(observed_hz=0.5), motion=motion_stream(observed_hz=10.0)
    )
    snap = drive(mgr, slow_both, start_ms=0.0, end_ms=2500.0)
    assert set(_active_kinds(snap)) == {DiagnosticKind.GPS_LOW_RATE, DiagnosticKind.IMU_LOW_RATE}

    drive(mgr, health_report(), start_ms=3000.0, end_ms=4500.0)
    stalled_and_inaccurate = health_report(
        gps=gps_stream(accuracy_p95_m=60.0),
        motion=motion_stream(last_sample_age_ms=1500.0),
    )
    snap = drive(mgr, stalled_and_inaccurate, start_ms=5000.0, end_ms=7500.0)
    assert set(_active_kinds(snap)) == {
        DiagnosticKind.GPS_POOR_ACCURACY,
        DiagnosticKind.IMU_STALLED,
    }
    closed_before = [event for event in snap.session_findings if not event.is_open]
    open_before = [event for event in snap.session_findings if event.is_open]
    assert len(closed_before) == 2
    assert len(open_before) == 2

    snap = mgr.stop_session(9000.0)
    assert len(snap.session_findings) == len(closed_before) + len(open_before)
    by_kind = {event.kind: event for event in snap.session_findings}
    for kind in (DiagnosticKind.GPS_LOW_RATE, DiagnosticKind.IMU_LOW_RATE):
        assert by_kind[kind].t_start_sec == 0.0
        assert by_kind[kind].t_end_sec == 4.5
        assert by_kind[kind].duration_sec == 4.5
    for kind in (DiagnosticKind.GPS_POOR_ACCURACY, DiagnosticKind.IMU_STALLED):
        assert by_kind[kind].t_start_sec == 5.0
        assert by_kind[kind].t_end_sec == 9.0
        assert by_kind[kind].duration_sec == 4.0


_GPS_VARIANTS = (
    gps_stream(),
    gps_stream(observed_hz=0.5),
    gps_stream(accuracy_p95_m=60.0),
    gps_stream(observed_hz=0.5, accuracy_p95_m=60.0),
    gps_stream(last_sample_age_ms=6000.0),
)
_MOTION_VARIANTS = (
    motion_stream(),
    motion_stream(observed_hz=10.0),
    motion_stream(last_sample_age_ms=1500.0),
)


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_long_mixed_timeline_keeps_event_log_consistent(seed: int) -> None:
    rng = random.Random(seed)
    mgr = _slow_gps_manager()
    t = 0.0
    health = health_report()
    for _ in range(400):
        if rng.random() < 0.1:
            health = health_report(
                gps=rng.choice(_GPS_VARIANTS), motion=rng.choice(_MOTION_VARIANTS)
            )
        t += rng.choice((100.0, 250.0, 500.0, 750.0))
        snap = mgr.update_health(health, t) if rng.random() < 0.8 else mgr.tick(t)
        open_kinds = Counter(event.kind for event in snap.session_findings if event.is_open)
        assert all(count == 1 for count in open_kinds.values()), open_kinds

    closed_before = sum(1 for event in snap.session_findings if not event.is_open)
    open_before = sum(1 for event in snap.session_findings if event.is_open)
    assert closed_before + open_before > 0

    snap = mgr.stop_session(t + 1000.0)
    assert len(snap.session_findings) == closed_before + open_before
    for event in snap.session_findings:
        assert not event.is_open
        assert event.t_end_sec >= event.t_start_sec
        assert event.duration_sec == round_event_time(event.t_end_sec - event.t_start_sec)
        assert event.duration_sec == pytest.approx(event.t_end_sec - event.t_start_sec, abs=0.01)
