"""Issue metric snapshots and their per-key merge policy."""

from __future__ import annotations

import math

from ..domain_models import CollectionHealth, DiagnosticKind, SensorKind
from ._types import Metrics

_RATE_KINDS: dict[DiagnosticKind, SensorKind] = {
    DiagnosticKind.GPS_LOW_RATE: SensorKind.GPS,
    DiagnosticKind.IMU_LOW_RATE: SensorKind.MOTION,
}
_AGE_KINDS: dict[DiagnosticKind, SensorKind] = {
    DiagnosticKind.GPS_LOST: SensorKind.GPS,
    DiagnosticKind.IMU_STALLED: SensorKind.MOTION,
}


def _merge_value(key: str, existing: float, value: float) -> float:
    if key.startswith("min"):
        return min(existing, value)
    if key.startswith("max") or key.endswith("count"):
        return max(existing, value)
    return value


def merge_metrics(previous: Metrics | None, new: Metrics | None) -> Metrics | None:
    """Fold *new* into *previous* for the same ongoing issue.

    ``min*`` keys keep the minimum, ``max*`` and ``*count`` keys keep the
    maximum, everything else keeps the latest value.  Non-finite incoming
    values are ignored.  Neither input is mutated.
    """
    if new is None:
        return previous
    if previous is None:
        return dict(new)
    merged = dict(previous)
    for key, value in new.items():
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            continue
        existing = merged.get(key)
        if not isinstance(existing, (int, float)) or not math.isfinite(existing):
            merged[key] = value
            continue
        merged[key] = _merge_value(key, existing, value)
    return merged


def build_issue_metrics(kind: DiagnosticKind, health: CollectionHealth | None) -> Metrics | None:
    """Metric snapshot describing *kind* from the latest health report."""
    if health is None:
        return None
    if kind is DiagnosticKind.GPS_POOR_ACCURACY:
        gps = health.gps
        if gps is None:
            return None
        return {
            "accuracy_p95_m": gps.accuracy_p95_m or 0.0,
            "samples_count": float(gps.samples_count or 0),
        }
    if kind in _RATE_KINDS:
        stream = health.stream(_RATE_KINDS[kind])
        if stream is None:
            return None
        return {
            "min_hz": stream.observed_hz or 0.0,
            "samples_count": float(stream.samples_count or 0),
        }
    if kind in _AGE_KINDS:
        stream = health.stream(_AGE_KINDS[kind])
        if stream is None:
            return None
        return {
            "max_age_ms": stream.last_sample_age_ms or 0.0,
            "samples_count": float(stream.samples_count or 0),
        }
    return None
