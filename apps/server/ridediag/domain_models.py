"""Domain model objects for the ridediag backend.

Typed dataclasses for the inputs the diagnostics core consumes from its
collaborators (collection health, permissions, device capabilities, raw
samples).  ``from_dict`` constructors accept the snake_case keys used by
the HTTP API as well as the camelCase keys emitted by the browser
collector, and never raise on malformed values.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any


class SensorKind(enum.StrEnum):
    GPS = "gps"
    MOTION = "motion"


class SensorStatus(enum.StrEnum):
    OK = "OK"
    DEGRADED = "DEGRADED"
    LOST = "LOST"
    DENIED = "DENIED"
    UNSUPPORTED = "UNSUPPORTED"


class Severity(enum.StrEnum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class DiagnosticKind(enum.StrEnum):
    GPS_LOST = "gps_lost"
    GPS_LOW_RATE = "gps_low_rate"
    GPS_POOR_ACCURACY = "gps_poor_accuracy"
    IMU_STALLED = "imu_stalled"
    IMU_LOW_RATE = "imu_low_rate"
    PERMISSION_DENIED_GPS = "permission_denied_gps"
    PERMISSION_DENIED_MOTION = "permission_denied_motion"
    UNSUPPORTED_GPS = "unsupported_gps"
    UNSUPPORTED_MOTION = "unsupported_motion"


class PermissionState(enum.StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
    UNSUPPORTED = "unsupported"


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _as_float_or_none(value: object) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def _as_int_or_none(value: object) -> int | None:
    out = _as_float_or_none(value)
    if out is None:
        return None
    return int(round(out))


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """Return the first present value among *keys* (snake_case first)."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_permission(value: object) -> PermissionState:
    """Map a browser permission string to :class:`PermissionState`.

    Anything unrecognised is treated as the permissive ``prompt`` default.
    """
    try:
        return PermissionState(str(value).strip().lower())
    except ValueError:
        return PermissionState.PROMPT


# ---------------------------------------------------------------------------
# Collection health
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class StreamHealth:
    """Pre-aggregated sampling statistics for one sensor stream."""

    samples_count: int | None = None
    observed_hz: float | None = None
    last_sample_age_ms: float | None = None
    accuracy_p95_m: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StreamHealth:
        return cls(
            samples_count=_as_int_or_none(_pick(data, "samples_count", "samplesCount")),
            observed_hz=_as_float_or_none(_pick(data, "observed_hz", "observedHz")),
            last_sample_age_ms=_as_float_or_none(
                _pick(data, "last_sample_age_ms", "lastSampleAgeMs")
            ),
            accuracy_p95_m=_as_float_or_none(_pick(data, "accuracy_p95_m", "accuracyP95M")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "samples_count": self.samples_count,
            "observed_hz": self.observed_hz,
            "last_sample_age_ms": self.last_sample_age_ms,
            "accuracy_p95_m": self.accuracy_p95_m,
        }


@dataclass(slots=True)
class CollectionHealth:
    gps: StreamHealth | None = None
    motion: StreamHealth | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CollectionHealth:
        streams: dict[str, StreamHealth | None] = {}
        for name in ("gps", "motion"):
            raw = data.get(name)
            streams[name] = StreamHealth.from_dict(raw) if isinstance(raw, dict) else None
        return cls(gps=streams["gps"], motion=streams["motion"])

    def stream(self, sensor: SensorKind) -> StreamHealth | None:
        return self.gps if sensor is SensorKind.GPS else self.motion

    def to_dict(self) -> dict[str, Any]:
        return {
            "gps": self.gps.to_dict() if self.gps is not None else None,
            "motion": self.motion.to_dict() if self.motion is not None else None,
        }


# ---------------------------------------------------------------------------
# Capabilities & permissions
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CapabilityStatus:
    supported_by_api: bool = True
    supported_in_practice: bool = True

    @property
    def supported(self) -> bool:
        return self.supported_by_api and self.supported_in_practice

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CapabilityStatus:
        by_api = _pick(data, "supported_by_api", "supportedByApi")
        in_practice = _pick(data, "supported_in_practice", "supportedInPractice")
        return cls(
            supported_by_api=True if by_api is None else bool(by_api),
            supported_in_practice=True if in_practice is None else bool(in_practice),
        )


@dataclass(slots=True)
class CapabilitiesReport:
    """Device capability report as detected by the collector."""

    gps: CapabilityStatus = field(default_factory=CapabilityStatus)
    motion: CapabilityStatus = field(default_factory=CapabilityStatus)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CapabilitiesReport:
        gps_raw = data.get("gps")
        motion_raw = _pick(data, "motion", "device_motion", "deviceMotion")
        return cls(
            gps=(
                CapabilityStatus.from_dict(gps_raw)
                if isinstance(gps_raw, dict)
                else CapabilityStatus()
            ),
            motion=(
                CapabilityStatus.from_dict(motion_raw)
                if isinstance(motion_raw, dict)
                else CapabilityStatus()
            ),
        )

    def status_for(self, sensor: SensorKind) -> CapabilityStatus:
        return self.gps if sensor is SensorKind.GPS else self.motion


@dataclass(slots=True)
class DiagnosticsPermissions:
    motion: PermissionState = PermissionState.PROMPT
    location: PermissionState = PermissionState.PROMPT
    # Reported by the collector but not used by the diagnostics rules.
    orientation: PermissionState | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiagnosticsPermissions:
        orientation = data.get("orientation")
        return cls(
            motion=parse_permission(data.get("motion")),
            location=parse_permission(data.get("location")),
            orientation=parse_permission(orientation) if orientation is not None else None,
        )

    def for_sensor(self, sensor: SensorKind) -> PermissionState:
        return self.location if sensor is SensorKind.GPS else self.motion


# ---------------------------------------------------------------------------
# Raw samples
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RawSample:
    """The liveness-relevant part of one collected sample."""

    timestamp_ms: float
    has_motion: bool = False
    gps_timestamp_ms: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawSample:
        """Parse a collector sample (``timestamp`` + ``sensors`` payloads).

        Raises ``ValueError`` when the sample carries no usable timestamp.
        """
        timestamp = _as_float_or_none(_pick(data, "timestamp_ms", "timestamp"))
        if timestamp is None:
            raise ValueError("sample requires a finite timestamp")
        sensors = data.get("sensors")
        if not isinstance(sensors, dict):
            sensors = {}
        gps = sensors.get("gps")
        gps_ts = _as_float_or_none(gps.get("timestamp")) if isinstance(gps, dict) else None
        return cls(
            timestamp_ms=timestamp,
            has_motion=isinstance(sensors.get("motion"), dict),
            gps_timestamp_ms=gps_ts,
        )
