"""Static issue catalog: title, severity and owning sensor per kind."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from ..domain_models import DiagnosticKind, SensorKind, Severity


class UnknownDiagnosticKindError(KeyError):
    """Raised when a kind without a catalog entry is looked up.

    This is a coding error in the candidate evaluator, never a runtime
    condition to recover from.
    """


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    title: str
    severity: Severity
    sensor: SensorKind


DIAGNOSTIC_CATALOG: MappingProxyType[DiagnosticKind, CatalogEntry] = MappingProxyType(
    {
        DiagnosticKind.GPS_LOST: CatalogEntry("GPS signal lost", Severity.ERROR, SensorKind.GPS),
        DiagnosticKind.GPS_LOW_RATE: CatalogEntry(
            "GPS update rate low", Severity.WARN, SensorKind.GPS
        ),
        DiagnosticKind.GPS_POOR_ACCURACY: CatalogEntry(
            "GPS accuracy degraded", Severity.WARN, SensorKind.GPS
        ),
        DiagnosticKind.IMU_STALLED: CatalogEntry(
            "Motion sensor stalled", Severity.ERROR, SensorKind.MOTION
        ),
        DiagnosticKind.IMU_LOW_RATE: CatalogEntry(
            "Motion sensor rate low", Severity.WARN, SensorKind.MOTION
        ),
        DiagnosticKind.PERMISSION_DENIED_GPS: CatalogEntry(
            "Location permission denied", Severity.ERROR, SensorKind.GPS
        ),
        DiagnosticKind.PERMISSION_DENIED_MOTION: CatalogEntry(
            "Motion permission denied", Severity.ERROR, SensorKind.MOTION
        ),
        DiagnosticKind.UNSUPPORTED_GPS: CatalogEntry(
            "GPS unsupported", Severity.ERROR, SensorKind.GPS
        ),
        DiagnosticKind.UNSUPPORTED_MOTION: CatalogEntry(
            "Motion sensors unsupported", Severity.ERROR, SensorKind.MOTION
        ),
    }
)

CATALOG_KINDS: tuple[DiagnosticKind, ...] = tuple(DIAGNOSTIC_CATALOG)
"""All catalogued kinds in evaluation/display order."""


def catalog_entry(kind: DiagnosticKind) -> CatalogEntry:
    try:
        return DIAGNOSTIC_CATALOG[kind]
    except KeyError:
        raise UnknownDiagnosticKindError(f"No catalog entry for diagnostic kind {kind!r}") from None
