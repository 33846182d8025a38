"""Sensor diagnostics package: candidate evaluation, hysteresis and session findings."""

from ._types import DiagnosticEvent, IssueCandidate, IssuePhase, IssueState  # noqa: F401
from .catalog import (  # noqa: F401
    CATALOG_KINDS,
    DIAGNOSTIC_CATALOG,
    CatalogEntry,
    UnknownDiagnosticKindError,
    catalog_entry,
)
from .evaluator import CandidateEvaluation, evaluate_candidates  # noqa: F401
from .manager import DiagnosticsManager  # noqa: F401
from .metrics import build_issue_metrics, merge_metrics  # noqa: F401
from .snapshot import (  # noqa: F401
    DiagnosticIssue,
    DiagnosticsSnapshot,
    DiagnosticsSummary,
    build_snapshot,
)
from .tracker import HysteresisTracker, IssueTransition, advance_issue  # noqa: F401
