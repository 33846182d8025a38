"""Replay a recorded diagnostics input stream and print the final snapshot.

Each JSONL line is one input record with a ``record_type`` and a ``t_ms``
timestamp::

    {"record_type": "session_start", "t_ms": 0}
    {"record_type": "health", "t_ms": 500, "health": {"gps": {...}, "motion": {...}}}
    {"record_type": "session_stop", "t_ms": 9000}
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .config import load_config
from .diagnostics import DiagnosticsManager, DiagnosticsSnapshot
from .domain_models import (
    CapabilitiesReport,
    CollectionHealth,
    DiagnosticsPermissions,
    RawSample,
)

LOGGER = logging.getLogger(__name__)

REPLAY_RECORD_TYPES: tuple[str, ...] = (
    "permissions",
    "capabilities",
    "sample",
    "health",
    "tick",
    "session_start",
    "session_stop",
    "reset",
)


def _has_finite_t_ms(record: dict[str, Any]) -> bool:
    value = record.get("t_ms")
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def iter_replay_records(path: Path) -> Iterator[dict[str, Any]]:
    """Yield well-formed replay records, skipping corrupt or unknown lines."""
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as exc:
                LOGGER.warning("Skipping corrupt JSONL line %d in %s: %s", line_no, path, exc)
                continue
            if not isinstance(payload, dict):
                continue
            if payload.get("record_type") not in REPLAY_RECORD_TYPES:
                LOGGER.warning(
                    "Skipping line %d in %s: unknown record_type %r",
                    line_no,
                    path,
                    payload.get("record_type"),
                )
                continue
            if not _has_finite_t_ms(payload):
                LOGGER.warning("Skipping line %d in %s: missing t_ms", line_no, path)
                continue
            yield payload


def _payload(record: dict[str, Any], key: str) -> dict[str, Any]:
    value = record.get(key)
    return value if isinstance(value, dict) else {}


def apply_record(manager: DiagnosticsManager, record: dict[str, Any]) -> None:
    record_type = record["record_type"]
    t_ms = float(record["t_ms"])
    if record_type == "permissions":
        manager.update_permissions(DiagnosticsPermissions.from_dict(_payload(record, "permissions")))
    elif record_type == "capabilities":
        manager.update_capabilities(CapabilitiesReport.from_dict(_payload(record, "capabilities")))
    elif record_type == "sample":
        sample = _payload(record, "sample")
        sample.setdefault("timestamp", t_ms)
        manager.record_sample(RawSample.from_dict(sample))
    elif record_type == "health":
        manager.update_health(CollectionHealth.from_dict(_payload(record, "health")), t_ms)
    elif record_type == "tick":
        manager.tick(t_ms)
    elif record_type == "session_start":
        manager.start_session(t_ms)
    elif record_type == "session_stop":
        manager.stop_session(t_ms)
    elif record_type == "reset":
        manager.reset_all(t_ms)


def replay(path: Path, manager: DiagnosticsManager) -> tuple[DiagnosticsSnapshot, int]:
    """Feed every record in *path* through *manager*; returns (snapshot, applied count)."""
    applied = 0
    for record in iter_replay_records(path):
        apply_record(manager, record)
        applied += 1
    return manager.snapshot(), applied


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay recorded sensor inputs through the diagnostics state machine"
    )
    parser.add_argument("input", type=Path, help="Input replay file (.jsonl)")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the final snapshot JSON here instead of stdout",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not args.input.exists():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1
    try:
        config = load_config(args.config)
    except (ValueError, OSError) as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        return 1

    manager = DiagnosticsManager(config.analysis)
    try:
        snapshot, applied = replay(args.input, manager)
    except OSError as exc:
        print(f"Error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if applied == 0:
        print(f"Error: no valid replay records in {args.input}", file=sys.stderr)
        return 1

    text = json.dumps(snapshot.to_dict(), indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        print(f"wrote snapshot: {args.output} ({applied} records)")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
