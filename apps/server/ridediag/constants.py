"""Diagnostics timing constants: single source of truth.

Hold windows and liveness thresholds are fixed properties of the
diagnostics state machine, not user configuration.  Rate and accuracy
thresholds live in :mod:`ridediag.config` instead.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Hysteresis
# ---------------------------------------------------------------------------
PROBLEM_HOLD_MS: Final[int] = 2500
"""A non-immediate candidate must stay true this long before it activates."""

RECOVER_HOLD_MS: Final[int] = 1500
"""An active issue must stay clear this long before it deactivates."""

# ---------------------------------------------------------------------------
# Liveness
# ---------------------------------------------------------------------------
GPS_LOST_MS: Final[int] = 5000
"""Last GPS fix older than this marks the GPS as lost."""

GPS_FIRST_FIX_MS: Final[int] = 5000
"""Grace period after session start before a missing first fix counts."""

IMU_STALL_MS: Final[int] = 1200
"""Last motion sample older than this marks the IMU as stalled."""

IMU_FIRST_SAMPLE_MS: Final[int] = 200
"""Grace period after session start before a missing first motion sample counts."""

# ---------------------------------------------------------------------------
# Event timestamps
# ---------------------------------------------------------------------------
EVENT_TIME_DECIMALS: Final[int] = 2
"""Session-relative event times and durations are rounded to hundredths."""
