"""Shared fixtures for the ridediag test suite."""

from __future__ import annotations

import pytest
from builders import permissions

from ridediag.diagnostics import DiagnosticsManager


@pytest.fixture
def manager() -> DiagnosticsManager:
    """Manager with default config and every permission granted."""
    mgr = DiagnosticsManager()
    mgr.update_permissions(permissions())
    return mgr
