"""Shared pytest fixtures for imagegate tests.

Factory functions live in ``_helpers.py``; this module re-exports them as
pytest fixtures so tests can receive them via dependency injection.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from imagegate.core.config import ConfigManager
from imagegate.core.registry import ComponentRegistry
from imagegate.core.schema import BuildTarget
from imagegate.publishers import register_builtin_publishers
from imagegate.reporters import register_builtin_reporters

from _helpers import make_config_manager, make_targets


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config_manager(tmp_path: Path) -> ConfigManager:
    """A real ConfigManager with defaults only (no YAML/env file)."""
    return make_config_manager(tmp_path)


@pytest.fixture()
def registry() -> ComponentRegistry:
    """A registry with the built-in publishers and reporters."""
    reg = ComponentRegistry()
    register_builtin_publishers(reg)
    register_builtin_reporters(reg)
    return reg


@pytest.fixture()
def targets() -> list[BuildTarget]:
    """rocky9 and ubuntu24 targets bound to recording publishers."""
    return make_targets()
