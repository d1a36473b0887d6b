"""Shared test helpers and factory functions for imagegate tests.

Import this module directly from test files::

    from _helpers import make_config_manager, make_targets

Pytest fixtures that wrap these factories live in ``conftest.py``.
"""

from __future__ import annotations

import threading
from pathlib import Path

from imagegate.core.config import ConfigManager
from imagegate.core.schema import BuildTarget, PublishResult


ROCKY9_PREFIX = "docker/cbdb/build/rocky9"
UBUNTU24_PREFIX = "docker/cbdb/build/ubuntu24"


# ---------------------------------------------------------------------------
# Publish action doubles
# ---------------------------------------------------------------------------


class RecordingPublisher:
    """Publisher that records calls and returns a fixed result."""

    name = "recording"

    def __init__(self, success: bool = True, message: str = "", **_: object) -> None:
        self.success = success
        self.message = message
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def publish(self, target_name: str, build_context: str) -> PublishResult:
        with self._lock:
            self.calls.append((target_name, build_context))
        return PublishResult(success=self.success, message=self.message, image_ref=f"{target_name}:latest")


class RaisingPublisher(RecordingPublisher):
    """Publisher whose publish() raises after recording the call."""

    name = "raising"

    def publish(self, target_name: str, build_context: str) -> PublishResult:
        super().publish(target_name, build_context)
        raise RuntimeError("registry unreachable")


# ---------------------------------------------------------------------------
# Target factories
# ---------------------------------------------------------------------------


def make_target(name: str, prefix: str, action: object | None = None) -> BuildTarget:
    """Build a target bound to the given action (a fresh RecordingPublisher by default)."""
    target = BuildTarget(name=name, watched_prefix=prefix, publisher="recording")
    target.publish_action = action if action is not None else RecordingPublisher()
    return target


def make_targets(
    rocky9_action: object | None = None,
    ubuntu24_action: object | None = None,
) -> list[BuildTarget]:
    """The two default cbdb build targets, each with its own recording publisher."""
    return [
        make_target("rocky9", ROCKY9_PREFIX, rocky9_action),
        make_target("ubuntu24", UBUNTU24_PREFIX, ubuntu24_action),
    ]


# ---------------------------------------------------------------------------
# ConfigManager factory
# ---------------------------------------------------------------------------


def make_config_manager(
    tmp_path: Path,
    yaml_text: str | None = None,
    env_text: str | None = None,
    environ: dict[str, str] | None = None,
) -> ConfigManager:
    """Create a ConfigManager rooted at tmp_path, optionally with YAML and .env contents."""
    config_path = tmp_path / "config" / "default.yaml"
    if yaml_text is not None:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(yaml_text)
    env_path = tmp_path / ".env"
    if env_text is not None:
        env_path.write_text(env_text)
    mgr = ConfigManager(project_root=tmp_path, env_path=env_path, config_path=config_path)
    mgr.load(environ=environ or {})
    return mgr
