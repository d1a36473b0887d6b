"""Tests for building the target registry from config."""

from __future__ import annotations

from pathlib import Path

import pytest

from imagegate.core.exceptions import ConfigError
from imagegate.core.registry import ComponentRegistry
from imagegate.core.targets import build_targets
from imagegate.publishers import DockerPublisher, DryRunPublisher

from _helpers import make_config_manager


def test_default_targets_bound_to_docker(tmp_path: Path, registry: ComponentRegistry) -> None:
    mgr = make_config_manager(
        tmp_path,
        environ={"ECR_PUBLIC_ENDPOINT": "public.ecr.aws/abc", "AWS_REGION": "us-east-1"},
    )
    targets = build_targets(mgr, registry)
    assert [t.name for t in targets] == ["rocky9", "ubuntu24"]
    assert all(isinstance(t.publish_action, DockerPublisher) for t in targets)
    assert targets[0].publish_action.image_ref == "public.ecr.aws/abc/cbdb/build/rocky9:latest"
    assert targets[1].build_context == "docker/cbdb/build/ubuntu24"


def test_dry_run_binds_every_target_to_dry_run(tmp_path: Path, registry: ComponentRegistry) -> None:
    targets = build_targets(make_config_manager(tmp_path), registry, dry_run=True)
    assert all(isinstance(t.publish_action, DryRunPublisher) for t in targets)
    assert {t.publisher for t in targets} == {"dry-run"}


def test_each_target_gets_its_own_publisher(tmp_path: Path, registry: ComponentRegistry) -> None:
    targets = build_targets(make_config_manager(tmp_path), registry)
    assert targets[0].publish_action is not targets[1].publish_action


def test_per_target_publisher_overrides_default(tmp_path: Path, registry: ComponentRegistry) -> None:
    mgr = make_config_manager(
        tmp_path,
        yaml_text="""
targets:
  - name: a
    watched_prefix: images/a
  - name: b
    watched_prefix: images/b
    publisher: dry-run
""",
    )
    targets = build_targets(mgr, registry)
    assert targets[0].publisher == "docker"
    assert targets[1].publisher == "dry-run"


def test_duplicate_target_names_are_config_error(tmp_path: Path, registry: ComponentRegistry) -> None:
    mgr = make_config_manager(
        tmp_path,
        yaml_text="""
targets:
  - name: a
    watched_prefix: images/a
  - name: a
    watched_prefix: images/b
""",
    )
    with pytest.raises(ConfigError, match="Duplicate"):
        build_targets(mgr, registry)


def test_empty_targets_are_config_error(tmp_path: Path, registry: ComponentRegistry) -> None:
    mgr = make_config_manager(tmp_path, yaml_text="targets: []\n")
    with pytest.raises(ConfigError, match="No build targets"):
        build_targets(mgr, registry)


def test_unknown_publisher_is_config_error(tmp_path: Path, registry: ComponentRegistry) -> None:
    mgr = make_config_manager(tmp_path, yaml_text="publisher: kaniko\n")
    with pytest.raises(ConfigError, match="Unknown publisher: kaniko"):
        build_targets(mgr, registry)


def test_empty_prefix_is_config_error(tmp_path: Path, registry: ComponentRegistry) -> None:
    mgr = make_config_manager(tmp_path, yaml_text="targets:\n  - name: a\n    watched_prefix: ''\n")
    with pytest.raises(ConfigError, match="Invalid target 'a'"):
        build_targets(mgr, registry)
