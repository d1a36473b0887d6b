"""Turn configured targets into BuildTargets bound to publish actions."""

from __future__ import annotations

import logging

from imagegate.core.config import ConfigManager
from imagegate.core.evaluator import validate_targets
from imagegate.core.exceptions import ConfigError, RegistryError
from imagegate.core.registry import ComponentRegistry
from imagegate.core.schema import BuildTarget

log = logging.getLogger(__name__)

DRY_RUN_PUBLISHER = "dry-run"


def build_targets(
    config_manager: ConfigManager,
    registry: ComponentRegistry,
    *,
    dry_run: bool = False,
) -> list[BuildTarget]:
    """Build the static target registry from config.

    Every target gets its own publisher instance, configured with its image,
    tag and the registry settings. ``dry_run`` binds every target to the
    dry-run publisher regardless of config.

    Raises:
        ConfigError: no targets, duplicate names, bad prefix or unknown publisher.
    """
    cfg = config_manager.config
    credentials = config_manager.credentials()
    targets: list[BuildTarget] = []
    for entry in cfg.targets:
        publisher_name = DRY_RUN_PUBLISHER if dry_run else (entry.publisher or cfg.publisher)
        try:
            target = BuildTarget(
                name=entry.name,
                watched_prefix=entry.watched_prefix,
                build_context=entry.build_context,
                image=entry.image,
                tag=entry.tag,
                publisher=publisher_name,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid target {entry.name!r}: {e}") from e
        try:
            target.publish_action = registry.get_publisher(
                publisher_name,
                image=target.image,
                tag=target.tag,
                endpoint=cfg.registry.endpoint,
                aws_region=cfg.registry.aws_region,
                dockerhub_login=cfg.registry.dockerhub_login,
                command_timeout=cfg.publish.command_timeout,
                push=cfg.publish.push,
                cwd=str(config_manager.project_root),
                **credentials,
            )
        except RegistryError as e:
            raise ConfigError(f"Target {entry.name!r}: {e}") from e
        targets.append(target)
        log.debug("Registered target %s (prefix=%s, publisher=%s)", target.name, target.watched_prefix, publisher_name)

    validate_targets(targets)
    return targets
