"""Built-in publish actions."""

from imagegate.publishers.docker_publisher import DockerPublisher
from imagegate.publishers.dry_run import DryRunPublisher


def register_builtin_publishers(registry) -> None:
    """Register built-in publishers on the given registry."""
    registry.register_publisher("docker", DockerPublisher)
    registry.register_publisher("dry-run", DryRunPublisher)


__all__ = [
    "DockerPublisher",
    "DryRunPublisher",
    "register_builtin_publishers",
]
