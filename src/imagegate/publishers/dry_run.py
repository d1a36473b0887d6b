"""Publisher that only logs what it would do."""

from __future__ import annotations

from imagegate.core.schema import PublishResult
from imagegate.publishers.docker_publisher import image_ref
from imagegate.publishers.publish_log import get_logger


class DryRunPublisher:
    """Report the image a target would publish without running docker."""

    name = "dry-run"

    def __init__(self, image: str = "", tag: str = "latest", endpoint: str = "", **_: object) -> None:
        self._ref = image_ref(endpoint, image, tag)

    def publish(self, target_name: str, build_context: str) -> PublishResult:
        get_logger().info("[%s] dry run: would build %s and push %s", target_name, build_context, self._ref)
        return PublishResult(success=True, message=f"dry run: {self._ref}", image_ref=self._ref)
