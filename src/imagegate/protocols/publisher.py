"""Protocol for publish actions."""

from __future__ import annotations

from typing import Protocol

from imagegate.core.schema import PublishResult


class Publisher(Protocol):
    """Protocol for publish actions (docker build/tag/push, dry run, plugins).

    Attributes:
        name: Unique identifier for this publish action.
    """

    name: str

    def publish(self, target_name: str, build_context: str) -> PublishResult:
        """Build the image for one target from its build context and push it."""
        ...
