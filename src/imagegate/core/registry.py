"""Central registry for all pluggable components."""

from __future__ import annotations

import logging
from typing import Any

from imagegate.core.exceptions import RegistryError
from imagegate.protocols import Publisher, Reporter

log = logging.getLogger(__name__)


class ComponentRegistry:
    """Central registry for publish actions and reporters."""

    def __init__(self) -> None:
        self._publishers: dict[str, type[Publisher]] = {}
        self._reporters: dict[str, type[Reporter]] = {}
        self._publisher_options: dict[str, dict[str, Any]] = {}

    def register_publisher(self, name: str, cls: type[Publisher], **options: Any) -> None:
        """Register a publisher class."""
        if name in self._publishers:
            log.warning("Overwriting publisher registration: %s", name)
        self._publishers[name] = cls
        if options:
            self._publisher_options[name] = options

    def register_reporter(self, fmt: str, cls: type[Reporter]) -> None:
        """Register a reporter class."""
        if fmt in self._reporters:
            log.warning("Overwriting reporter registration: %s", fmt)
        self._reporters[fmt] = cls

    def get_publisher(self, name: str, **kwargs: Any) -> Publisher:
        """Get a publisher instance by name."""
        if name not in self._publishers:
            raise RegistryError(f"Unknown publisher: {name}")
        cls = self._publishers[name]
        opts = {**self._publisher_options.get(name, {}), **kwargs}
        return cls(**opts)  # type: ignore[call-arg]

    def get_reporter(self, fmt: str) -> Reporter:
        """Get a reporter instance by format name."""
        if fmt not in self._reporters:
            raise RegistryError(f"Unknown reporter format: {fmt}")
        cls = self._reporters[fmt]
        return cls()  # type: ignore[call-arg]

    def list_available(self) -> dict[str, list[str]]:
        """Return all registered component names by category."""
        return {
            "publishers": list(self._publishers),
            "reporters": list(self._reporters),
        }
