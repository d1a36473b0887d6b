"""Pydantic models and data structures for change gating and publishing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from imagegate.core.exceptions import ChangeSetError


def normalize_path(path: str) -> str:
    """Normalise a repository-relative path: forward slashes, no leading ``./``."""
    norm = path.strip().replace("\\", "/")
    while norm.startswith("./"):
        norm = norm[2:]
    return norm


def normalize_prefix(prefix: str) -> str:
    """Normalise a watched prefix; ``dir/**`` and ``dir/`` both become ``dir``."""
    norm = normalize_path(prefix)
    if norm.endswith("/**"):
        norm = norm[:-3]
    return norm.rstrip("/")


class ChangeEvent(BaseModel):
    """Ordered, immutable list of paths modified by one push."""

    model_config = ConfigDict(frozen=True)

    paths: tuple[str, ...] = ()

    @field_validator("paths", mode="before")
    @classmethod
    def _check_paths(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            raise ValueError("paths must be a sequence of strings, not a single string")
        if not isinstance(value, Iterable):
            raise ValueError(f"paths must be a sequence of strings, not {type(value).__name__}")
        out: list[str] = []
        for i, p in enumerate(value):
            if not isinstance(p, str):
                raise ValueError(f"path #{i} is not a string: {p!r}")
            norm = normalize_path(p)
            if not norm:
                raise ValueError(f"path #{i} is empty")
            out.append(norm)
        return tuple(out)

    @classmethod
    def from_paths(cls, paths: Any) -> ChangeEvent:
        """Build a ChangeEvent, raising ChangeSetError on malformed input."""
        try:
            return cls(paths=paths)
        except (TypeError, ValueError) as e:
            raise ChangeSetError(f"Malformed change event: {e}") from e


class PublishResult(BaseModel):
    """Outcome of one publish action."""

    success: bool = True
    message: str = ""
    image_ref: str = ""


class BuildTarget(BaseModel):
    """A named image that is rebuilt and published when its watched path changes."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    watched_prefix: str
    build_context: str = ""
    image: str = ""
    tag: str = "latest"
    publisher: str = "docker"
    publish_action: Any = Field(default=None, exclude=True, repr=False)

    @field_validator("watched_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        norm = normalize_prefix(value)
        if not norm:
            raise ValueError("watched_prefix must not be empty")
        return norm

    def model_post_init(self, __context: Any) -> None:
        if not self.build_context:
            self.build_context = self.watched_prefix
        if not self.image:
            image = self.watched_prefix
            if image.startswith("docker/"):
                image = image[len("docker/"):]
            self.image = image

    def matches(self, path: str) -> bool:
        """True if path equals the watched prefix or lies beneath it."""
        return path == self.watched_prefix or path.startswith(self.watched_prefix + "/")


class GateResult(BaseModel):
    """Per-target decision of whether its publish pipeline should run."""

    model_config = ConfigDict(frozen=True)

    gates: Mapping[str, bool] = Field(default_factory=dict, validate_default=True)

    @field_validator("gates")
    @classmethod
    def _freeze_gates(cls, value: Mapping[str, bool]) -> Mapping[str, bool]:
        return MappingProxyType(dict(value))

    def __getitem__(self, name: str) -> bool:
        return self.gates[name]

    def __contains__(self, name: object) -> bool:
        return name in self.gates

    def changed(self) -> list[str]:
        """Names of targets whose gate is open, in registration order."""
        return [name for name, gate in self.gates.items() if gate]

    @property
    def any_changed(self) -> bool:
        return any(self.gates.values())


TargetStatus = Literal["skipped", "succeeded", "failed"]


class TargetOutcome(BaseModel):
    """What happened to one target during dispatch."""

    name: str
    status: TargetStatus
    message: str = ""
    image_ref: str = ""
    duration_seconds: float = 0.0


class DispatchReport(BaseModel):
    """Per-target outcomes of a dispatch; success only if no gated target failed."""

    outcomes: list[TargetOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status == "failed"]

    @property
    def success(self) -> bool:
        return not self.failures

    def outcome(self, name: str) -> TargetOutcome:
        for o in self.outcomes:
            if o.name == name:
                return o
        raise KeyError(name)


class PluginInfo(BaseModel):
    """Metadata about a discovered plugin."""

    name: str
    path: Path
    module_name: str
    plugin_type: str = ""
