"""Custom exception hierarchy for imagegate."""

from __future__ import annotations


class ImageGateError(Exception):
    """Base exception for imagegate."""

    pass


class ConfigError(ImageGateError):
    """Raised when configuration loading or validation fails."""

    pass


class RegistryError(ImageGateError):
    """Raised when a component is not found or registration fails."""

    pass


class PluginLoadError(ImageGateError):
    """Raised when a plugin fails to load."""

    pass


class ChangeSetError(ImageGateError):
    """Raised when a change event is malformed or cannot be collected."""

    pass


class DispatchError(ImageGateError):
    """Raised when a gate result cannot be dispatched against the targets."""

    pass


class PublishError(ImageGateError):
    """Raised when a publish step (login, build, push) fails."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step} failed: {message}")
        self.step = step
