"""Framework core: config, registry, change evaluation, dispatch, health."""

from imagegate.core.config import AppConfig, ConfigManager
from imagegate.core.dispatcher import dispatch
from imagegate.core.evaluator import evaluate, validate_targets
from imagegate.core.health import HealthChecker, HealthCheckResult
from imagegate.core.plugin_loader import PluginLoader
from imagegate.core.registry import ComponentRegistry
from imagegate.core.schema import (
    BuildTarget,
    ChangeEvent,
    DispatchReport,
    GateResult,
    PluginInfo,
    PublishResult,
    TargetOutcome,
)
from imagegate.core.targets import build_targets

__all__ = [
    "AppConfig",
    "BuildTarget",
    "ChangeEvent",
    "ComponentRegistry",
    "ConfigManager",
    "DispatchReport",
    "GateResult",
    "HealthCheckResult",
    "HealthChecker",
    "PluginInfo",
    "PluginLoader",
    "PublishResult",
    "TargetOutcome",
    "build_targets",
    "dispatch",
    "evaluate",
    "validate_targets",
]
