"""Configuration loading from .env and YAML."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError

from imagegate.core.exceptions import ConfigError

log = logging.getLogger(__name__)

#: Env vars that are handed to publishers but never stored in AppConfig.
CREDENTIAL_ENV_KEYS = ("DOCKERHUB_USERNAME", "DOCKERHUB_ACCESS_TOKEN")


def _find_project_root(start: Path | None = None) -> Path:
    """Find project root by looking for pyproject.toml upward."""
    current = Path(start or Path.cwd()).resolve()
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return Path.cwd().resolve()


class TargetConfigModel(BaseModel):
    """One entry of the ``targets`` list."""

    name: str
    watched_prefix: str
    build_context: str = ""
    image: str = ""
    tag: str = "latest"
    publisher: str | None = None


def _default_targets() -> list[TargetConfigModel]:
    return [
        TargetConfigModel(name="rocky9", watched_prefix="docker/cbdb/build/rocky9"),
        TargetConfigModel(name="ubuntu24", watched_prefix="docker/cbdb/build/ubuntu24"),
    ]


class RegistryConfigModel(BaseModel):
    """Container registry section of config."""

    endpoint: str = ""
    aws_region: str = ""
    dockerhub_login: bool = True


class PublishConfigModel(BaseModel):
    """Publish section of config."""

    command_timeout: int = 3600
    push: bool = True


class AppConfig(BaseModel):
    """Full application configuration."""

    branches: list[str] = Field(default_factory=lambda: ["main"])
    publisher: str = "docker"
    max_workers: int = Field(default=1, ge=1)
    registry: RegistryConfigModel = Field(default_factory=RegistryConfigModel)
    publish: PublishConfigModel = Field(default_factory=PublishConfigModel)
    targets: list[TargetConfigModel] = Field(default_factory=_default_targets)

    def branch_allowed(self, ref: str | None) -> bool:
        """True if ref (``main`` or ``refs/heads/main``) is a watched branch; None always passes."""
        if not ref:
            return True
        branch = ref[len("refs/heads/"):] if ref.startswith("refs/heads/") else ref
        return branch in self.branches


class ConfigManager:
    """Load and merge configuration from .env and YAML."""

    def __init__(
        self,
        project_root: Path | None = None,
        env_path: Path | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._root = Path(project_root or _find_project_root()).resolve()
        self._env_path = Path(env_path) if env_path else self._root / ".env"
        self._config_path = Path(config_path) if config_path else self._root / "config" / "default.yaml"
        self._config: AppConfig | None = None
        self._env: dict[str, str] = {}

    def load_env(self) -> dict[str, str]:
        """Load .env file into a dict (without modifying os.environ)."""
        try:
            self._env = {k: v for k, v in dotenv_values(self._env_path).items() if v is not None}
            return self._env
        except (OSError, PermissionError) as e:
            log.warning("Failed to read .env file %s: %s", self._env_path, e)
            self._env = {}
            return self._env

    def load_yaml(self) -> dict[str, Any]:
        """Load YAML config file if it exists."""
        if not self._config_path.exists():
            return {}
        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, PermissionError) as e:
            log.warning("Failed to read config file %s: %s", self._config_path, e)
            return {}
        except yaml.YAMLError as e:
            log.warning("Malformed YAML in %s: %s", self._config_path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring config file %s: top level is not a mapping", self._config_path)
            return {}
        return data

    def load(self, environ: dict[str, str] | None = None) -> AppConfig:
        """Load .env and YAML, merge with defaults, return AppConfig.

        ``environ`` (usually ``os.environ``) takes precedence over the .env file,
        which takes precedence over YAML.
        """
        env = {**self.load_env(), **(environ or {})}
        self._env = env
        config_dict: dict[str, Any] = dict(self.load_yaml())

        # Environment variables override YAML values
        registry = config_dict.get("registry") or {}
        if not isinstance(registry, dict):
            raise ConfigError(f"Invalid configuration in {self._config_path}: 'registry' must be a mapping")
        registry = dict(registry)
        if env.get("ECR_PUBLIC_ENDPOINT"):
            registry["endpoint"] = env["ECR_PUBLIC_ENDPOINT"]
        if env.get("AWS_REGION"):
            registry["aws_region"] = env["AWS_REGION"]
        if registry:
            config_dict["registry"] = registry
        if env.get("IMAGEGATE_PUBLISHER"):
            config_dict["publisher"] = env["IMAGEGATE_PUBLISHER"]
        if env.get("IMAGEGATE_MAX_WORKERS"):
            config_dict["max_workers"] = env["IMAGEGATE_MAX_WORKERS"]
        if env.get("IMAGEGATE_BRANCHES"):
            config_dict["branches"] = [b.strip() for b in env["IMAGEGATE_BRANCHES"].split(",") if b.strip()]

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self._config_path}: {e}") from e
        return self._config

    @property
    def config(self) -> AppConfig:
        """Return loaded config; load if not yet loaded."""
        if self._config is None:
            self.load()
        if self._config is None:
            raise RuntimeError("ConfigManager.load() failed to produce a config")
        return self._config

    @property
    def env(self) -> dict[str, str]:
        """Return loaded env dict."""
        if not self._env and self._env_path.exists():
            self.load_env()
        return self._env

    def credentials(self) -> dict[str, str]:
        """Registry credentials from the environment, for handing to publishers."""
        return {k.lower(): self.env[k] for k in CREDENTIAL_ENV_KEYS if self.env.get(k)}

    @property
    def project_root(self) -> Path:
        return self._root
