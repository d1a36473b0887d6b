"""Load third-party publishers and reporters from a plugins/ directory.

A plugin is any non-private ``.py`` file under ``plugins/`` that defines
``register(registry)``; it adds its components with
``registry.register_publisher(...)`` or ``registry.register_reporter(...)``.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from pathlib import Path

from imagegate.core.exceptions import PluginLoadError
from imagegate.core.registry import ComponentRegistry
from imagegate.core.schema import PluginInfo

log = logging.getLogger(__name__)


def _module_name(path: Path) -> str:
    return f"imagegate_plugin_{path.parent.name}_{path.stem}"


class PluginLoader:
    """Import plugin modules and hand each one the component registry."""

    def __init__(self, plugin_dirs: list[Path], registry: ComponentRegistry) -> None:
        self._plugin_dirs = [Path(d).resolve() for d in plugin_dirs]
        self._registry = registry
        self.load_errors: list[tuple[Path, PluginLoadError]] = []

    def plugin_files(self) -> list[Path]:
        """All candidate plugin files, sorted for a stable load order."""
        files: list[Path] = []
        for plugin_dir in self._plugin_dirs:
            if plugin_dir.is_dir():
                files.extend(p for p in plugin_dir.rglob("*.py") if not p.name.startswith("_"))
        return sorted(files)

    def load_plugin(self, plugin_path: Path) -> PluginInfo:
        """Import one plugin file and call its ``register(registry)``."""
        path = Path(plugin_path).resolve()
        if not path.is_file():
            raise PluginLoadError(f"Plugin path does not exist: {path}")

        module_name = _module_name(path)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise PluginLoadError(f"Could not load spec for: {path}")
        mod = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = mod
        try:
            spec.loader.exec_module(mod)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise PluginLoadError(f"Failed to import plugin {path}: {e}") from e

        register = getattr(mod, "register", None)
        if not callable(register):
            raise PluginLoadError(f"Plugin has no register() function: {path}")
        try:
            register(self._registry)
        except Exception as e:
            raise PluginLoadError(f"Plugin register() failed for {path}: {e}") from e

        log.debug("Loaded plugin %s", path)
        return PluginInfo(name=path.stem, path=path, module_name=module_name, plugin_type=path.parent.name)

    def load_all(self) -> list[PluginInfo]:
        """Load every plugin; failures are logged and kept in ``load_errors``."""
        self.load_errors = []
        loaded: list[PluginInfo] = []
        for path in self.plugin_files():
            try:
                loaded.append(self.load_plugin(path))
            except PluginLoadError as e:
                log.warning("Failed to load plugin %s: %s", path, e)
                self.load_errors.append((path, e))
        return loaded
