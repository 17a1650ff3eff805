from __future__ import annotations

import importlib
import importlib.util
import logging
import os
import re
import sys
from enum import Enum
from importlib import metadata
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable, Mapping, Sequence

from devcli.errors import PluginError
from devcli.plugins.api import HOOK_NAMES, PluginHooks, PluginManifest

ENTRY_POINT_GROUP = "devcli.plugins"
PLUGINS_DIRS_ENV = "DEVCLI_PLUGINS_DIRS"
BUILTIN_PLUGINS = ("django", "express", "laravel", "rails")

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+([-+].+)?$")


class PluginState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


def load_module_from_file(py_file: Path, *, module_name: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load plugin module from {py_file}")
    mod = importlib.util.module_from_spec(spec)
    # dataclasses look the module up in sys.modules while processing annotations.
    sys.modules[module_name] = mod
    try:
        spec.loader.exec_module(mod)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return mod


def _extract_manifest(obj: Any, *, origin: str) -> Any:
    # Preferred: PLUGIN = PluginManifest(...)
    plugin = getattr(obj, "PLUGIN", None)
    if plugin is not None:
        return plugin
    # Alternative: def get_plugin() -> PluginManifest
    get_plugin = getattr(obj, "get_plugin", None)
    if callable(get_plugin):
        return get_plugin()
    if isinstance(obj, (PluginManifest, Mapping)):
        return obj
    raise PluginError(f"Plugin module {origin} must define PLUGIN or get_plugin()")


def _coerce_manifest(raw: Any, *, origin: str) -> PluginManifest:
    if isinstance(raw, PluginManifest):
        manifest = raw
    elif isinstance(raw, Mapping):
        hooks = raw.get("hooks") or {}
        if isinstance(hooks, Mapping):
            hooks = PluginHooks(**{k: v for k, v in hooks.items() if k in HOOK_NAMES})
        manifest = PluginManifest(
            name=raw.get("name"),  # type: ignore[arg-type]
            version=raw.get("version"),  # type: ignore[arg-type]
            description=str(raw.get("description") or ""),
            commands=raw.get("commands"),
            config_schema=raw.get("config_schema") or {},
            hooks=hooks,
        )
    else:
        raise PluginError(f"Plugin {origin} exported {type(raw).__name__}, expected a manifest")

    if not isinstance(manifest.name, str) or not manifest.name:
        raise PluginError(f"Plugin {origin} is missing required field 'name'")
    if not isinstance(manifest.version, str) or not manifest.version:
        raise PluginError(f"Plugin {origin} is missing required field 'version'")
    if not _VERSION_RE.match(manifest.version):
        raise PluginError(f"Plugin {origin} has an invalid version: {manifest.version!r}")
    return manifest


def _split_env_paths(value: str) -> list[Path]:
    return [Path(part.strip()) for part in value.split(os.pathsep) if part.strip()]


class PluginManager:
    """
    Loads framework plugins by name and exposes their commands and hooks.

    Lookup order for a name: the built-in `devcli.plugins.<name>` package,
    the `devcli.plugins` entry point group, then `<name>.py` or
    `<name>/__init__.py` inside the plugin directories.
    """

    def __init__(self, *, logger: logging.Logger, plugin_dirs: Sequence[Path] = ()) -> None:
        self._logger = logger
        self._plugins: dict[str, PluginManifest] = {}
        self._states: dict[str, PluginState] = {}
        self._errors: dict[str, str] = {}
        self._commands: dict[str, list[Any]] = {}

        dirs = list(plugin_dirs)
        env = os.environ.get(PLUGINS_DIRS_ENV)
        if env:
            dirs.extend(_split_env_paths(env))
        seen: set[Path] = set()
        self._dirs: list[Path] = []
        for d in dirs:
            d = d.expanduser().resolve()
            if d not in seen:
                seen.add(d)
                self._dirs.append(d)

    @property
    def plugin_names(self) -> list[str]:
        return list(self._plugins)

    @property
    def errors(self) -> dict[str, str]:
        return dict(self._errors)

    def state(self, name: str) -> PluginState:
        return self._states.get(name, PluginState.UNLOADED)

    def has_plugin(self, name: str) -> bool:
        return name in self._plugins

    def get_plugin(self, name: str) -> PluginManifest | None:
        return self._plugins.get(name)

    def _entry_points(self) -> list[metadata.EntryPoint]:
        return list(metadata.entry_points(group=ENTRY_POINT_GROUP))

    def _find_in_dirs(self, name: str) -> Path | None:
        for d in self._dirs:
            for candidate in (d / f"{name}.py", d / name / "__init__.py"):
                if candidate.is_file():
                    return candidate
        return None

    def _import(self, name: str) -> tuple[Any, str]:
        if name in BUILTIN_PLUGINS:
            module = importlib.import_module(f"devcli.plugins.{name}")
            return _extract_manifest(module, origin=module.__name__), module.__name__

        for ep in self._entry_points():
            if ep.name == name:
                return _extract_manifest(ep.load(), origin=f"entry point {ep.value}"), ep.value

        path = self._find_in_dirs(name)
        if path is not None:
            module_name = f"devcli_user_plugin_{name}_{abs(hash(str(path)))}"
            module = load_module_from_file(path, module_name=module_name)
            return _extract_manifest(module, origin=str(path)), str(path)

        known = ", ".join(self.list_available()) or "(none)"
        raise PluginError(f"Plugin not found: {name} (available: {known})")

    def load_plugin(self, name: str) -> PluginManifest:
        cached = self._plugins.get(name)
        if cached is not None:
            return cached
        if self.state(name) is PluginState.FAILED:
            raise PluginError(f"Plugin {name} failed to load: {self._errors.get(name, 'unknown error')}")
        if self.state(name) is PluginState.LOADING:
            raise PluginError(f"Plugin {name} is already loading (circular import?)")

        self._states[name] = PluginState.LOADING
        try:
            raw, origin = self._import(name)
            manifest = _coerce_manifest(raw, origin=origin)
            if manifest.name != name:
                raise PluginError(f"Plugin {origin} declares name {manifest.name!r}, expected {name!r}")
        except Exception as e:
            self._states[name] = PluginState.FAILED
            self._errors[name] = str(e)
            raise
        self._plugins[name] = manifest
        self._states[name] = PluginState.LOADED
        self._logger.debug("Loaded plugin %s v%s from %s", manifest.name, manifest.version, origin)
        return manifest

    def load_plugins(self, names: Iterable[str]) -> list[PluginManifest]:
        loaded: list[PluginManifest] = []
        for name in names:
            try:
                loaded.append(self.load_plugin(name))
            except Exception as e:
                self._logger.warning("Failed to load plugin %s: %s", name, e)
        return loaded

    def get_commands(self, name: str) -> list[Any]:
        if name in self._commands:
            return self._commands[name]
        manifest = self._plugins.get(name)
        if manifest is None:
            raise PluginError(f"Plugin not loaded: {name}")
        commands = manifest.materialize_commands()
        self._commands[name] = commands
        return commands

    def get_hooks(self, name: str) -> PluginHooks | None:
        manifest = self._plugins.get(name)
        return manifest.hooks if manifest is not None else None

    def plugin_config(self, name: str, settings: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
        """Schema defaults overlaid with `plugins.config.<name>`."""
        manifest = self._plugins.get(name)
        defaults = dict(manifest.config_schema) if manifest is not None else {}
        return {**defaults, **dict(settings.get(name) or {})}

    def run_hook(self, hook: str, context: Any, *args: Any) -> None:
        for name, manifest in list(self._plugins.items()):
            fn = manifest.hooks.get(hook)
            if fn is None:
                continue
            try:
                fn(context, *args)
            except Exception as e:
                self._logger.warning("Plugin %s %s hook failed: %s", name, hook, e)

    def list_available(self) -> list[str]:
        names = set(BUILTIN_PLUGINS)
        names.update(ep.name for ep in self._entry_points())
        for d in self._dirs:
            if not d.is_dir():
                continue
            for p in d.iterdir():
                if p.name.startswith("_"):
                    continue
                if p.suffix == ".py":
                    names.add(p.stem)
                elif (p / "__init__.py").is_file():
                    names.add(p.name)
        return sorted(names)

    def unload_plugin(self, name: str) -> None:
        self._plugins.pop(name, None)
        self._commands.pop(name, None)
        self._errors.pop(name, None)
        self._states.pop(name, None)

    def unload_all(self) -> None:
        for name in list(self._states):
            self.unload_plugin(name)
