from __future__ import annotations

import importlib
import logging
from dataclasses import replace
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable

from devcli.commands.api import CommandDefinition, definition_from, parse_placeholders
from devcli.config_loader import Config
from devcli.plugins.manager import PluginManager, load_module_from_file
from devcli.util import resolve_path

CORE_MODULE = "devcli.commands.core"


def _driver_enabled(config: Config, section: str) -> bool:
    driver = config.section(section).get("driver")
    return isinstance(driver, str) and driver.strip().lower() not in ("", "none")


def _raw_definitions(mod: ModuleType, *, origin: str) -> list[Any]:
    commands = getattr(mod, "COMMANDS", None)
    if commands is not None:
        return list(commands)
    single = getattr(mod, "COMMAND", None)
    if single is not None:
        return [single]
    get_commands = getattr(mod, "get_commands", None)
    if callable(get_commands):
        return list(get_commands())
    raise ValueError(f"Command module {origin} must define COMMANDS, COMMAND or get_commands()")


class CommandLoader:
    """
    Collects command definitions in four stages, each appending to the last:
    core commands, config-gated built-in groups, plugin commands, then custom
    paths. A bad file, plugin or definition is logged and skipped.
    """

    def __init__(self, config: Config, plugins: PluginManager, logger: logging.Logger) -> None:
        self.config = config
        self.plugins = plugins
        self.logger = logger

    def builtin_modules(self) -> list[str]:
        groups = self.config.commands
        modules = [CORE_MODULE]
        if groups.docker and self.config.execution.mode == "docker":
            modules.append("devcli.commands.docker")
        if groups.database and _driver_enabled(self.config, "database"):
            modules.append("devcli.commands.database")
        if groups.system:
            modules.append("devcli.commands.system")
        if groups.storage and _driver_enabled(self.config, "storage"):
            modules.append("devcli.commands.storage")
        return modules

    def validate(self, raw: Any, *, origin: str) -> CommandDefinition | None:
        try:
            definition = definition_from(raw, source=origin)
        except ValueError as e:
            self.logger.warning("Invalid command in %s: %s", origin, e)
            return None
        subcommands = tuple(
            s for s in (self.validate(sub, origin=origin) for sub in definition.subcommands) if s is not None
        )
        if subcommands != definition.subcommands:
            definition = replace(definition, subcommands=subcommands)
        if not definition.is_valid():
            label = definition.name or "<unnamed>"
            self.logger.warning("Invalid command %s in %s: needs a name and an action or subcommands", label, origin)
            return None
        try:
            parse_placeholders(definition.name)
        except ValueError as e:
            self.logger.warning("Invalid command in %s: %s", origin, e)
            return None
        return definition

    def _validate_all(self, raws: Iterable[Any], *, origin: str) -> list[CommandDefinition]:
        return [d for d in (self.validate(raw, origin=origin) for raw in raws) if d is not None]

    def load_module(self, module_name: str) -> list[CommandDefinition]:
        try:
            mod = importlib.import_module(module_name)
            raws = _raw_definitions(mod, origin=module_name)
        except Exception as e:
            self.logger.warning("Failed to load commands from %s: %s", module_name, e)
            return []
        return self._validate_all(raws, origin=module_name)

    def load_file(self, py_file: Path) -> list[CommandDefinition]:
        module_name = f"devcli_custom_{py_file.stem}_{abs(hash(str(py_file)))}"
        try:
            mod = load_module_from_file(py_file, module_name=module_name)
            raws = _raw_definitions(mod, origin=str(py_file))
        except Exception as e:
            self.logger.warning("Failed to load commands from %s: %s", py_file, e)
            return []
        return self._validate_all(raws, origin=str(py_file))

    def load_directory(self, directory: Path) -> list[CommandDefinition]:
        out: list[CommandDefinition] = []
        for py_file in sorted(directory.rglob("*.py")):
            rel = py_file.relative_to(directory)
            if any(part.startswith("_") for part in rel.parts):
                continue
            out.extend(self.load_file(py_file))
        return out

    def load_builtin(self) -> list[CommandDefinition]:
        out: list[CommandDefinition] = []
        for module_name in self.builtin_modules():
            out.extend(self.load_module(module_name))
        return out

    def load_plugin_commands(self) -> list[CommandDefinition]:
        out: list[CommandDefinition] = []
        enabled = list(self.config.plugins.enabled)
        if not enabled:
            return out
        self.plugins.load_plugins(enabled)
        for name in enabled:
            if not self.plugins.has_plugin(name):
                continue
            try:
                raws = self.plugins.get_commands(name)
            except Exception as e:
                self.logger.warning("Failed to load commands from plugin %s: %s", name, e)
                continue
            commands = self._validate_all(raws, origin=f"plugin:{name}")
            self.logger.debug("Loaded %d commands from plugin %s", len(commands), name)
            out.extend(commands)
        return out

    def load_custom(self) -> list[CommandDefinition]:
        out: list[CommandDefinition] = []
        for value in self.config.commands.custom:
            path = resolve_path(self.config.paths.project_root, value)
            if path.is_dir():
                out.extend(self.load_directory(path))
            elif path.is_file():
                out.extend(self.load_file(path))
            else:
                self.logger.warning("Custom command path not found: %s", path)
        return out

    def load(self) -> list[CommandDefinition]:
        commands = self.load_builtin()
        commands.extend(self.load_plugin_commands())
        commands.extend(self.load_custom())
        self.logger.debug("Loaded %d commands", len(commands))
        return commands
