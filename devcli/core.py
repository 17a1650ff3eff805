from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from devcli.config_loader import Config
from devcli.errors import ConfigurationError
from devcli.executors import Executor, create_executor
from devcli.output import Status
from devcli.plugins.manager import PluginManager
from devcli.providers import PROVIDER_TYPES, ProviderRegistry, default_registry
from devcli.util import CommandRunner, load_env_file


@dataclass(frozen=True)
class Options:
    debug: bool = False
    verbose: bool = False
    dry_run: bool = False


@dataclass
class Context:
    """
    Threaded into every command action.

    The executor and one provider per type are created on first use and then
    reused for the rest of the process.
    """

    config: Config
    options: Options
    logger: logging.Logger
    runner: CommandRunner
    registry: ProviderRegistry
    plugins: PluginManager
    status: Status
    _executor: Executor | None = field(default=None, init=False, repr=False)
    _providers: dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _env: dict[str, str] | None = field(default=None, init=False, repr=False)

    def get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = create_executor(self.config, self.runner, self.logger)
        return self._executor

    def get_provider(self, type: str) -> Any | None:
        if type not in PROVIDER_TYPES:
            known = ", ".join(PROVIDER_TYPES)
            raise ConfigurationError(f"Unknown provider type: {type} (known: {known})")
        if type not in self._providers:
            self._providers[type] = self.registry.resolve(type, self.config, self.get_executor())
        return self._providers[type]

    def has_provider(self, type: str) -> bool:
        return self.get_provider(type) is not None

    @property
    def database(self) -> Any | None:
        return self.get_provider("database")

    @property
    def storage(self) -> Any | None:
        return self.get_provider("storage")

    @property
    def hosts(self) -> Any | None:
        return self.get_provider("hosts")

    @property
    def execution_mode(self) -> str:
        return self.config.execution.mode

    @property
    def containers(self) -> Mapping[str, str]:
        return self.config.execution.docker.containers

    @property
    def project_root(self) -> Path:
        return self.config.paths.project_root

    @property
    def env(self) -> dict[str, str]:
        if self._env is None:
            self._env = load_env_file(self.config.paths.env_file)
        return self._env

    def plugin_config(self, name: str) -> dict[str, Any]:
        return self.plugins.plugin_config(name, self.config.plugins.config)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.config.name,
            "version": self.config.version,
            "execution_mode": self.execution_mode,
            "project_root": str(self.project_root),
            "env_file": str(self.config.paths.env_file),
            "plugins": self.plugins.plugin_names,
            "drivers": {t: self.config.section(t).get("driver") for t in PROVIDER_TYPES},
            "dry_run": self.options.dry_run,
        }


def build_context(
    *,
    config: Config,
    options: Options,
    logger: logging.Logger,
    runner: CommandRunner | None = None,
    registry: ProviderRegistry | None = None,
    plugins: PluginManager | None = None,
) -> Context:
    return Context(
        config=config,
        options=options,
        logger=logger,
        runner=runner or CommandRunner(dry_run=options.dry_run, logger=logger),
        registry=registry or default_registry(),
        plugins=plugins or PluginManager(logger=logger, plugin_dirs=config.plugins.paths),
        status=Status(logger),
    )
