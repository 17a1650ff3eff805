from __future__ import annotations

from typing import Any, Callable

from devcli.config_loader import Config
from devcli.errors import ConfigurationError
from devcli.executors.api import Executor

ProviderFactory = Callable[[Any, Config, Executor], Any]

DISABLED_DRIVERS = {"none", ""}


class ProviderRegistry:
    """
    Maps (type, driver) to a provider class and caches one instance per key.

    Core code only asks for "the database provider"; the configured driver
    decides which class answers.
    """

    def __init__(self) -> None:
        self._by_driver: dict[tuple[str, str], ProviderFactory] = {}
        self._instances: dict[tuple[str, str], Any] = {}

    def register(self, type: str, driver: str, cls: ProviderFactory) -> None:
        if not isinstance(type, str) or not type:
            raise ValueError(f"Invalid provider type: {type!r}")
        if not isinstance(driver, str) or not driver or driver in DISABLED_DRIVERS:
            raise ValueError(f"Invalid provider driver: {driver!r}")
        self._by_driver[(type, driver)] = cls

    def has(self, type: str, driver: str) -> bool:
        return (type, driver) in self._by_driver

    def get(self, type: str, driver: str) -> ProviderFactory | None:
        return self._by_driver.get((type, driver))

    def list_providers(self, type: str) -> list[str]:
        return sorted(d for (t, d) in self._by_driver if t == type)

    def list_types(self) -> list[str]:
        return sorted({t for (t, _d) in self._by_driver})

    def resolve(self, type: str, config: Config, executor: Executor) -> Any | None:
        section = config.section(type)
        driver = section.get("driver")
        if driver is None or (isinstance(driver, str) and driver.strip().lower() in DISABLED_DRIVERS):
            return None
        if not isinstance(driver, str):
            raise ConfigurationError(f"'{type}.driver' must be a string")

        key = (type, driver)
        cached = self._instances.get(key)
        if cached is not None:
            return cached

        cls = self._by_driver.get(key)
        if cls is None:
            known = ", ".join(self.list_providers(type)) or "(none)"
            raise ConfigurationError(
                f"Unknown {type} driver: {driver} (known: {known})",
                hint=f"set {type}.driver to one of: {known}, or none",
            )
        instance = cls(section, config, executor)
        self._instances[key] = instance
        return instance

    def clear_instances(self) -> None:
        self._instances.clear()

    def clear(self) -> None:
        self._by_driver.clear()
        self._instances.clear()


def default_registry() -> ProviderRegistry:
    from devcli.providers.database import MySQLProvider, PostgresProvider, SQLiteProvider
    from devcli.providers.hosts import EtcHostsProvider
    from devcli.providers.storage import FilesystemProvider, S3Provider

    registry = ProviderRegistry()
    registry.register("database", "mysql", MySQLProvider)
    registry.register("database", "postgres", PostgresProvider)
    registry.register("database", "postgresql", PostgresProvider)
    registry.register("database", "sqlite", SQLiteProvider)
    registry.register("storage", "filesystem", FilesystemProvider)
    registry.register("storage", "s3", S3Provider)
    registry.register("storage", "minio", S3Provider)
    registry.register("hosts", "etc-hosts", EtcHostsProvider)
    return registry
