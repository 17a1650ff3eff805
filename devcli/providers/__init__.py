"""
Resource providers (database, storage, hosts).

Providers issue their operations through an Executor; the registry picks the
driver class named in the config.
"""

from devcli.providers.registry import ProviderRegistry, default_registry

PROVIDER_TYPES = ("database", "storage", "hosts")

__all__ = ["PROVIDER_TYPES", "ProviderRegistry", "default_registry"]
