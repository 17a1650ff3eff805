from __future__ import annotations

from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Mapping, Sequence, Union

# before_command(context, definition) / after_command(context, definition, result)
Hook = Callable[..., Any]
CommandsProvider = Union[Callable[[], Sequence[Any]], Sequence[Any]]

HOOK_NAMES = ("before_command", "after_command")


@dataclass(frozen=True)
class PluginHooks:
    before_command: Hook | None = None
    after_command: Hook | None = None

    def get(self, name: str) -> Hook | None:
        if name not in HOOK_NAMES:
            return None
        return getattr(self, name)


@dataclass(frozen=True)
class PluginManifest:
    """
    What a plugin module exposes as PLUGIN (or returns from get_plugin()).

    `commands` is usually a zero-argument callable so the command module is
    only imported when the commands are first requested.
    """

    name: str
    version: str
    description: str = ""
    commands: CommandsProvider | None = None
    config_schema: Mapping[str, Any] = field(default_factory=dict)
    hooks: PluginHooks = field(default_factory=PluginHooks)

    def materialize_commands(self) -> list[Any]:
        """Call the lazy provider; items are validated by the command loader."""
        provider = self.commands
        if provider is None:
            return []
        raw = provider() if callable(provider) else provider
        if isinstance(raw, ModuleType):
            raw = getattr(raw, "COMMANDS", ())
        elif isinstance(raw, Mapping):
            raw = raw.get("COMMANDS") or list(raw.values())
        return list(raw)
