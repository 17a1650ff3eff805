"""
Building blocks for the framework plugins.

Every framework command ends up as an interactive process in the `app`
service, so the plugins only differ in which tool they run and which fixed
arguments come first.
"""

from __future__ import annotations

import shlex
from typing import Any, Sequence

from devcli.commands.api import CommandDefinition
from devcli.util import RunResult

APP_SERVICE = "app"


def tool_argv(context: Any, plugin: str, tool: str | tuple[str, str]) -> list[str]:
    if isinstance(tool, tuple):
        key, default = tool
        value = context.plugin_config(plugin).get(key) or default
    else:
        value = tool
    return shlex.split(str(value))


def run_app(context: Any, argv: Sequence[str], *, interactive: bool = True) -> RunResult:
    executor = context.get_executor()
    return executor.run_in_service(APP_SERVICE, argv[0], list(argv[1:]), interactive=interactive)


def app_command(
    name: str,
    *,
    plugin: str,
    tool: str | tuple[str, str],
    args: Sequence[str] = (),
    description: str,
    category: str,
    aliases: Sequence[str] = (),
    announce: str | None = None,
) -> CommandDefinition:
    """
    `<tool> <args> <user args>` in the app service.

    A trailing `[name...]` placeholder forwards everything after the command
    name untouched, flags included.
    """

    def action(options, context, *extra):
        argv = [*tool_argv(context, plugin, tool), *args]
        for value in extra:
            argv.extend(value or [])
        if announce:
            context.status.info(announce)
        return run_app(context, argv)

    return CommandDefinition(
        name=name,
        action=action,
        description=description,
        category=category,
        aliases=tuple(aliases),
        allow_unknown_option=name.endswith("...]"),
    )
