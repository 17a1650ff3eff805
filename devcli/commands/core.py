from __future__ import annotations

import json

from devcli.commands.api import command
from devcli.commands.make import make
from devcli.providers import PROVIDER_TYPES


@command(
    "info",
    description="Show project, executor, provider and plugin information",
    category="Setup",
    options=["--json"],
)
def info(options, context) -> int:
    data = context.to_dict()
    data["executor"] = context.get_executor().get_info()
    providers = {}
    for type in PROVIDER_TYPES:
        provider = context.get_provider(type)
        providers[type] = provider.get_info() if provider is not None else None
    data["providers"] = providers

    if options.json:
        context.status.echo(json.dumps(data, indent=2, default=str))
        return 0

    context.status.echo(f"{data['name']} {data['version']}")
    context.status.echo(f"  project root:   {data['project_root']}")
    context.status.echo(f"  execution mode: {data['execution_mode']}")
    for key, value in data["executor"].items():
        if key != "type":
            context.status.echo(f"  {key + ':':<15} {value}")
    for type, details in providers.items():
        context.status.echo(f"  {type + ':':<15} {details['driver'] if details else 'not configured'}")
    plugins = data["plugins"]
    context.status.echo(f"  plugins:        {', '.join(plugins) if plugins else '(none)'}")
    return 0


@command("doctor", description="Check that the configured tools are reachable", category="Setup")
def doctor(options, context) -> int:
    problems = 0
    executor = context.get_executor()
    if executor.is_available():
        context.status.success("%s executor is available", executor.mode)
    else:
        context.status.error("%s executor is not available", executor.mode)
        problems += 1

    if executor.mode == "docker":
        compose_file = executor.find_compose_file()
        if compose_file is not None:
            context.status.success("compose file: %s", compose_file)
        else:
            context.status.error("no compose file found in %s", context.project_root)
            problems += 1

    env_file = context.config.paths.env_file
    if env_file.is_file():
        context.status.success("env file: %s", env_file)
    else:
        context.status.warning("env file not found: %s", env_file)

    for name, err in context.plugins.errors.items():
        context.status.error("plugin %s failed to load: %s", name, err)
        problems += 1

    hosts = context.hosts
    if hosts is not None and hosts.entries:
        result = hosts.check_entries()
        if result.missing:
            context.status.warning("missing hosts entries: %s", ", ".join(result.missing))
        else:
            context.status.success("hosts entries present")

    if problems:
        context.status.error("%d problem(s) found", problems)
        return 1
    return 0


COMMANDS = [info, doctor, make]
