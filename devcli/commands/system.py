from __future__ import annotations

from devcli.commands.api import command, group

CATEGORY = "System"


def require_hosts(context):
    hosts = context.hosts
    if hosts is None:
        context.status.error("Hosts management is not configured", hint="set hosts.driver in your config")
    return hosts


@command(
    "add [hosts...]",
    description="Add hosts entries (default: the configured ones)",
    options=[("--ip <address>", "IP address the hostnames resolve to")],
)
def add(options, context, hosts):
    provider = require_hosts(context)
    if provider is None:
        return 1
    result = provider.add_entries(hosts or None, options.ip)
    for hostname in result.added:
        context.status.success("Added %s", hostname)
    for hostname in result.skipped:
        context.status.info("Already present: %s", hostname)
    if not result.added and not result.skipped:
        context.status.warning("No hostnames given and none configured under hosts.entries")
    return 0


@command("remove <hosts...>", description="Remove managed hosts entries")
def remove(options, context, hosts):
    provider = require_hosts(context)
    if provider is None:
        return 1
    result = provider.remove_entries(hosts)
    for hostname in result.removed:
        context.status.success("Removed %s", hostname)
    for hostname in result.not_found:
        context.status.warning("Not found: %s", hostname)
    return 0


@command("check [hosts...]", description="Check that hosts entries are present")
def check(options, context, hosts):
    provider = require_hosts(context)
    if provider is None:
        return 1
    result = provider.check_entries(hosts or None)
    for hostname in result.present:
        context.status.success("%s", hostname)
    for hostname in result.missing:
        context.status.error("%s is missing", hostname)
    return 1 if result.missing else 0


@command("list", description="List managed hosts entries")
def list_hosts(options, context):
    provider = require_hosts(context)
    if provider is None:
        return 1
    entries = provider.list_entries()
    if not entries:
        context.status.info("No managed hosts entries")
        return 0
    context.status.table(["IP", "HOSTNAME"], [[e.ip, e.hostname] for e in entries])
    return 0


COMMANDS = [
    group(
        "hosts",
        [add, remove, check, list_hosts],
        description="Manage hosts file entries",
        category=CATEGORY,
    )
]
