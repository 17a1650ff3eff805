from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from devcli.commands.api import command
from devcli.util import RunResult

CATEGORY = "Container"


@command("up [services...]", description="Start the containers", category=CATEGORY, options=["--build"])
def up(options, context, services) -> RunResult:
    res = context.get_executor().start(services, build=options.build)
    if res.ok:
        context.status.success("Containers started")
    return res


@command("down [services...]", description="Stop the containers", category=CATEGORY)
def down(options, context, services) -> RunResult:
    res = context.get_executor().stop(services)
    if res.ok:
        context.status.success("Containers stopped")
    return res


@command("restart [services...]", description="Restart the containers", category=CATEGORY)
def restart(options, context, services) -> RunResult:
    return context.get_executor().restart(services)


@command("ps [services...]", description="Show container status", category=CATEGORY, aliases=["status"])
def ps(options, context, services) -> int:
    rows = context.get_executor().status(services)
    if not rows:
        context.status.warning("No containers running")
        return 0
    context.status.table(
        ["NAME", "SERVICE", "STATE", "STATUS"],
        [[r.get("Name"), r.get("Service"), r.get("State"), r.get("Status")] for r in rows],
    )
    return 0


@command(
    "logs [services...]",
    description="Show container logs",
    category=CATEGORY,
    options=[("-f, --follow", "Follow log output"), ("--tail <lines>", "Number of lines to show", 100)],
)
def logs(options, context, services) -> RunResult:
    return context.get_executor().logs(services, follow=options.follow, tail=options.tail)


@command(
    "build [services...]",
    description="Build the container images",
    category=CATEGORY,
    options=[("--no-cache", "Do not use the build cache")],
)
def build(options, context, services) -> RunResult:
    return context.get_executor().build(services, no_cache=options.no_cache)


def reload_targets(context) -> list[str]:
    containers = context.containers
    return [containers[key] for key in context.config.execution.docker.reloadable if key in containers]


@command("reload", description="Restart the application containers in parallel", category=CATEGORY)
def reload(options, context) -> int:
    executor = context.get_executor()
    targets = reload_targets(context)
    if not targets:
        context.status.warning("No reloadable containers configured")
        return 0

    with ThreadPoolExecutor(max_workers=len(targets)) as pool:
        results = list(zip(targets, pool.map(executor.restart_container, targets)))

    ok = 0
    for name, res in results:
        if res.ok:
            ok += 1
        else:
            context.status.error("Failed to restart %s: %s", name, res.stderr.strip() or f"exit {res.returncode}")
    if ok == len(targets):
        context.status.success("Reloaded %d of %d containers", ok, len(targets))
        return 0
    context.status.warning("Reloaded %d of %d containers", ok, len(targets))
    return 1


@command("rebuild [services...]", description="Stop, rebuild and start the containers", category=CATEGORY)
def rebuild(options, context, services) -> RunResult:
    executor = context.get_executor()
    for step in (
        lambda: executor.stop(services),
        lambda: executor.build(services),
        lambda: executor.start(services),
    ):
        res = step()
        if not res.ok:
            return res
    context.status.success("Containers rebuilt")
    return res


@command("shell [service]", description="Open a shell in a container (default: app)", category=CATEGORY)
def shell(options, context, service) -> RunResult:
    return context.get_executor().run_in_service(service or "app", "bash", interactive=True)


@command("stats", description="Show container resource usage", category=CATEGORY)
def stats(options, context) -> RunResult:
    res = context.get_executor().stats(list(context.containers.values()))
    if res.ok and res.stdout:
        context.status.echo(res.stdout.rstrip())
    return res


COMMANDS = [up, down, restart, ps, logs, build, reload, rebuild, shell, stats]
