from __future__ import annotations

from devcli.commands.api import command
from devcli.plugins.framework import app_command, run_app, tool_argv

PLUGIN = "laravel"
CATEGORY = "Laravel Commands"
ARTISAN = ("artisan_path", "php artisan")

CACHES = ("cache:clear", "config:clear", "route:clear", "view:clear")


@command("tinker", description="Open Laravel Tinker REPL", category=CATEGORY, aliases=["t"])
def tinker(options, context):
    context.status.info("Opening Laravel Tinker (exit or Ctrl+C to quit)")
    res = run_app(context, [*tool_argv(context, PLUGIN, ARTISAN), "tinker"])
    # Leaving tinker with Ctrl+C is a normal way out.
    return 0 if res.returncode == 130 else res


@command("fresh", description="Fresh migration with seeds", category="Database Commands")
def fresh(options, context):
    context.status.info("Running fresh migration...")
    res = run_app(context, [*tool_argv(context, PLUGIN, ARTISAN), "migrate:fresh", "--seed"])
    if res.ok:
        context.status.success("Database refreshed")
    return res


@command("optimize", description="Cache routes, config and views", category="System", aliases=["o"])
def optimize(options, context):
    res = run_app(context, [*tool_argv(context, PLUGIN, ARTISAN), "optimize"])
    if res.ok:
        context.status.success("Laravel optimized")
    return res


@command("clear", description="Clear all Laravel caches", category="System")
def clear(options, context):
    context.status.info("Clearing Laravel caches...")
    artisan = tool_argv(context, PLUGIN, ARTISAN)
    failed = 0
    for cache in CACHES:
        res = run_app(context, [*artisan, cache], interactive=False)
        if not res.ok:
            failed += 1
            context.status.error("%s failed: %s", cache, res.stderr.strip())
    if failed:
        return 1
    context.status.success("All caches cleared")
    return 0


COMMANDS = [
    app_command(
        "artisan [args...]",
        plugin=PLUGIN,
        tool=ARTISAN,
        description="Run Laravel Artisan command",
        category=CATEGORY,
        aliases=["a"],
    ),
    app_command(
        "composer [args...]",
        plugin=PLUGIN,
        tool=("composer_path", "composer"),
        description="Run Composer command",
        category=CATEGORY,
        aliases=["c"],
    ),
    tinker,
    app_command(
        "test [args...]",
        plugin=PLUGIN,
        tool=("test_command", "php artisan test"),
        description="Run tests (Pest/PHPUnit)",
        category=CATEGORY,
        announce="Running tests...",
    ),
    app_command(
        "pint [args...]",
        plugin=PLUGIN,
        tool=("formatter_command", "./vendor/bin/pint"),
        description="Run Laravel Pint code formatter",
        category=CATEGORY,
    ),
    app_command(
        "php [args...]",
        plugin=PLUGIN,
        tool=("php_path", "php"),
        description="Run PHP command",
        category=CATEGORY,
    ),
    app_command(
        "migrate [args...]",
        plugin=PLUGIN,
        tool=ARTISAN,
        args=["migrate"],
        description="Run database migrations",
        category="Database Commands",
        aliases=["m"],
    ),
    app_command(
        "seed [args...]",
        plugin=PLUGIN,
        tool=ARTISAN,
        args=["db:seed"],
        description="Run database seeders",
        category="Database Commands",
        aliases=["s"],
    ),
    fresh,
    optimize,
    clear,
]
