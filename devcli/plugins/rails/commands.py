from __future__ import annotations

from devcli.plugins.framework import app_command

PLUGIN = "rails"
CATEGORY = "Rails Commands"
RAILS = ("rails_path", "rails")

COMMANDS = [
    app_command(
        "rails [args...]",
        plugin=PLUGIN,
        tool=RAILS,
        description="Run a Rails command",
        category=CATEGORY,
        aliases=["r"],
    ),
    app_command(
        "bundle [args...]",
        plugin=PLUGIN,
        tool=("bundler_path", "bundle"),
        description="Run Bundler",
        category=CATEGORY,
        aliases=["b"],
    ),
    app_command(
        "rake [args...]",
        plugin=PLUGIN,
        tool=("rake_path", "rake"),
        description="Run a Rake task",
        category=CATEGORY,
    ),
    app_command(
        "console",
        plugin=PLUGIN,
        tool=RAILS,
        args=["console"],
        description="Open the Rails console",
        category=CATEGORY,
        aliases=["c"],
        announce="Opening Rails console...",
    ),
    app_command(
        "test [args...]",
        plugin=PLUGIN,
        tool=("test_command", "rails test"),
        description="Run the test suite",
        category=CATEGORY,
        announce="Running tests...",
    ),
    app_command(
        "migrate [args...]",
        plugin=PLUGIN,
        tool=RAILS,
        args=["db:migrate"],
        description="Run database migrations",
        category="Database Commands",
    ),
    app_command(
        "seed",
        plugin=PLUGIN,
        tool=RAILS,
        args=["db:seed"],
        description="Seed the database",
        category="Database Commands",
    ),
    app_command(
        "db:reset",
        plugin=PLUGIN,
        tool=RAILS,
        args=["db:reset"],
        description="Drop, recreate and seed the database",
        category="Database Commands",
    ),
]
