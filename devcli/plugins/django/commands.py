from __future__ import annotations

from devcli.plugins.framework import app_command

PLUGIN = "django"
CATEGORY = "Django Commands"
MANAGE = ("manage_path", "python manage.py")

COMMANDS = [
    app_command(
        "manage [args...]",
        plugin=PLUGIN,
        tool=MANAGE,
        description="Run a manage.py command",
        category=CATEGORY,
        aliases=["m"],
    ),
    app_command(
        "pip [args...]",
        plugin=PLUGIN,
        tool=("pip_path", "pip"),
        description="Run pip",
        category=CATEGORY,
    ),
    app_command(
        "python [args...]",
        plugin=PLUGIN,
        tool=("python_path", "python"),
        description="Run Python",
        category=CATEGORY,
    ),
    app_command(
        "shell",
        plugin=PLUGIN,
        tool=MANAGE,
        args=["shell"],
        description="Open the Django shell",
        category=CATEGORY,
        aliases=["s"],
        announce="Opening Django shell...",
    ),
    app_command(
        "test [args...]",
        plugin=PLUGIN,
        tool=("test_command", "python manage.py test"),
        description="Run the test suite",
        category=CATEGORY,
        announce="Running tests...",
    ),
    app_command(
        "migrate [args...]",
        plugin=PLUGIN,
        tool=MANAGE,
        args=["migrate"],
        description="Apply database migrations",
        category="Database Commands",
    ),
    app_command(
        "makemigrations [args...]",
        plugin=PLUGIN,
        tool=MANAGE,
        args=["makemigrations"],
        description="Create new migrations from model changes",
        category="Database Commands",
        aliases=["mm"],
    ),
    app_command(
        "createsuperuser",
        plugin=PLUGIN,
        tool=MANAGE,
        args=["createsuperuser"],
        description="Create an admin user",
        category=CATEGORY,
    ),
    app_command(
        "collectstatic",
        plugin=PLUGIN,
        tool=MANAGE,
        args=["collectstatic", "--noinput"],
        description="Collect static files",
        category=CATEGORY,
    ),
]
