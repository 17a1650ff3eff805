from __future__ import annotations

from devcli.plugins.api import PluginManifest


def _commands():
    from devcli.plugins.django.commands import COMMANDS

    return COMMANDS


PLUGIN = PluginManifest(
    name="django",
    version="1.0.0",
    description="Django framework support for Python projects",
    commands=_commands,
    config_schema={
        "manage_path": "python manage.py",
        "python_path": "python",
        "pip_path": "pip",
        "test_command": "python manage.py test",
    },
)
