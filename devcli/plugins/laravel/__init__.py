from __future__ import annotations

from devcli.plugins.api import PluginManifest


def _commands():
    from devcli.plugins.laravel.commands import COMMANDS

    return COMMANDS


PLUGIN = PluginManifest(
    name="laravel",
    version="1.0.0",
    description="Laravel framework support for PHP projects",
    commands=_commands,
    config_schema={
        "artisan_path": "php artisan",
        "composer_path": "composer",
        "php_path": "php",
        "test_command": "php artisan test",
        "formatter_command": "./vendor/bin/pint",
    },
)
