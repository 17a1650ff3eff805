from __future__ import annotations

from devcli.plugins.api import PluginManifest


def _commands():
    from devcli.plugins.rails.commands import COMMANDS

    return COMMANDS


PLUGIN = PluginManifest(
    name="rails",
    version="1.0.0",
    description="Ruby on Rails support",
    commands=_commands,
    config_schema={
        "rails_path": "rails",
        "bundler_path": "bundle",
        "rake_path": "rake",
        "test_command": "rails test",
    },
)
