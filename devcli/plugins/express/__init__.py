from __future__ import annotations

from devcli.plugins.api import PluginManifest


def _commands():
    from devcli.plugins.express.commands import COMMANDS

    return COMMANDS


PLUGIN = PluginManifest(
    name="express",
    version="1.0.0",
    description="Express / Node.js support",
    commands=_commands,
    config_schema={
        "npm_path": "npm",
        "node_path": "node",
        "npx_path": "npx",
        "test_command": "npm test",
        "dev_command": "npm run dev",
    },
)
