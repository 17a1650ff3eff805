from __future__ import annotations

from devcli.plugins.framework import app_command

PLUGIN = "express"
CATEGORY = "Node.js Commands"
NPM = ("npm_path", "npm")

COMMANDS = [
    app_command(
        "npm [args...]",
        plugin=PLUGIN,
        tool=NPM,
        description="Run npm",
        category=CATEGORY,
    ),
    app_command(
        "node [args...]",
        plugin=PLUGIN,
        tool=("node_path", "node"),
        description="Run Node.js",
        category=CATEGORY,
    ),
    app_command(
        "npx [args...]",
        plugin=PLUGIN,
        tool=("npx_path", "npx"),
        description="Run a package binary with npx",
        category=CATEGORY,
    ),
    app_command(
        "repl",
        plugin=PLUGIN,
        tool=("node_path", "node"),
        description="Open a Node.js REPL",
        category=CATEGORY,
    ),
    app_command(
        "test [args...]",
        plugin=PLUGIN,
        tool=("test_command", "npm test"),
        args=["--"],
        description="Run the test suite",
        category=CATEGORY,
        announce="Running tests...",
    ),
    app_command(
        "dev",
        plugin=PLUGIN,
        tool=("dev_command", "npm run dev"),
        description="Start the development server",
        category=CATEGORY,
    ),
    app_command(
        "install [packages...]",
        plugin=PLUGIN,
        tool=NPM,
        args=["install"],
        description="Install npm packages",
        category=CATEGORY,
        aliases=["i"],
    ),
    app_command(
        "build",
        plugin=PLUGIN,
        tool=NPM,
        args=["run", "build"],
        description="Build the application",
        category="Frontend",
    ),
    app_command(
        "lint [args...]",
        plugin=PLUGIN,
        tool=NPM,
        args=["run", "lint", "--"],
        description="Run the linter",
        category=CATEGORY,
    ),
]
