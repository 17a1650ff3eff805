"""
Scaffolding for project commands.

`make command` writes a command module into the first custom command
directory, where the loader's custom stage picks it up; `make list` shows
what is there.
"""

from __future__ import annotations

import re
from pathlib import Path

from devcli.commands.api import command, group
from devcli.commands.loader import CommandLoader
from devcli.util import ensure_dir, resolve_path

CATEGORY = "Setup"
DEFAULT_DIR = "commands"

_NAME_RE = re.compile(r"^[a-z][a-z0-9-]*$")

TEMPLATE = '''"""{title} command."""

from devcli.commands.api import command


@command(
    "{name}",
    description={description!r},
    category="Project",
    options=[("-f, --force", "Force the operation")],
)
def {func}(options, context):
    context.status.info("Running {name}...")
    # executor = context.get_executor()
    # executor.run_in_service("app", "php", ["artisan", "cache:clear"])
    context.status.success("Done")
    return 0


COMMANDS = [{func}]
'''


def kebab_name(name: str) -> str:
    base = name[:-3] if name.endswith(".py") else name
    base = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", base)
    return re.sub(r"[\s_]+", "-", base).strip("-").lower()


def commands_dir(context) -> Path:
    """The first configured custom path (its parent when it is a file), else ./commands."""
    root = context.project_root
    custom = context.config.commands.custom
    if not custom:
        return resolve_path(root, DEFAULT_DIR)
    first = resolve_path(root, custom[0])
    return first.parent if first.suffix == ".py" else first


def _is_loaded(context, directory: Path, file: Path) -> bool:
    for value in context.config.commands.custom:
        path = resolve_path(context.project_root, value)
        if path in (directory, file):
            return True
    return False


def existing_names(context) -> set[str]:
    loader = CommandLoader(context.config, context.plugins, context.logger)
    names: set[str] = set()
    for definition in loader.load():
        names.add(definition.command_name)
        names.update(definition.aliases)
    return names


def render_command(name: str, description: str | None) -> str:
    return TEMPLATE.format(
        name=name,
        title=name.replace("-", " ").capitalize(),
        description=description or f"Project command {name}",
        func=name.replace("-", "_") + "_command",
    )


@command(
    "command <name>",
    description="Create a new custom command",
    options=[
        ("-d, --description <text>", "Command description"),
        ("--dir <directory>", "Target directory (default: the first custom command path)"),
        ("--force", "Overwrite an existing file"),
    ],
)
def make_command(options, context, name):
    kebab = kebab_name(name)
    if not _NAME_RE.match(kebab):
        context.status.error(
            "Invalid command name: %s", name, hint="use letters, digits and dashes, e.g. sync-db"
        )
        return 1
    if not options.force and kebab in existing_names(context):
        context.status.error("Command %s already exists", kebab, hint="choose another name or pass --force")
        return 1

    directory = resolve_path(context.project_root, options.dir) if options.dir else commands_dir(context)
    target = directory / f"{kebab}.py"
    if target.exists() and not options.force:
        context.status.error("File already exists: %s", target, hint="pass --force to overwrite")
        return 1

    ensure_dir(directory)
    target.write_text(render_command(kebab, options.description), encoding="utf-8")
    context.status.success("Created %s", target)

    if not _is_loaded(context, directory, target):
        try:
            rel = directory.relative_to(context.project_root)
        except ValueError:
            rel = directory
        context.status.warning("%s is not a custom command path yet", directory)
        context.status.info("Add it to your config: commands.custom: [./%s]", rel.as_posix())
    context.status.info("Try it: %s %s --help", context.config.prog, kebab)
    return 0


@command("list", description="List custom command files")
def make_list(options, context):
    directory = commands_dir(context)
    if not directory.is_dir():
        context.status.warning("No commands directory found at %s", directory)
        context.status.info("Create your first command with `make command <name>`")
        return 0
    files = sorted(
        p for p in directory.rglob("*.py") if not any(part.startswith("_") for part in p.relative_to(directory).parts)
    )
    if not files:
        context.status.info("No custom commands in %s", directory)
        return 0
    for p in files:
        context.status.echo(f"  {p.relative_to(directory).as_posix():<30} {p}")
    context.status.echo()
    context.status.echo(f"Location: {directory}")
    return 0


make = group(
    "make",
    [make_command, make_list],
    description="Scaffold project commands",
    category=CATEGORY,
)
