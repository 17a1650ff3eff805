from __future__ import annotations

import argparse
import logging
from typing import Any, Sequence

from devcli.commands.api import ArgumentSpec, CommandDefinition, OptionSpec

CATEGORY_ORDER = (
    "Setup",
    "Container",
    "Laravel",
    "Rails",
    "Django",
    "Node",
    "Database",
    "Storage",
    "Frontend",
    "System",
    "Other",
)

COMMAND_ATTR = "_devcli_command"
HELP_ATTR = "_devcli_help"


def _category_rank(category: str) -> int:
    for i, key in enumerate(CATEGORY_ORDER):
        if key in category:
            return i
    return len(CATEGORY_ORDER)


def build_categorized_help(definitions: Sequence[CommandDefinition], *, width: int = 25) -> str:
    """Group command names by category for the top-level help epilog."""
    groups: dict[str, list[CommandDefinition]] = {}
    for d in definitions:
        groups.setdefault(d.category or "Other", []).append(d)

    ordered = sorted(groups, key=lambda c: (_category_rank(c), c.lower()))
    lines: list[str] = []
    for category in ordered:
        lines.append(f"{category}:")
        for d in groups[category]:
            label = ", ".join([d.command_name, *d.aliases])
            lines.append(f"  {label.ljust(width)}{d.description}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def _add_option(parser: argparse.ArgumentParser, spec: OptionSpec) -> None:
    names, value, optional = spec.parse()
    kwargs: dict[str, Any] = {"help": spec.description or None, "dest": spec.dest}
    if value is None:
        kwargs["action"] = "store_true"
        kwargs["default"] = bool(spec.default) if spec.default is not None else False
    else:
        kwargs["metavar"] = value
        kwargs["default"] = spec.default
        if isinstance(spec.default, int) and not isinstance(spec.default, bool):
            kwargs["type"] = int
        if optional:
            kwargs["nargs"] = "?"
            kwargs["const"] = True
    parser.add_argument(*names, **kwargs)


def _add_positional(
    parser: argparse.ArgumentParser,
    spec: ArgumentSpec,
    *,
    passthrough: bool,
) -> None:
    kwargs: dict[str, Any] = {"help": spec.description or None, "metavar": spec.name}
    if spec.variadic:
        if passthrough:
            kwargs["nargs"] = argparse.REMAINDER
        else:
            kwargs["nargs"] = "+" if spec.required else "*"
        kwargs["default"] = list(spec.default or [])
    elif not spec.required:
        kwargs["nargs"] = "?"
        kwargs["default"] = spec.default
    parser.add_argument(spec.dest, **kwargs)


def _show_help(parser: argparse.ArgumentParser):
    def show(options: argparse.Namespace, context: Any) -> int:
        parser.print_help()
        return 0

    return show


def register_command(
    subparsers: argparse._SubParsersAction,
    definition: CommandDefinition,
    *,
    taken: set[str],
    logger: logging.Logger,
    depth: int = 0,
) -> argparse.ArgumentParser | None:
    name = definition.command_name
    aliases = [a for a in definition.aliases if a not in taken and a != name]
    if name in taken:
        logger.warning("Duplicate command %s from %s skipped", name, definition.source or "?")
        return None
    for alias in definition.aliases:
        if alias in taken:
            logger.warning("Alias %s of command %s is already taken", alias, name)
    taken.update([name, *aliases])

    parser = subparsers.add_parser(
        name,
        aliases=aliases,
        help=definition.description or None,
        description=definition.description or None,
    )
    for option in definition.options:
        _add_option(parser, option)

    if definition.subcommands:
        # A group has no action of its own: selecting it shows its help.
        parser.set_defaults(**{COMMAND_ATTR: None, HELP_ATTR: _show_help(parser)})
        children = parser.add_subparsers(title="commands", metavar="<command>", dest=f"_devcli_sub_{depth}")
        child_taken: set[str] = set()
        for sub in definition.subcommands:
            register_command(children, sub, taken=child_taken, logger=logger, depth=depth + 1)
        return parser

    positionals = definition.positionals
    for i, spec in enumerate(positionals):
        passthrough = definition.allow_unknown_option and spec.variadic and i == len(positionals) - 1
        _add_positional(parser, spec, passthrough=passthrough)
    parser.set_defaults(**{COMMAND_ATTR: definition, HELP_ATTR: None})
    return parser


def register_commands(
    subparsers: argparse._SubParsersAction,
    definitions: Sequence[CommandDefinition],
    *,
    logger: logging.Logger,
) -> list[CommandDefinition]:
    """Bind definitions to argparse; returns the ones that were registered."""
    taken: set[str] = set()
    registered: list[CommandDefinition] = []
    for definition in definitions:
        if register_command(subparsers, definition, taken=taken, logger=logger) is not None:
            registered.append(definition)
    return registered


def positional_values(definition: CommandDefinition, options: argparse.Namespace) -> list[Any]:
    return [getattr(options, spec.dest, None) for spec in definition.positionals]


def run_command(definition: CommandDefinition, options: argparse.Namespace, context: Any) -> Any:
    """before_command hooks, the action, then after_command hooks with its result."""
    if definition.action is None:
        raise TypeError(f"Command {definition.command_name} has no action; groups only show help")
    context.plugins.run_hook("before_command", context, definition)
    result = definition.action(options, context, *positional_values(definition, options))
    context.plugins.run_hook("after_command", context, definition, result)
    return result


def exit_code_for(result: Any) -> int:
    if isinstance(result, bool):
        return 0 if result else 1
    if isinstance(result, int):
        return result
    returncode = getattr(result, "returncode", None)
    if isinstance(returncode, int):
        return returncode
    return 0
