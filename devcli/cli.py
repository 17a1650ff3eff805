from __future__ import annotations

import argparse
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import Sequence

from devcli.commands.api import CommandDefinition
from devcli.commands.loader import CommandLoader
from devcli.commands.registrar import (
    COMMAND_ATTR,
    HELP_ATTR,
    build_categorized_help,
    exit_code_for,
    register_commands,
    run_command,
)
from devcli.config_loader import Config, load_config
from devcli.core import Context, Options, build_context
from devcli.errors import DevCliError

DEBUG_ENV_VAR = "DEVCLI_DEBUG"


def _setup_logger(verbose: bool, debug: bool = False) -> logging.Logger:
    level = logging.DEBUG if (verbose or debug) else logging.INFO
    logger = logging.getLogger("devcli")
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


def _global_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--config", type=Path, default=None, help="Path to the config file.")
    parser.add_argument("--debug", action="store_true", help="Debug logs and tracebacks on errors.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logs.")
    parser.add_argument("--dry-run", action="store_true", help="Log commands but do not run them.")
    return parser


def build_parser(
    config: Config,
    definitions: Sequence[CommandDefinition],
    *,
    logger: logging.Logger,
) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=config.prog,
        description=config.description or None,
        parents=[_global_parser()],
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{config.prog} {config.version}")
    subparsers = parser.add_subparsers(title="commands", metavar="<command>", dest="command")
    registered = register_commands(subparsers, definitions, logger=logger)
    parser.epilog = build_categorized_help(registered)
    return parser


def _accept_unknown(
    parser: argparse.ArgumentParser,
    definition: CommandDefinition,
    ns: argparse.Namespace,
    extras: list[str],
) -> None:
    positionals = definition.positionals
    if not definition.allow_unknown_option or not positionals or not positionals[-1].variadic:
        parser.error("unrecognized arguments: " + " ".join(extras))
    dest = positionals[-1].dest
    setattr(ns, dest, [*(getattr(ns, dest, None) or []), *extras])


def dispatch(parser: argparse.ArgumentParser, argv: Sequence[str], context: Context) -> int:
    ns, extras = parser.parse_known_args(list(argv))
    definition: CommandDefinition | None = getattr(ns, COMMAND_ATTR, None)
    if definition is None:
        show_help = getattr(ns, HELP_ATTR, None)
        if show_help is not None:
            return show_help(ns, context)
        if extras:
            parser.error("unrecognized arguments: " + " ".join(extras))
        parser.print_help()
        return 0
    if extras:
        _accept_unknown(parser, definition, ns, extras)
    context.logger.debug("Running %s", definition.command_name)
    return exit_code_for(run_command(definition, ns, context))


def _report(e: BaseException, logger: logging.Logger, *, debug: bool) -> None:
    logger.error("error: %s", e)
    hint = e.hint if isinstance(e, DevCliError) else None
    if hint:
        logger.error("hint: %s", hint)
    if debug:
        traceback.print_exc()


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    pre, _rest = _global_parser().parse_known_args(argv)
    debug = bool(pre.debug) or os.environ.get(DEBUG_ENV_VAR) == "1"
    logger = _setup_logger(bool(pre.verbose), debug)

    try:
        config = load_config(pre.config)
        options = Options(debug=debug, verbose=bool(pre.verbose), dry_run=bool(pre.dry_run))
        context = build_context(config=config, options=options, logger=logger)
        definitions = CommandLoader(config, context.plugins, logger).load()
        parser = build_parser(config, definitions, logger=logger)
        return dispatch(parser, argv, context)
    except SystemExit as e:
        # argparse exits for --help, --version and usage errors.
        if e.code is None or isinstance(e.code, int):
            return e.code or 0
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    except Exception as e:
        _report(e, logger, debug=debug)
        return 1
