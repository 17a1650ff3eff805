from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Mapping, Sequence

# action(options, context, *positionals) -> result
CommandAction = Callable[..., Any]

_PLACEHOLDER_RE = re.compile(r"^(<([^>]+)>|\[([^\]]+)\])$")


@dataclass(frozen=True)
class ArgumentSpec:
    name: str
    description: str = ""
    required: bool = True
    variadic: bool = False
    default: Any = None

    @property
    def dest(self) -> str:
        return self.name.replace("-", "_")


@dataclass(frozen=True)
class OptionSpec:
    """
    A flag written the way it appears in help text.

    "-f, --follow" is a boolean switch, "--tail <lines>" takes a required
    value and "--ip [address]" takes an optional one.
    """

    flags: str
    description: str = ""
    default: Any = None

    def parse(self) -> tuple[list[str], str | None, bool]:
        """Return (flag names, value name, value is optional)."""
        names: list[str] = []
        value: str | None = None
        optional = False
        for token in re.split(r"[,\s]+", self.flags.strip()):
            if not token:
                continue
            m = _PLACEHOLDER_RE.match(token)
            if m:
                value = (m.group(2) or m.group(3)).strip()
                optional = m.group(3) is not None
                continue
            if not token.startswith("-"):
                raise ValueError(f"Invalid option flags: {self.flags!r}")
            names.append(token)
        if not names:
            raise ValueError(f"Option has no flag names: {self.flags!r}")
        return names, value, optional

    @property
    def dest(self) -> str:
        names, _value, _optional = self.parse()
        longest = max(names, key=len)
        return longest.lstrip("-").replace("-", "_")


@dataclass(frozen=True)
class CommandDefinition:
    name: str
    action: CommandAction | None = None
    description: str = ""
    category: str | None = None
    aliases: tuple[str, ...] = ()
    options: tuple[OptionSpec, ...] = ()
    arguments: tuple[ArgumentSpec, ...] = ()
    subcommands: tuple["CommandDefinition", ...] = ()
    allow_unknown_option: bool = False
    source: str | None = field(default=None, compare=False)

    @property
    def command_name(self) -> str:
        return self.name.split()[0] if self.name.strip() else ""

    @property
    def positionals(self) -> list[ArgumentSpec]:
        """Placeholders in the name followed by explicitly declared arguments."""
        return [*parse_placeholders(self.name), *self.arguments]

    def is_valid(self) -> bool:
        return bool(self.command_name) and (callable(self.action) or len(self.subcommands) > 0)


def _first_line(doc: str | None) -> str:
    lines = (doc or "").strip().splitlines()
    return lines[0].strip() if lines else ""


def _as_tuple(value: Any, *, what: str) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, str) and what == "aliases":
        return (value,)
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValueError(f"'{what}' must be a list")
    return tuple(value)


def _option_from(raw: Any) -> OptionSpec:
    if isinstance(raw, OptionSpec):
        return raw
    if isinstance(raw, str):
        return OptionSpec(flags=raw)
    if isinstance(raw, Mapping):
        flags = raw.get("flags")
        if not isinstance(flags, str) or not flags:
            raise ValueError("option requires 'flags'")
        return OptionSpec(flags=flags, description=str(raw.get("description") or ""), default=raw.get("default"))
    if isinstance(raw, Sequence) and raw and isinstance(raw[0], str):
        # ("--tail <lines>", "Number of lines", 100)
        return OptionSpec(*raw)
    raise ValueError(f"Invalid option spec: {raw!r}")


def _argument_from(raw: Any) -> ArgumentSpec:
    if isinstance(raw, ArgumentSpec):
        return raw
    if isinstance(raw, Mapping):
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("argument requires 'name'")
        return ArgumentSpec(
            name=name,
            description=str(raw.get("description") or ""),
            required=bool(raw.get("required", True)),
            variadic=bool(raw.get("variadic", False)),
            default=raw.get("default"),
        )
    raise ValueError(f"Invalid argument spec: {raw!r}")


def definition_from(raw: Any, *, source: str | None = None) -> CommandDefinition:
    """Accept a CommandDefinition or a plain mapping with the same keys."""
    if isinstance(raw, CommandDefinition):
        if source and raw.source is None:
            return replace(raw, source=source)
        return raw
    if not isinstance(raw, Mapping):
        raise ValueError(f"Command definition must be a mapping, got {type(raw).__name__}")
    name = raw.get("name")
    if not isinstance(name, str):
        raise ValueError("Command definition is missing 'name'")
    action = raw.get("action")
    if action is not None and not callable(action):
        raise ValueError(f"Command {name!r}: 'action' must be callable")
    return CommandDefinition(
        name=name,
        action=action,
        description=str(raw.get("description") or ""),
        category=raw.get("category"),
        aliases=tuple(str(a) for a in _as_tuple(raw.get("aliases"), what="aliases")),
        options=tuple(_option_from(o) for o in _as_tuple(raw.get("options"), what="options")),
        arguments=tuple(_argument_from(a) for a in _as_tuple(raw.get("arguments"), what="arguments")),
        subcommands=tuple(
            definition_from(s, source=source) for s in _as_tuple(raw.get("subcommands"), what="subcommands")
        ),
        allow_unknown_option=bool(raw.get("allow_unknown_option", False)),
        source=source,
    )


def command(
    name: str,
    *,
    description: str = "",
    category: str | None = None,
    aliases: Sequence[str] = (),
    options: Sequence[Any] = (),
    arguments: Sequence[Any] = (),
    allow_unknown_option: bool = False,
) -> Callable[[CommandAction], CommandDefinition]:
    """Decorator turning an action function into a CommandDefinition."""

    def wrap(fn: CommandAction) -> CommandDefinition:
        return CommandDefinition(
            name=name,
            action=fn,
            description=description or _first_line(fn.__doc__),
            category=category,
            aliases=tuple(aliases),
            options=tuple(_option_from(o) for o in options),
            arguments=tuple(_argument_from(a) for a in arguments),
            allow_unknown_option=allow_unknown_option,
        )

    return wrap


def group(
    name: str,
    subcommands: Sequence[CommandDefinition],
    *,
    description: str = "",
    category: str | None = None,
    aliases: Sequence[str] = (),
) -> CommandDefinition:
    return CommandDefinition(
        name=name,
        description=description,
        category=category,
        aliases=tuple(aliases),
        subcommands=tuple(subcommands),
    )


def parse_placeholders(name: str) -> list[ArgumentSpec]:
    """`logs [services...]` -> one optional variadic argument named services."""
    out: list[ArgumentSpec] = []
    for token in name.split()[1:]:
        m = _PLACEHOLDER_RE.match(token)
        if not m:
            raise ValueError(f"Invalid argument placeholder {token!r} in command {name!r}")
        raw = m.group(2) or m.group(3)
        variadic = raw.endswith("...")
        out.append(
            ArgumentSpec(
                name=raw[:-3] if variadic else raw,
                required=m.group(2) is not None,
                variadic=variadic,
            )
        )
    return out
