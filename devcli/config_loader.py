from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Mapping

from devcli.errors import ConfigurationError
from devcli.util import resolve_path

CONFIG_FILENAMES = ("devcli.yaml", "devcli.yml", "devcli.toml", "devcli.json")
CONFIG_ENV_VAR = "DEVCLI_CONFIG"

DEFAULT_RELOADABLE = ("app", "queue", "scheduler", "horizon", "worker")

_MINIMAL_CONFIG_HINT = """create devcli.yaml at your project root, for example:

  name: myapp
  execution:
    mode: docker
    docker:
      containers:
        app: myapp_app
        database: myapp_db
"""


@dataclass(frozen=True)
class DockerSettings:
    compose_file: str | None = None
    containers: Mapping[str, str] = field(default_factory=dict)
    reloadable: tuple[str, ...] = DEFAULT_RELOADABLE


@dataclass(frozen=True)
class NativeSettings:
    shell: str | None = None
    working_dir: Path | None = None


@dataclass(frozen=True)
class SshSettings:
    host: str | None = None
    user: str | None = None
    port: int = 22
    key_path: Path | None = None
    working_dir: str | None = None
    strict_host_key_checking: bool = True


@dataclass(frozen=True)
class ExecutionSettings:
    mode: str = "docker"
    docker: DockerSettings = field(default_factory=DockerSettings)
    native: NativeSettings = field(default_factory=NativeSettings)
    ssh: SshSettings = field(default_factory=SshSettings)


@dataclass(frozen=True)
class PathSettings:
    project_root: Path
    env_file: Path


@dataclass(frozen=True)
class CommandGroups:
    docker: bool = True
    database: bool = True
    storage: bool = True
    system: bool = True
    custom: tuple[str, ...] = ()


@dataclass(frozen=True)
class PluginSettings:
    enabled: tuple[str, ...] = ()
    config: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    paths: tuple[Path, ...] = ()


@dataclass(frozen=True)
class Config:
    name: str
    paths: PathSettings
    binary_name: str | None = None
    version: str = "1.0.0"
    description: str = "Development CLI"
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)
    database: Mapping[str, Any] = field(default_factory=dict)
    storage: Mapping[str, Any] = field(default_factory=dict)
    hosts: Mapping[str, Any] = field(default_factory=dict)
    plugins: PluginSettings = field(default_factory=PluginSettings)
    commands: CommandGroups = field(default_factory=CommandGroups)
    source: Path | None = None

    @property
    def prog(self) -> str:
        return self.binary_name or self.name

    def section(self, name: str) -> Mapping[str, Any]:
        value = getattr(self, name, None)
        return value if isinstance(value, Mapping) else {}


def _require_str(value: Any, *, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"'{what}' must be a non-empty string")
    return value


def _opt_str(value: Any, *, what: str) -> str | None:
    if value is None:
        return None
    return _require_str(value, what=what)


def _opt_bool(value: Any, default: bool, *, what: str) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{what}' must be a boolean if present")
    return value


def _opt_mapping(value: Any, *, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{what}' must be a table/mapping if present")
    return dict(value)


def _str_list(value: Any, *, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(x, str) and x for x in value):
        return tuple(value)
    raise ConfigurationError(f"'{what}' must be a list of strings")


def _load_json(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in {path} at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e


def _load_toml(text: str, path: Path) -> Any:
    # TOML parsing is in stdlib as of Python 3.11; older Pythons use tomli.
    try:
        import tomllib  # type: ignore
    except ImportError:  # pragma: no cover
        import tomli as tomllib  # type: ignore
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def _load_yaml(text: str, path: Path) -> Any:
    import yaml

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None and hasattr(mark, "line") and hasattr(mark, "column"):
            line = int(mark.line) + 1
            col = int(mark.column) + 1
            raise ConfigurationError(f"Invalid YAML in {path} at line {line}, column {col}: {e}") from e
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e


def read_config_file(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix == ".json":
        raw = _load_json(text, path)
    elif suffix == ".toml":
        raw = _load_toml(text, path)
    elif suffix in (".yaml", ".yml"):
        raw = _load_yaml(text, path)
    else:
        raise ConfigurationError(
            f"Unsupported config format for {path} (expected .yaml, .yml, .toml, .json)."
        )
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config in {path} must be a mapping at the top level")
    return raw


def find_config_file(path: Path | None = None, *, cwd: Path | None = None) -> Path:
    cwd = cwd or Path.cwd()
    if path is not None:
        candidate = path if path.is_absolute() else cwd / path
        if not candidate.is_file():
            raise ConfigurationError(f"Configuration file not found: {candidate}", hint=_MINIMAL_CONFIG_HINT)
        return candidate

    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        candidate = resolve_path(cwd, env)
        if not candidate.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {candidate} (from ${CONFIG_ENV_VAR})",
                hint=_MINIMAL_CONFIG_HINT,
            )
        return candidate

    for name in CONFIG_FILENAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    looked = ", ".join(CONFIG_FILENAMES)
    raise ConfigurationError(f"No configuration file found in {cwd} (looked for {looked})", hint=_MINIMAL_CONFIG_HINT)


def _parse_execution(raw: Mapping[str, Any], project_root: Path) -> ExecutionSettings:
    mode = _opt_str(raw.get("mode"), what="execution.mode") or "docker"

    docker_raw = _opt_mapping(raw.get("docker"), what="execution.docker")
    containers = _opt_mapping(docker_raw.get("containers"), what="execution.docker.containers")
    for key, value in containers.items():
        _require_str(value, what=f"execution.docker.containers.{key}")
    reloadable = docker_raw.get("reloadable")
    docker = DockerSettings(
        compose_file=_opt_str(docker_raw.get("compose_file"), what="execution.docker.compose_file"),
        containers=containers,
        reloadable=(
            DEFAULT_RELOADABLE
            if reloadable is None
            else _str_list(reloadable, what="execution.docker.reloadable")
        ),
    )

    native_raw = _opt_mapping(raw.get("native"), what="execution.native")
    native_dir = _opt_str(native_raw.get("working_dir"), what="execution.native.working_dir")
    native = NativeSettings(
        shell=_opt_str(native_raw.get("shell"), what="execution.native.shell"),
        working_dir=resolve_path(project_root, native_dir) if native_dir else None,
    )

    ssh_raw = _opt_mapping(raw.get("ssh"), what="execution.ssh")
    port = ssh_raw.get("port", 22)
    if not isinstance(port, int) or isinstance(port, bool):
        raise ConfigurationError("'execution.ssh.port' must be an integer if present")
    key_path = _opt_str(ssh_raw.get("key_path"), what="execution.ssh.key_path")
    ssh = SshSettings(
        host=_opt_str(ssh_raw.get("host"), what="execution.ssh.host"),
        user=_opt_str(ssh_raw.get("user"), what="execution.ssh.user"),
        port=port,
        key_path=resolve_path(project_root, key_path) if key_path else None,
        working_dir=_opt_str(ssh_raw.get("working_dir"), what="execution.ssh.working_dir"),
        strict_host_key_checking=_opt_bool(
            ssh_raw.get("strict_host_key_checking"), True, what="execution.ssh.strict_host_key_checking"
        ),
    )
    return ExecutionSettings(mode=mode, docker=docker, native=native, ssh=ssh)


def _parse_hosts(value: Any) -> dict[str, Any]:
    # Older configs list hostnames directly.
    if isinstance(value, list):
        return {"driver": "etc-hosts", "entries": list(_str_list(value, what="hosts"))}
    return _opt_mapping(value, what="hosts")


def build_config(raw: Mapping[str, Any], *, cwd: Path, source: Path | None = None) -> Config:
    """Apply defaults and shape checks to a raw config mapping."""
    base = source.parent if source is not None else cwd

    paths_raw = _opt_mapping(raw.get("paths"), what="paths")
    root_value = _opt_str(paths_raw.get("project_root"), what="paths.project_root")
    project_root = resolve_path(base, root_value) if root_value else base.resolve()
    env_file = resolve_path(
        project_root, _opt_str(paths_raw.get("env_file"), what="paths.env_file") or ".env"
    )

    name = _opt_str(raw.get("name"), what="name") or project_root.name
    version = raw.get("version", "1.0.0")
    if not isinstance(version, (str, int, float)) or isinstance(version, bool):
        raise ConfigurationError("'version' must be a string if present")

    commands_raw = _opt_mapping(raw.get("commands"), what="commands")
    commands = CommandGroups(
        docker=_opt_bool(commands_raw.get("docker"), True, what="commands.docker"),
        database=_opt_bool(commands_raw.get("database"), True, what="commands.database"),
        storage=_opt_bool(commands_raw.get("storage"), True, what="commands.storage"),
        system=_opt_bool(commands_raw.get("system"), True, what="commands.system"),
        custom=_str_list(commands_raw.get("custom"), what="commands.custom"),
    )

    plugins_raw = raw.get("plugins")
    if isinstance(plugins_raw, list):
        plugins_raw = {"enabled": plugins_raw}
    plugins_raw = _opt_mapping(plugins_raw, what="plugins")
    plugin_config = _opt_mapping(plugins_raw.get("config"), what="plugins.config")
    for key, value in plugin_config.items():
        _opt_mapping(value, what=f"plugins.config.{key}")
    plugins = PluginSettings(
        enabled=_str_list(plugins_raw.get("enabled"), what="plugins.enabled"),
        config=plugin_config,
        paths=tuple(
            resolve_path(project_root, p) for p in _str_list(plugins_raw.get("paths"), what="plugins.paths")
        ),
    )

    return Config(
        name=name,
        binary_name=_opt_str(raw.get("binary_name"), what="binary_name"),
        version=str(version),
        description=_opt_str(raw.get("description"), what="description") or "Development CLI",
        execution=_parse_execution(_opt_mapping(raw.get("execution"), what="execution"), project_root),
        database=_opt_mapping(raw.get("database"), what="database"),
        storage=_opt_mapping(raw.get("storage"), what="storage"),
        hosts=_parse_hosts(raw.get("hosts")),
        paths=PathSettings(project_root=project_root, env_file=env_file),
        plugins=plugins,
        commands=commands,
        source=source,
    )


def load_config(path: Path | None = None, *, cwd: Path | None = None) -> Config:
    cwd = cwd or Path.cwd()
    source = find_config_file(path, cwd=cwd)
    raw = read_config_file(source)
    return build_config(raw, cwd=cwd, source=source)
