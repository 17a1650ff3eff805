from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from devcli.config_loader import DockerSettings, PathSettings
from devcli.errors import ConfigurationError
from devcli.executors.api import parse_json_lines
from devcli.util import CommandRunner, RunResult, has_tty

COMPOSE_FILE_VARIANTS = (
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
)

STATS_FORMAT = "table {{.Name}}\t{{.CPUPerc}}\t{{.MemUsage}}\t{{.NetIO}}\t{{.BlockIO}}"


@dataclass(frozen=True)
class DockerExecutor:
    settings: DockerSettings
    paths: PathSettings
    runner: CommandRunner
    logger: logging.Logger
    mode: str = "docker"

    def resolve_service(self, key: str) -> str | None:
        return self.settings.containers.get(key)

    def _container_for(self, key: str) -> str:
        container = self.resolve_service(key)
        if container is None:
            raise ConfigurationError(
                f'Service "{key}" is not mapped to a container',
                hint=f"configure execution.docker.containers.{key} in your config",
            )
        return container

    def find_compose_file(self) -> Path | None:
        root = self.paths.project_root
        if self.settings.compose_file:
            preferred = Path(self.settings.compose_file).expanduser()
            if not preferred.is_absolute():
                preferred = root / preferred
            if preferred.is_file():
                return preferred
        for variant in COMPOSE_FILE_VARIANTS:
            candidate = root / variant
            if candidate.is_file():
                return candidate
        return None

    def compose_args(self, args: Sequence[str]) -> list[str]:
        compose_file = self.find_compose_file()
        if compose_file is None:
            raise ConfigurationError(
                f"No Docker Compose file found in {self.paths.project_root}",
                hint="set execution.docker.compose_file or add a compose.yaml",
            )
        argv = ["docker", "compose"]
        if self.paths.env_file.is_file():
            argv.extend(["--env-file", str(self.paths.env_file)])
        argv.extend(["-f", str(compose_file), *args])
        return argv

    def compose(self, args: Sequence[str], *, interactive: bool = True) -> RunResult:
        return self.runner.run(
            self.compose_args(args),
            capture=not interactive,
            cwd=self.paths.project_root,
        )

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        interactive: bool = False,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input: str | bytes | None = None,
        binary: bool = False,
    ) -> RunResult:
        return self.runner.run(
            [command, *args],
            capture=not interactive,
            cwd=cwd or self.paths.project_root,
            env=env,
            input=input,
            binary=binary,
        )

    def run_in_service(
        self,
        service: str,
        command: str,
        args: Sequence[str] = (),
        *,
        interactive: bool = False,
        env: Mapping[str, str] | None = None,
        input: str | bytes | None = None,
        binary: bool = False,
    ) -> RunResult:
        container = self._container_for(service)
        argv = ["docker", "exec"]
        if input is not None:
            argv.append("-i")
        elif interactive:
            argv.append("-it" if has_tty() else "-i")
        # Only names go on the argv; `docker exec -e NAME` copies the value
        # from the docker client's own environment.
        for key in env or {}:
            argv.extend(["-e", key])
        argv.extend([container, command, *args])
        return self.runner.run(
            argv,
            capture=not interactive,
            env=dict(env) if env else None,
            input=input,
            binary=binary,
        )

    def start(self, services: Sequence[str] = (), *, build: bool = False) -> RunResult:
        args = ["up", "-d"]
        if build:
            args.append("--build")
        return self.compose([*args, *services])

    def stop(self, services: Sequence[str] = ()) -> RunResult:
        if services:
            # `down` removes the whole project; named services only get stopped.
            return self.compose(["stop", *services])
        return self.compose(["down"])

    def restart(self, services: Sequence[str] = ()) -> RunResult:
        return self.compose(["restart", *services])

    def build(self, services: Sequence[str] = (), *, no_cache: bool = False) -> RunResult:
        args = ["build"]
        if no_cache:
            args.append("--no-cache")
        return self.compose([*args, *services])

    def status(self, services: Sequence[str] = ()) -> list[dict[str, Any]]:
        res = self.compose(["ps", "--format", "json", *services], interactive=False)
        if not res.ok:
            return []
        return parse_json_lines(res.stdout)

    def logs(
        self,
        services: Sequence[str] = (),
        *,
        follow: bool = False,
        tail: int | None = None,
    ) -> RunResult:
        args = ["logs"]
        if follow:
            args.append("-f")
        if tail is not None:
            args.extend(["--tail", str(tail)])
        return self.compose([*args, *services])

    def restart_container(self, name: str) -> RunResult:
        return self.runner.run(["docker", "restart", name])

    def stats(self, containers: Sequence[str] = ()) -> RunResult:
        return self.runner.run(["docker", "stats", "--no-stream", "--format", STATS_FORMAT, *containers])

    def is_available(self) -> bool:
        return self.runner.run(["docker", "info"]).ok

    def get_info(self) -> dict[str, Any]:
        compose_file = self.find_compose_file()
        return {
            "type": self.mode,
            "compose_file": str(compose_file) if compose_file else None,
            "containers": dict(self.settings.containers),
            "env_file": str(self.paths.env_file),
        }
