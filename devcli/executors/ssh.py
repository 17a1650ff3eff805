from __future__ import annotations

import getpass
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from devcli.config_loader import SshSettings
from devcli.errors import ConfigurationError
from devcli.executors.api import parse_json_lines
from devcli.util import CommandRunner, RunResult

PROBE_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class SshExecutor:
    settings: SshSettings
    runner: CommandRunner
    logger: logging.Logger
    mode: str = "ssh"

    @property
    def user(self) -> str | None:
        if self.settings.user:
            return self.settings.user
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return None

    @property
    def working_dir(self) -> str:
        return self.settings.working_dir or "~"

    @property
    def destination(self) -> str:
        host = self._require_host()
        user = self.user
        return f"{user}@{host}" if user else host

    def _require_host(self) -> str:
        if not self.settings.host:
            raise ConfigurationError(
                "SSH host is not configured",
                hint="set execution.ssh.host in your config",
            )
        return self.settings.host

    def ssh_options(self) -> list[str]:
        args: list[str] = []
        if self.settings.key_path is not None:
            args.extend(["-i", str(self.settings.key_path)])
        if self.settings.port != 22:
            args.extend(["-p", str(self.settings.port)])
        if not self.settings.strict_host_key_checking:
            args.extend(["-o", "StrictHostKeyChecking=no"])
        return args

    def remote_command(self, command: str, args: Sequence[str], *, cwd: str | None = None) -> str:
        # `~` must stay unquoted so the remote shell expands it.
        workdir = cwd or self.working_dir
        if workdir != "~" and not workdir.startswith("~/"):
            workdir = shlex.quote(workdir)
        line = " ".join([command, *(shlex.quote(a) for a in args)])
        return f"cd {workdir} && {line}"

    def ssh_argv(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        interactive: bool = False,
        cwd: str | None = None,
    ) -> list[str]:
        argv = ["ssh", *self.ssh_options()]
        if interactive:
            argv.append("-t")
        argv.extend([self.destination, self.remote_command(command, args, cwd=cwd)])
        return argv

    def resolve_service(self, key: str) -> str | None:
        return key

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        interactive: bool = False,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        input: str | bytes | None = None,
        binary: bool = False,
    ) -> RunResult:
        if env:
            prefix = [f"{k}={shlex.quote(v)}" for k, v in env.items()]
            command = " ".join(["env", *prefix, command])
        argv = self.ssh_argv(
            command,
            args,
            interactive=interactive,
            cwd=str(cwd) if cwd is not None else None,
        )
        return self.runner.run(argv, capture=not interactive, input=input, binary=binary)

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
        self.logger.debug("ssh: service %r runs on %s", service, self.settings.host)
        return self.run(command, args, interactive=interactive, env=env, input=input, binary=binary)

    def start(self, services: Sequence[str] = (), *, build: bool = False) -> RunResult:
        args = ["compose", "up", "-d"]
        if build:
            args.append("--build")
        return self.run("docker", [*args, *services])

    def stop(self, services: Sequence[str] = ()) -> RunResult:
        if services:
            return self.run("docker", ["compose", "stop", *services])
        return self.run("docker", ["compose", "down"])

    def restart(self, services: Sequence[str] = ()) -> RunResult:
        return self.run("docker", ["compose", "restart", *services])

    def status(self, services: Sequence[str] = ()) -> list[dict[str, Any]]:
        if not self.settings.host:
            return []
        res = self.run("docker", ["compose", "ps", "--format", "json", *services])
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
        args = ["compose", "logs"]
        if follow:
            args.append("-f")
        if tail is not None:
            args.extend(["--tail", str(tail)])
        return self.run("docker", [*args, *services], interactive=True)

    def _scp(self, source: str, target: str, *, recursive: bool) -> RunResult:
        argv = ["scp"]
        if self.settings.key_path is not None:
            argv.extend(["-i", str(self.settings.key_path)])
        if self.settings.port != 22:
            argv.extend(["-P", str(self.settings.port)])
        if not self.settings.strict_host_key_checking:
            argv.extend(["-o", "StrictHostKeyChecking=no"])
        if recursive:
            argv.append("-r")
        argv.extend([source, target])
        return self.runner.run(argv)

    def copy_to(self, local_path: Path | str, remote_path: str, *, recursive: bool = False) -> RunResult:
        return self._scp(str(local_path), f"{self.destination}:{remote_path}", recursive=recursive)

    def copy_from(self, remote_path: str, local_path: Path | str, *, recursive: bool = False) -> RunResult:
        return self._scp(f"{self.destination}:{remote_path}", str(local_path), recursive=recursive)

    def is_available(self) -> bool:
        if not self.settings.host:
            return False
        argv = ["ssh", *self.ssh_options(), "-o", "BatchMode=yes", self.destination, "echo", "ok"]
        res = self.runner.run(argv, timeout=PROBE_TIMEOUT_SECONDS)
        return res.ok and res.stdout.strip() == "ok"

    def get_info(self) -> dict[str, Any]:
        return {
            "type": self.mode,
            "host": self.settings.host,
            "user": self.user,
            "port": self.settings.port,
            "key_path": str(self.settings.key_path) if self.settings.key_path else None,
            "working_dir": self.working_dir,
        }
