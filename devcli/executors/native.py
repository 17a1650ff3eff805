from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from devcli.config_loader import NativeSettings, PathSettings
from devcli.util import CommandRunner, RunResult


@dataclass(frozen=True)
class NativeExecutor:
    """Runs binaries directly on this machine; there is no service group here."""

    settings: NativeSettings
    paths: PathSettings
    runner: CommandRunner
    logger: logging.Logger
    mode: str = "native"

    @property
    def working_dir(self) -> Path:
        return self.settings.working_dir or self.paths.project_root

    @property
    def shell(self) -> str:
        return self.settings.shell or os.environ.get("SHELL") or "/bin/bash"

    def resolve_service(self, key: str) -> str | None:
        return key

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
            cwd=cwd or self.working_dir,
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
        self.logger.debug("native: service %r runs on the host", service)
        return self.run(command, args, interactive=interactive, env=env, input=input, binary=binary)

    def _noop(self, action: str, services: Sequence[str]) -> RunResult:
        self.logger.debug("native: %s is a no-op (services: %s)", action, ", ".join(services) or "all")
        return RunResult(args=[], returncode=0, stdout="", stderr="")

    def start(self, services: Sequence[str] = (), *, build: bool = False) -> RunResult:
        return self._noop("start", services)

    def stop(self, services: Sequence[str] = ()) -> RunResult:
        return self._noop("stop", services)

    def restart(self, services: Sequence[str] = ()) -> RunResult:
        return self._noop("restart", services)

    def status(self, services: Sequence[str] = ()) -> list[dict[str, Any]]:
        return [
            {
                "Service": "host",
                "Name": platform.node(),
                "State": "running",
                "Status": f"{platform.system()} {platform.release()}",
            }
        ]

    def logs(
        self,
        services: Sequence[str] = (),
        *,
        follow: bool = False,
        tail: int | None = None,
    ) -> RunResult:
        return RunResult(
            args=[],
            returncode=0,
            stdout="",
            stderr="native mode keeps no service logs; check your application's log files",
        )

    def is_available(self) -> bool:
        return True

    def get_info(self) -> dict[str, Any]:
        return {
            "type": self.mode,
            "shell": self.shell,
            "working_dir": str(self.working_dir),
            "platform": platform.system().lower(),
        }
