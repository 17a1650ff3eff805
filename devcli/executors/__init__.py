"""
Execution backends.

Commands and providers talk to an Executor and never care whether the work
happens in a container, on the host, or on a remote machine.
"""

from __future__ import annotations

import logging
from enum import Enum

from devcli.config_loader import Config
from devcli.errors import ConfigurationError
from devcli.executors.api import Executor
from devcli.executors.docker import DockerExecutor
from devcli.executors.native import NativeExecutor
from devcli.executors.ssh import SshExecutor
from devcli.util import CommandRunner


class ExecutionMode(str, Enum):
    DOCKER = "docker"
    NATIVE = "native"
    SSH = "ssh"


def create_executor(config: Config, runner: CommandRunner, logger: logging.Logger) -> Executor:
    mode = config.execution.mode
    try:
        kind = ExecutionMode(mode)
    except ValueError:
        known = ", ".join(m.value for m in ExecutionMode)
        raise ConfigurationError(
            f"Unknown execution mode: {mode} (known: {known})",
            hint="set execution.mode to one of: " + known,
        ) from None

    if kind is ExecutionMode.DOCKER:
        return DockerExecutor(settings=config.execution.docker, paths=config.paths, runner=runner, logger=logger)
    if kind is ExecutionMode.NATIVE:
        return NativeExecutor(settings=config.execution.native, paths=config.paths, runner=runner, logger=logger)
    return SshExecutor(settings=config.execution.ssh, runner=runner, logger=logger)


__all__ = [
    "DockerExecutor",
    "ExecutionMode",
    "Executor",
    "NativeExecutor",
    "SshExecutor",
    "create_executor",
]
