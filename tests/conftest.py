from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import pytest

from devcli.config_loader import Config, build_config
from devcli.core import Context, Options, build_context
from devcli.util import RunResult


@dataclass
class Call:
    args: list[str]
    capture: bool = True
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    input: str | bytes | None = None
    binary: bool = False
    timeout: float | None = None


@dataclass
class FakeRunner:
    """Records every argv instead of spawning processes."""

    calls: list[Call] = field(default_factory=list)
    scripted: list[tuple[list[str], RunResult]] = field(default_factory=list)
    dry_run: bool = False

    def script(
        self,
        prefix: Sequence[str],
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        output: bytes = b"",
    ) -> None:
        res = RunResult(args=list(prefix), returncode=returncode, stdout=stdout, stderr=stderr, output=output)
        self.scripted.append((list(prefix), res))

    def run(
        self,
        args,
        *,
        sudo: bool = False,
        capture: bool = True,
        cwd=None,
        env=None,
        input=None,
        binary=False,
        timeout=None,
    ) -> RunResult:
        argv = list(args)
        if sudo:
            argv = ["sudo", *argv]
        self.calls.append(
            Call(args=argv, capture=capture, cwd=cwd, env=env, input=input, binary=binary, timeout=timeout)
        )
        for prefix, res in self.scripted:
            if argv[: len(prefix)] == prefix:
                return RunResult(
                    args=argv, returncode=res.returncode, stdout=res.stdout, stderr=res.stderr, output=res.output
                )
        return RunResult(args=argv, returncode=0, stdout="", stderr="")

    @property
    def argvs(self) -> list[list[str]]:
        return [c.args for c in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("devcli_tests")


@pytest.fixture
def make_config(tmp_path):
    def make(raw: Mapping[str, Any] | None = None) -> Config:
        return build_config(dict(raw or {}), cwd=tmp_path)

    return make


@pytest.fixture
def make_context(make_config, runner, logger):
    def make(raw: Mapping[str, Any] | None = None, **kwargs: Any) -> Context:
        return build_context(
            config=make_config(raw),
            options=Options(),
            logger=logger,
            runner=runner,
            **kwargs,
        )

    return make


@pytest.fixture
def docker_raw() -> dict[str, Any]:
    return {
        "name": "proj",
        "execution": {
            "mode": "docker",
            "docker": {"containers": {"app": "proj_app", "database": "proj_db"}},
        },
    }
