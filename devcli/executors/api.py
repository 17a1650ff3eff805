from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence

from devcli.util import CommandRunner, RunResult


class Executor(Protocol):
    """
    Runs commands somewhere: in containers, on this machine, or on a remote host.

    Every capability must be answered by every backend, even as a no-op.
    Subprocess failures come back as a RunResult with a non-zero returncode;
    only configuration and connectivity problems raise. `runner` always runs
    processes on this machine, whatever the backend.
    """

    mode: str
    runner: CommandRunner

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
    ) -> RunResult: ...

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
    ) -> RunResult: ...

    def start(self, services: Sequence[str] = (), *, build: bool = False) -> RunResult: ...

    def stop(self, services: Sequence[str] = ()) -> RunResult: ...

    def restart(self, services: Sequence[str] = ()) -> RunResult: ...

    def status(self, services: Sequence[str] = ()) -> list[dict[str, Any]]: ...

    def logs(
        self,
        services: Sequence[str] = (),
        *,
        follow: bool = False,
        tail: int | None = None,
    ) -> RunResult: ...

    def is_available(self) -> bool: ...

    def resolve_service(self, key: str) -> str | None: ...

    def get_info(self) -> dict[str, Any]: ...


def parse_json_lines(text: str) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for line in text.strip().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            item = json.loads(line)
        except ValueError:
            out.append({"raw": line})
            continue
        # Older compose releases print a single JSON array.
        if isinstance(item, list):
            out.extend(x if isinstance(x, dict) else {"raw": x} for x in item)
        elif isinstance(item, dict):
            out.append(item)
        else:
            out.append({"raw": line})
    return out
