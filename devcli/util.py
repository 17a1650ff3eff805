from __future__ import annotations

import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Mapping, Sequence


def expand_path(s: str) -> Path:
    # Expand ~ and $VARS
    return Path(os.path.expandvars(os.path.expanduser(s)))


def resolve_path(base: Path, value: str | Path) -> Path:
    p = expand_path(str(value))
    if not p.is_absolute():
        p = base / p
    return p.resolve()


def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def sh_join(args: Sequence[str]) -> str:
    return shlex.join(list(args))


def can_write_path(p: Path) -> bool:
    target = p if p.exists() else p.parent
    try:
        return os.access(target, os.W_OK)
    except OSError:
        return False


def has_tty() -> bool:
    try:
        return sys.stdin.isatty() and sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def timestamp_slug(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")


_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(size: float, decimals: int = 2) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[unit]}"


def load_env_file(path: Path) -> dict[str, str]:
    """Read KEY=VALUE pairs from a dotenv file; missing file yields {}."""
    if not path.is_file():
        return {}
    from dotenv import dotenv_values

    return {k: v for k, v in dotenv_values(path).items() if v is not None}


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of one process. `stdout`/`stderr` are decoded text; undecodable
    bytes are replaced. Binary runs keep raw stdout in `output` and leave
    `stdout` empty.
    """

    args: list[str]
    returncode: int
    stdout: str
    stderr: str
    output: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


class CommandRunner:
    def __init__(self, *, dry_run: bool, logger) -> None:
        self._dry_run = dry_run
        self._logger = logger

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def run(
        self,
        args: Iterable[str],
        *,
        sudo: bool = False,
        capture: bool = True,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input: str | bytes | None = None,
        binary: bool = False,
        timeout: float | None = None,
    ) -> RunResult:
        argv = list(args)
        if sudo:
            argv = ["sudo", *argv]

        # Keep low-level process logs at DEBUG so high-level output can stay
        # "one log line per user-visible step".
        self._logger.debug("RUN %s", sh_join(argv))
        if self._dry_run:
            return RunResult(args=argv, returncode=0, stdout="", stderr="")

        merged_env = None
        if env is not None:
            merged_env = dict(os.environ)
            merged_env.update(dict(env))

        data = input.encode("utf-8") if isinstance(input, str) else input
        try:
            cp = subprocess.run(
                argv,
                input=data,
                capture_output=capture,
                check=False,
                cwd=str(cwd) if cwd is not None else None,
                env=merged_env,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            return RunResult(args=argv, returncode=127, stdout="", stderr=str(e))
        except subprocess.TimeoutExpired:
            return RunResult(
                args=argv,
                returncode=124,
                stdout="",
                stderr=f"Timed out after {timeout}s: {sh_join(argv)}",
            )
        except (OSError, ValueError) as e:
            # ValueError: argv or env with embedded NUL bytes.
            return RunResult(args=argv, returncode=126, stdout="", stderr=str(e))
        if binary:
            return RunResult(
                args=argv,
                returncode=cp.returncode,
                stdout="",
                stderr=_decode(cp.stderr),
                output=cp.stdout or b"",
            )
        return RunResult(
            args=argv,
            returncode=cp.returncode,
            stdout=_decode(cp.stdout),
            stderr=_decode(cp.stderr),
        )
