from __future__ import annotations

import os
import platform
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from devcli.config_loader import Config
from devcli.executors.api import Executor
from devcli.providers.hosts.base import AddResult, CheckResult, HostEntry, HostsProvider, RemoveResult
from devcli.util import can_write_path, expand_path

START_MARKER = "# >>> devcli managed hosts"
END_MARKER = "# <<< devcli managed hosts"


def default_hosts_file() -> Path:
    if platform.system() == "Windows":
        return Path(r"C:\Windows\System32\drivers\etc\hosts")
    return Path("/etc/hosts")


def parse_entries(lines: Sequence[str]) -> list[HostEntry]:
    out: list[HostEntry] = []
    for line in lines:
        text = line.split("#", 1)[0].strip()
        if not text:
            continue
        parts = text.split()
        if len(parts) < 2:
            continue
        out.extend(HostEntry(ip=parts[0], hostname=h) for h in parts[1:])
    return out


@dataclass
class _Sections:
    before: list[str]
    managed: list[str]
    after: list[str]
    has_block: bool


def split_sections(content: str) -> _Sections:
    lines = content.splitlines()
    try:
        start = lines.index(START_MARKER)
        end = lines.index(END_MARKER, start)
    except ValueError:
        return _Sections(before=lines, managed=[], after=[], has_block=False)
    return _Sections(before=lines[:start], managed=lines[start + 1 : end], after=lines[end + 1 :], has_block=True)


def render(sections: _Sections, managed: list[HostEntry]) -> str:
    before = list(sections.before)
    after = list(sections.after)
    if managed:
        block = [START_MARKER, *(f"{e.ip}\t{e.hostname}" for e in managed), END_MARKER]
        if not sections.has_block:
            while before and not before[-1].strip():
                before.pop()
            if before:
                before.append("")
        lines = [*before, *block, *after]
    else:
        while before and not before[-1].strip():
            before.pop()
        lines = [*before, *after]
    return "\n".join(lines) + "\n"


class EtcHostsProvider(HostsProvider):
    """
    Keeps project entries inside a marked block of the system hosts file.

    Entries outside the block are read for idempotency checks but never edited.
    """

    driver = "etc-hosts"

    def __init__(self, section: Mapping[str, Any], config: Config, executor: Executor) -> None:
        super().__init__(section, config, executor)
        configured = self.section.get("file")
        self.path = expand_path(str(configured)) if configured else default_hosts_file()

    def is_available(self) -> bool:
        return self.path.is_file() and os.access(self.path, os.R_OK)

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8") if self.path.exists() else ""

    def write(self, content: str) -> None:
        if can_write_path(self.path):
            self.path.write_text(content, encoding="utf-8")
            return
        if platform.system() == "Windows":
            raise PermissionError(f"Cannot write {self.path}; run the terminal as Administrator")
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", prefix="devcli-hosts-", delete=False) as fh:
            fh.write(content)
            tmp = Path(fh.name)
        # The file is read on this machine, so the privileged copy runs here too,
        # whatever the execution mode.
        try:
            res = self.executor.runner.run(["cp", str(tmp), str(self.path)], sudo=True, capture=False)
        finally:
            tmp.unlink(missing_ok=True)
        if not res.ok:
            raise PermissionError(f"Failed to update {self.path} (exit {res.returncode})")

    def add_entries(self, hosts: Sequence[str] | None = None, ip: str | None = None) -> AddResult:
        hostnames = list(hosts) if hosts else list(self.entries)
        target_ip = ip or self.ip
        result = AddResult()
        if not hostnames:
            return result
        self.validate(hostnames, target_ip)

        content = self.read()
        existing = set(parse_entries(content.splitlines()))
        for hostname in dict.fromkeys(hostnames):
            entry = HostEntry(ip=target_ip, hostname=hostname)
            if entry in existing:
                result.skipped.append(hostname)
            else:
                result.added.append(hostname)
        if not result.added:
            return result

        sections = split_sections(content)
        managed = parse_entries(sections.managed)
        managed.extend(HostEntry(ip=target_ip, hostname=h) for h in result.added)
        self.write(render(sections, managed))
        return result

    def remove_entries(self, hosts: Sequence[str]) -> RemoveResult:
        result = RemoveResult()
        wanted = list(dict.fromkeys(hosts))
        if not wanted:
            return result
        content = self.read()
        sections = split_sections(content)
        managed = parse_entries(sections.managed)
        kept = [e for e in managed if e.hostname not in wanted]
        removed = {e.hostname for e in managed} - {e.hostname for e in kept}
        result.removed = [h for h in wanted if h in removed]
        result.not_found = [h for h in wanted if h not in removed]
        if result.removed:
            self.write(render(sections, kept))
        return result

    def check_entries(self, hosts: Sequence[str] | None = None) -> CheckResult:
        hostnames = list(hosts) if hosts else list(self.entries)
        result = CheckResult()
        if not hostnames:
            return result
        known = {e.hostname for e in parse_entries(self.read().splitlines())}
        for hostname in hostnames:
            (result.present if hostname in known else result.missing).append(hostname)
        return result

    def list_entries(self) -> list[HostEntry]:
        return parse_entries(split_sections(self.read()).managed)

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info["file"] = str(self.path)
        return info
