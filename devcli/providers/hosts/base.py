from __future__ import annotations

import ipaddress
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from devcli.config_loader import Config
from devcli.errors import ConfigurationError
from devcli.executors.api import Executor

DEFAULT_IP = "127.0.0.1"

_HOSTNAME_RE = re.compile(r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$")


@dataclass(frozen=True)
class HostEntry:
    ip: str
    hostname: str


@dataclass
class AddResult:
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class RemoveResult:
    removed: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass
class CheckResult:
    present: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def is_valid_hostname(hostname: str) -> bool:
    return bool(_HOSTNAME_RE.match(hostname))


def is_valid_ip(ip: str) -> bool:
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return False
    return True


class HostsProvider(ABC):
    driver: str = ""

    def __init__(self, section: Mapping[str, Any], config: Config, executor: Executor) -> None:
        self.section = dict(section)
        self.config = config
        self.executor = executor
        entries = self.section.get("entries") or []
        if isinstance(entries, str) or not all(isinstance(e, str) for e in entries):
            raise ConfigurationError("'hosts.entries' must be a list of hostnames")
        self.entries: list[str] = list(entries)
        self.ip = str(self.section.get("ip") or DEFAULT_IP)

    def validate(self, hostnames: Sequence[str], ip: str) -> None:
        for hostname in hostnames:
            if not is_valid_hostname(hostname):
                raise ValueError(f"Invalid hostname: {hostname}")
        if not is_valid_ip(ip):
            raise ValueError(f"Invalid IP address: {ip}")

    def get_info(self) -> dict[str, Any]:
        return {"driver": self.driver, "ip": self.ip, "entries": list(self.entries)}

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def add_entries(self, hosts: Sequence[str] | None = None, ip: str | None = None) -> AddResult: ...

    @abstractmethod
    def remove_entries(self, hosts: Sequence[str]) -> RemoveResult: ...

    @abstractmethod
    def check_entries(self, hosts: Sequence[str] | None = None) -> CheckResult: ...

    @abstractmethod
    def list_entries(self) -> list[HostEntry]: ...
