from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from devcli.config_loader import Config
from devcli.executors.api import Executor

SORT_KEYS = ("name", "modified", "size")


@dataclass(frozen=True)
class StorageEntry:
    name: str
    path: str
    is_dir: bool
    size: int
    modified: datetime | None


def sort_entries(entries: list[StorageEntry], sort: str = "name") -> list[StorageEntry]:
    if sort not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort} (known: {', '.join(SORT_KEYS)})")
    if sort == "modified":
        return sorted(entries, key=lambda e: e.modified or datetime.min, reverse=True)
    if sort == "size":
        return sorted(entries, key=lambda e: e.size, reverse=True)
    # Directories first, then files, each alphabetically.
    return sorted(entries, key=lambda e: (not e.is_dir, e.name.lower()))


class StorageProvider(ABC):
    driver: str = ""

    def __init__(self, section: Mapping[str, Any], config: Config, executor: Executor) -> None:
        self.section = dict(section)
        self.config = config
        self.executor = executor

    def get_info(self) -> dict[str, Any]:
        return {"driver": self.driver, "base_path": self.get_base_path()}

    @abstractmethod
    def get_base_path(self) -> str: ...

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def list(self, path: str = "", *, sort: str = "name") -> list[StorageEntry]: ...

    @abstractmethod
    def upload(self, local_path: str | Path, remote_path: str) -> None: ...

    @abstractmethod
    def download(self, remote_path: str, local_path: str | Path) -> Path: ...

    @abstractmethod
    def delete(self, path: str, *, recursive: bool = False) -> None: ...

    @abstractmethod
    def copy(self, source: str, destination: str) -> None: ...

    @abstractmethod
    def move(self, source: str, destination: str) -> None: ...

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def stat(self, path: str) -> StorageEntry: ...

    @abstractmethod
    def mkdir(self, path: str) -> None: ...

    @abstractmethod
    def get_usage(self) -> dict[str, Any]: ...
