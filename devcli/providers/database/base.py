from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from devcli.config_loader import Config
from devcli.errors import ConfigurationError, ResourceNotFoundError
from devcli.executors.api import Executor
from devcli.util import RunResult, ensure_dir, load_env_file, resolve_path, timestamp_slug

DEFAULT_SERVICE = "database"

DEFAULT_ENV_MAPPING = {
    "host": "DB_HOST",
    "port": "DB_PORT",
    "database": "DB_DATABASE",
    "username": "DB_USERNAME",
    "password": "DB_PASSWORD",
}


@dataclass(frozen=True)
class Credentials:
    host: str | None
    port: int | None
    database: str
    username: str
    password: str


@dataclass(frozen=True)
class DumpFile:
    name: str
    path: Path
    size: int
    modified: datetime


def list_dump_files(directory: Path) -> list[DumpFile]:
    """Regular files in `directory`, newest modification time first."""
    if not directory.is_dir():
        return []
    out: list[DumpFile] = []
    for p in directory.iterdir():
        if not p.is_file():
            continue
        st = p.stat()
        out.append(
            DumpFile(name=p.name, path=p, size=st.st_size, modified=datetime.fromtimestamp(st.st_mtime))
        )
    # Ties fall back to name so the order is stable.
    out.sort(key=lambda f: (f.modified, f.name), reverse=True)
    return out


class DatabaseProvider(ABC):
    driver: str = ""
    cli_command: str = ""
    default_port: int | None = None
    dump_extension = "sql"

    def __init__(self, section: Mapping[str, Any], config: Config, executor: Executor) -> None:
        self.section = dict(section)
        self.config = config
        self.executor = executor
        self.credential_source = str(self.section.get("credential_source") or "env")
        self.env_mapping = {**DEFAULT_ENV_MAPPING, **dict(self.section.get("env_mapping") or {})}
        self.service = str(self.section.get("service") or DEFAULT_SERVICE)

    def credentials(self) -> Credentials:
        if self.credential_source == "config":
            raw = dict(self.section.get("credentials") or {})
        elif self.credential_source == "env":
            env_file = self.config.paths.env_file
            env: Mapping[str, str] = load_env_file(env_file) if env_file.is_file() else os.environ
            raw = {field: env.get(var) for field, var in self.env_mapping.items()}
        else:
            raise ConfigurationError(
                f"Unknown database.credential_source: {self.credential_source} (known: env, config)"
            )
        port = raw.get("port") or self.default_port
        try:
            port_num = int(port) if port is not None else None
        except (TypeError, ValueError):
            raise ConfigurationError(f"Database port must be a number, got {port!r}") from None
        return Credentials(
            host=str(raw.get("host") or "localhost"),
            port=port_num,
            database=str(raw.get("database") or ""),
            username=str(raw.get("username") or ""),
            password=str(raw.get("password") or ""),
        )

    def require_database(self) -> Credentials:
        creds = self.credentials()
        if not creds.database:
            var = self.env_mapping.get("database", "DB_DATABASE")
            raise ConfigurationError(
                "Database name not configured",
                hint=f"set {var} in {self.config.paths.env_file.name} or database.credentials.database",
            )
        return creds

    @property
    def backup_dir(self) -> Path:
        backup = self.section.get("backup") or {}
        value = backup.get("path") if isinstance(backup, Mapping) else None
        return resolve_path(self.config.paths.project_root, value or "./backups/database")

    @property
    def snapshot_dir(self) -> Path:
        snapshot = self.section.get("snapshot") or {}
        value = snapshot.get("path") if isinstance(snapshot, Mapping) else None
        if not value:
            fs = self.config.storage.get("filesystem") or {}
            value = fs.get("snapshot_path") if isinstance(fs, Mapping) else None
        return resolve_path(self.config.paths.project_root, value or "./snapshots")

    def generate_filename(self, prefix: str, extension: str | None = None) -> str:
        return f"{prefix}-{timestamp_slug()}.{extension or self.dump_extension}"

    def _target_path(self, destination: str | Path | None, prefix: str) -> Path:
        directory = ensure_dir(self.backup_dir)
        target = Path(destination) if destination else Path(self.generate_filename(prefix))
        if not target.is_absolute():
            target = directory / target
        ensure_dir(target.parent)
        return target

    def list_backups(self) -> list[DumpFile]:
        return list_dump_files(self.backup_dir)

    def list_snapshots(self) -> list[DumpFile]:
        return list_dump_files(self.snapshot_dir)

    def latest_backup(self) -> DumpFile:
        backups = self.list_backups()
        if not backups:
            raise ResourceNotFoundError(
                f"No backups found in {self.backup_dir}",
                hint="create one with `db backup` first",
            )
        return backups[0]

    def snapshot(self, name: str | None = None) -> Path:
        directory = ensure_dir(self.snapshot_dir)
        filename = name or f"snapshot-{timestamp_slug()}.{self.dump_extension}"
        return self.backup(directory / filename)

    def rollback(self) -> Path:
        snapshots = self.list_snapshots()
        if not snapshots:
            raise ResourceNotFoundError(
                "No snapshots available",
                hint="create one with `db snapshot` first",
            )
        latest = snapshots[0]
        res = self.restore(latest.path)
        if not res.ok:
            raise RuntimeError(f"Rollback to {latest.name} failed: {res.stderr.strip()}")
        return latest.path

    def _require_source(self, source: str | Path) -> Path:
        path = Path(source)
        if not path.is_absolute():
            candidate = self.backup_dir / path
            if candidate.is_file():
                path = candidate
        if not path.is_file():
            raise ResourceNotFoundError(f"Backup file not found: {path}")
        return path

    def get_info(self) -> dict[str, Any]:
        creds = self.credentials()
        return {
            "driver": self.driver,
            "database": creds.database,
            "host": creds.host,
            "port": creds.port,
            "service": self.service,
            "credential_source": self.credential_source,
        }

    @abstractmethod
    def connect(self) -> RunResult: ...

    @abstractmethod
    def query(self, sql: str) -> RunResult: ...

    @abstractmethod
    def backup(self, destination: str | Path | None = None, *, no_data: bool = False) -> Path: ...

    @abstractmethod
    def restore(self, source: str | Path) -> RunResult: ...

    @abstractmethod
    def get_size(self) -> dict[str, Any]: ...
