from __future__ import annotations

from pathlib import Path
from typing import Any

from devcli.errors import ConfigurationError, ResourceNotFoundError
from devcli.providers.database.base import Credentials, DatabaseProvider
from devcli.util import RunResult, format_bytes, resolve_path


class SQLiteProvider(DatabaseProvider):
    """SQLite works on a database file, so every call goes through `executor.run`."""

    driver = "sqlite"
    cli_command = "sqlite3"
    dump_extension = "db"

    @property
    def database_path(self) -> Path:
        creds = self.section.get("credentials") or {}
        value = self.section.get("database_path") or creds.get("database")
        if not value:
            raise ConfigurationError(
                "SQLite database path not configured",
                hint="set database.database_path in your config",
            )
        return resolve_path(self.config.paths.project_root, value)

    def credentials(self) -> Credentials:
        return Credentials(host=None, port=None, database=str(self.database_path), username="", password="")

    def _require_file(self) -> Path:
        path = self.database_path
        if not path.is_file():
            raise ResourceNotFoundError(f"Database file not found: {path}")
        return path

    def connect(self) -> RunResult:
        return self.executor.run("sqlite3", [str(self._require_file())], interactive=True)

    def query(self, sql: str) -> RunResult:
        return self.executor.run("sqlite3", [str(self.database_path), sql])

    def backup(self, destination: str | Path | None = None, *, no_data: bool = False) -> Path:
        db = self._require_file()
        target = self._target_path(destination, db.stem)
        command = ".schema" if no_data else f".backup '{target}'"
        res = self.executor.run("sqlite3", [str(db), command])
        if not res.ok:
            raise RuntimeError(f"Backup failed: {res.stderr.strip()}")
        if no_data:
            target.write_text(res.stdout, encoding="utf-8")
        return target

    def restore(self, source: str | Path) -> RunResult:
        path = self._require_source(source)
        return self.executor.run("sqlite3", [str(self.database_path), f".restore '{path}'"])

    def vacuum(self) -> RunResult:
        return self.query("VACUUM;")

    def check_integrity(self) -> dict[str, Any]:
        res = self.query("PRAGMA integrity_check;")
        return {"ok": res.ok and res.stdout.strip() == "ok", "result": res.stdout.strip()}

    def get_size(self) -> dict[str, Any]:
        db = self._require_file()
        total = db.stat().st_size
        res = self.query("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name;")
        tables: list[dict[str, Any]] = []
        if res.ok:
            tables = [{"table": line.strip(), "size": None} for line in res.stdout.splitlines() if line.strip()]
        return {"database": str(db), "size": total, "formatted": format_bytes(total), "tables": tables}
