from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from devcli.providers.database.base import Credentials, DatabaseProvider
from devcli.util import RunResult, format_bytes

_TABLE_ROW_RE = re.compile(r"^\s*([\w.]+)\s*\|\s*(\d+)\s*$")


class PostgresProvider(DatabaseProvider):
    driver = "postgres"
    cli_command = "psql"
    default_port = 5432

    def _conn_args(self, creds: Credentials, *, with_db: bool = True) -> list[str]:
        args: list[str] = []
        if creds.host:
            args.extend(["-h", creds.host])
        if creds.port:
            args.extend(["-p", str(creds.port)])
        if creds.username:
            args.extend(["-U", creds.username])
        if with_db and creds.database:
            args.extend(["-d", creds.database])
        return args

    def _env(self, creds: Credentials) -> dict[str, str]:
        return {"PGPASSWORD": creds.password} if creds.password else {}

    def connect(self) -> RunResult:
        creds = self.credentials()
        return self.executor.run_in_service(
            self.service, "psql", self._conn_args(creds), interactive=True, env=self._env(creds)
        )

    def query(self, sql: str) -> RunResult:
        creds = self.credentials()
        args = [*self._conn_args(creds), "-c", sql]
        return self.executor.run_in_service(self.service, "psql", args, env=self._env(creds))

    def backup(self, destination: str | Path | None = None, *, no_data: bool = False) -> Path:
        creds = self.require_database()
        target = self._target_path(destination, creds.database)
        args = [*self._conn_args(creds, with_db=False), "-Fp"]
        if no_data:
            args.append("--schema-only")
        args.append(creds.database)
        res = self.executor.run_in_service(
            self.service, "pg_dump", args, env=self._env(creds), binary=True
        )
        if not res.ok:
            raise RuntimeError(f"Backup failed: {res.stderr.strip()}")
        target.write_bytes(res.output)
        return target

    def restore(self, source: str | Path) -> RunResult:
        creds = self.require_database()
        path = self._require_source(source)
        # The file is local, so it always goes over stdin. pg_restore reads
        # custom-format (.dump) archives from stdin when given no file.
        if path.suffix == ".dump":
            command, args = "pg_restore", [*self._conn_args(creds), "-c"]
        else:
            command, args = "psql", self._conn_args(creds)
        return self.executor.run_in_service(
            self.service,
            command,
            args,
            env=self._env(creds),
            input=path.read_bytes(),
        )

    def get_size(self) -> dict[str, Any]:
        creds = self.require_database()
        total = 0
        res = self.query(f"SELECT pg_database_size('{creds.database}');")
        if res.ok:
            m = re.search(r"(\d+)", res.stdout)
            if m:
                total = int(m.group(1))

        tables: list[dict[str, Any]] = []
        res = self.query(
            "SELECT tablename, pg_total_relation_size(quote_ident(tablename)) AS size "
            "FROM pg_tables WHERE schemaname = 'public' ORDER BY size DESC;"
        )
        if res.ok:
            for line in res.stdout.splitlines():
                m = _TABLE_ROW_RE.match(line)
                if m:
                    size = int(m.group(2))
                    tables.append({"table": m.group(1), "size": size, "formatted": format_bytes(size)})
        return {"database": creds.database, "size": total, "formatted": format_bytes(total), "tables": tables}
