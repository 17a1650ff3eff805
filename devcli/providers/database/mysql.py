from __future__ import annotations

from pathlib import Path
from typing import Any

from devcli.providers.database.base import Credentials, DatabaseProvider
from devcli.util import RunResult, format_bytes


class MySQLProvider(DatabaseProvider):
    driver = "mysql"
    cli_command = "mysql"
    default_port = 3306

    def _conn_args(self, creds: Credentials) -> list[str]:
        args: list[str] = []
        if creds.host:
            args.extend(["-h", creds.host])
        if creds.port:
            args.extend(["-P", str(creds.port)])
        if creds.username:
            args.extend(["-u", creds.username])
        return args

    def _env(self, creds: Credentials) -> dict[str, str]:
        # MYSQL_PWD keeps the password off the mysql command line. In ssh mode
        # it still travels inside the remote command string.
        return {"MYSQL_PWD": creds.password} if creds.password else {}

    def connect(self) -> RunResult:
        creds = self.credentials()
        args = self._conn_args(creds)
        if creds.database:
            args.append(creds.database)
        return self.executor.run_in_service(
            self.service, "mysql", args, interactive=True, env=self._env(creds)
        )

    def query(self, sql: str) -> RunResult:
        creds = self.credentials()
        args = [*self._conn_args(creds), "-e", sql]
        if creds.database:
            args.append(creds.database)
        return self.executor.run_in_service(self.service, "mysql", args, env=self._env(creds))

    def backup(self, destination: str | Path | None = None, *, no_data: bool = False) -> Path:
        creds = self.require_database()
        target = self._target_path(destination, creds.database)
        args = [*self._conn_args(creds), "--single-transaction", "--routines", "--triggers"]
        if no_data:
            args.append("--no-data")
        args.append(creds.database)
        res = self.executor.run_in_service(
            self.service, "mysqldump", args, env=self._env(creds), binary=True
        )
        if not res.ok:
            raise RuntimeError(f"Backup failed: {res.stderr.strip()}")
        target.write_bytes(res.output)
        return target

    def restore(self, source: str | Path) -> RunResult:
        creds = self.require_database()
        path = self._require_source(source)
        args = [*self._conn_args(creds), creds.database]
        return self.executor.run_in_service(
            self.service,
            "mysql",
            args,
            env=self._env(creds),
            input=path.read_bytes(),
        )

    def get_size(self) -> dict[str, Any]:
        creds = self.require_database()
        sql = (
            "SELECT table_name, data_length + index_length "
            "FROM information_schema.tables "
            f"WHERE table_schema = '{creds.database}' "
            "ORDER BY (data_length + index_length) DESC;"
        )
        res = self.query(sql)
        if not res.ok:
            raise RuntimeError(f"Failed to get database size: {res.stderr.strip()}")

        tables: list[dict[str, Any]] = []
        total = 0
        # First line is the column header.
        for line in res.stdout.strip().splitlines()[1:]:
            parts = line.split("\t")
            if len(parts) < 2:
                continue
            try:
                size = int(float(parts[1]))
            except ValueError:
                size = 0
            tables.append({"table": parts[0], "size": size, "formatted": format_bytes(size)})
            total += size
        return {"database": creds.database, "size": total, "formatted": format_bytes(total), "tables": tables}
