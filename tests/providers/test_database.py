from __future__ import annotations

import dataclasses
import os
from pathlib import Path

import pytest

from devcli.errors import ConfigurationError, ResourceNotFoundError


@pytest.fixture
def sqlite_ctx(make_context, tmp_path):
    (tmp_path / "app.db").write_bytes(b"")
    return make_context(
        {
            "execution": {"mode": "native"},
            "database": {"driver": "sqlite", "database_path": "app.db"},
        }
    )


def _touch(path: Path, mtime: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- dump\n", encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


def test_rollback_without_snapshots_raises_and_runs_nothing(sqlite_ctx, runner):
    with pytest.raises(ResourceNotFoundError) as info:
        sqlite_ctx.database.rollback()
    assert str(info.value) == "No snapshots available"
    assert runner.calls == []


def test_rollback_restores_newest_snapshot_by_mtime(sqlite_ctx, runner, tmp_path):
    snapshots = tmp_path / "snapshots"
    _touch(snapshots / "b-older.db", 1_000)
    newest = _touch(snapshots / "a-newest.db", 3_000)
    _touch(snapshots / "c-middle.db", 2_000)

    restored = sqlite_ctx.database.rollback()

    assert restored == newest.resolve()
    assert runner.argvs == [["sqlite3", str((tmp_path / "app.db").resolve()), f".restore '{newest.resolve()}'"]]


def test_failed_restore_fails_the_rollback(sqlite_ctx, runner, tmp_path):
    _touch(tmp_path / "snapshots" / "s.db", 1_000)
    runner.script(["sqlite3"], returncode=1, stderr="locked")
    with pytest.raises(RuntimeError, match="locked"):
        sqlite_ctx.database.rollback()


def test_snapshot_dir_falls_back_to_storage_setting(make_context, tmp_path):
    ctx = make_context(
        {
            "execution": {"mode": "native"},
            "database": {"driver": "sqlite", "database_path": "app.db"},
            "storage": {"driver": "none", "filesystem": {"snapshot_path": "var/snaps"}},
        }
    )
    assert ctx.database.snapshot_dir == (tmp_path / "var" / "snaps").resolve()


def test_backup_writes_into_backup_dir(sqlite_ctx, runner, tmp_path):
    target = sqlite_ctx.database.backup("nightly.db")
    assert target == (tmp_path / "backups" / "database" / "nightly.db").resolve()
    assert runner.argvs[-1][-1] == f".backup '{target}'"


def test_mysql_reads_credentials_from_env_file(make_context, runner, tmp_path, docker_raw):
    (tmp_path / ".env").write_text(
        "DB_HOST=db\nDB_DATABASE=shop\nDB_USERNAME=root\nDB_PASSWORD=secret\n", encoding="utf-8"
    )
    ctx = make_context({**docker_raw, "database": {"driver": "mysql"}})
    creds = ctx.database.credentials()
    assert (creds.host, creds.database, creds.username, creds.password) == ("db", "shop", "root", "secret")
    assert creds.port == 3306


def test_missing_database_name_has_hint(make_context, docker_raw, tmp_path):
    (tmp_path / ".env").write_text("DB_HOST=db\n", encoding="utf-8")
    ctx = make_context({**docker_raw, "database": {"driver": "postgres"}})
    with pytest.raises(ConfigurationError) as info:
        ctx.database.require_database()
    assert "DB_DATABASE" in info.value.hint


def test_mysql_query_passes_password_through_environment(make_context, runner, tmp_path, docker_raw, monkeypatch):
    from devcli.executors import docker as docker_mod

    monkeypatch.setattr(docker_mod, "has_tty", lambda: False)
    ctx = make_context(
        {
            **docker_raw,
            "database": {
                "driver": "mysql",
                "credential_source": "config",
                "credentials": {"database": "shop", "username": "root", "password": "secret"},
            },
        }
    )
    ctx.database.query("SELECT 1")
    argv = runner.argvs[-1]
    assert argv[:2] == ["docker", "exec"]
    assert argv[argv.index("-e") + 1] == "MYSQL_PWD"
    assert runner.calls[-1].env == {"MYSQL_PWD": "secret"}
    assert not any("secret" in a for a in argv)
    assert "proj_db" in argv


BLOB = b"INSERT INTO files VALUES (x'00ff');\n\xff\xfe\x00 raw bytes\n"


@pytest.fixture
def mysql_ctx(make_context):
    return make_context(
        {
            "execution": {"mode": "native"},
            "database": {
                "driver": "mysql",
                "credential_source": "config",
                "credentials": {"host": "db", "database": "shop", "username": "root", "password": "pw"},
            },
        }
    )


@pytest.fixture
def postgres_ctx(make_context, docker_raw, monkeypatch):
    from devcli.executors import docker as docker_mod

    monkeypatch.setattr(docker_mod, "has_tty", lambda: False)
    return make_context(
        {
            **docker_raw,
            "database": {
                "driver": "postgres",
                "credential_source": "config",
                "credentials": {"host": "db", "database": "shop", "username": "app", "password": "pw"},
            },
        }
    )


def test_mysql_backup_writes_raw_dump_bytes(mysql_ctx, runner, tmp_path):
    runner.script(["mysqldump"], output=BLOB)
    target = mysql_ctx.database.backup("nightly.sql")

    assert target == (tmp_path / "backups" / "database" / "nightly.sql").resolve()
    assert target.read_bytes() == BLOB
    call = runner.calls[-1]
    assert call.args == [
        "mysqldump", "-h", "db", "-P", "3306", "-u", "root",
        "--single-transaction", "--routines", "--triggers", "shop",
    ]
    assert call.binary is True
    assert call.env == {"MYSQL_PWD": "pw"}


def test_mysql_backup_schema_only_and_failure(mysql_ctx, runner):
    runner.script(["mysqldump"], returncode=2, stderr="access denied\n")
    with pytest.raises(RuntimeError, match="access denied"):
        mysql_ctx.database.backup(no_data=True)
    assert "--no-data" in runner.argvs[-1]


def test_mysql_restore_pipes_backup_as_bytes(mysql_ctx, runner, tmp_path):
    dump = tmp_path / "backups" / "database" / "old.sql"
    dump.parent.mkdir(parents=True)
    dump.write_bytes(BLOB)

    mysql_ctx.database.restore("old.sql")

    call = runner.calls[-1]
    assert call.args == ["mysql", "-h", "db", "-P", "3306", "-u", "root", "shop"]
    assert call.input == BLOB


def test_mysql_size_parses_tab_separated_rows(mysql_ctx, runner):
    runner.script(
        ["mysql"],
        stdout="TABLE_NAME\tdata_length + index_length\norders\t16384\nusers\t8192.0\n",
    )
    size = mysql_ctx.database.get_size()
    assert size["size"] == 24576
    assert size["formatted"] == "24 KB"
    assert [(t["table"], t["size"]) for t in size["tables"]] == [("orders", 16384), ("users", 8192)]


def test_postgres_backup_execs_pg_dump_in_database_container(postgres_ctx, runner, tmp_path):
    runner.script(["docker", "exec"], output=BLOB)
    target = postgres_ctx.database.backup("pg.sql", no_data=True)

    assert target.read_bytes() == BLOB
    call = runner.calls[-1]
    assert call.args == [
        "docker", "exec", "-e", "PGPASSWORD", "proj_db",
        "pg_dump", "-h", "db", "-p", "5432", "-U", "app", "-Fp", "--schema-only", "shop",
    ]
    assert call.env == {"PGPASSWORD": "pw"}
    assert call.binary is True


@pytest.mark.parametrize(
    "filename, tool, tail",
    [
        ("plain.sql", "psql", ["-d", "shop"]),
        ("archive.dump", "pg_restore", ["-d", "shop", "-c"]),
    ],
)
def test_postgres_restore_always_uses_stdin(postgres_ctx, runner, tmp_path, filename, tool, tail):
    source = tmp_path / "backups" / "database" / filename
    source.parent.mkdir(parents=True)
    source.write_bytes(BLOB)

    postgres_ctx.database.restore(source)

    call = runner.calls[-1]
    assert call.args == [
        "docker", "exec", "-i", "-e", "PGPASSWORD", "proj_db",
        tool, "-h", "db", "-p", "5432", "-U", "app", *tail,
    ]
    assert call.input == BLOB
    assert not any(str(source) in a for a in call.args)


def test_postgres_size_parses_psql_tables(postgres_ctx, runner):
    original = runner.run

    def run(args, **kwargs):
        res = original(args, **kwargs)
        if "pg_database_size" in args[-1]:
            out = " pg_database_size \n------------------\n          5242880\n(1 row)\n"
        else:
            out = " tablename |  size\n-----------+---------\n users     | 4194304\n orders    | 1048576\n(2 rows)\n"
        return dataclasses.replace(res, stdout=out)

    runner.run = run
    size = postgres_ctx.database.get_size()

    assert size["size"] == 5242880
    assert size["formatted"] == "5 MB"
    assert [(t["table"], t["size"]) for t in size["tables"]] == [("users", 4194304), ("orders", 1048576)]
