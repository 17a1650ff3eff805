from __future__ import annotations

from devcli.commands.api import command, group
from devcli.util import format_bytes

CATEGORY = "Database"


def require_database(context):
    """The configured database provider, or None after reporting it is missing."""
    db = context.database
    if db is None:
        context.status.error("Database is not configured", hint="set database.driver in your config")
    return db


@command("connect", description="Open an interactive database client")
def connect(options, context):
    db = require_database(context)
    if db is None:
        return 1
    return db.connect()


@command("query <sql>", description="Run a SQL statement")
def query(options, context, sql):
    db = require_database(context)
    if db is None:
        return 1
    res = db.query(sql)
    if res.stdout:
        context.status.echo(res.stdout.rstrip())
    if not res.ok:
        context.status.error("Query failed: %s", res.stderr.strip())
    return res


@command(
    "backup [file]",
    description="Dump the database to a file",
    options=[("--no-data", "Dump the schema only")],
)
def backup(options, context, file):
    db = require_database(context)
    if db is None:
        return 1
    path = db.backup(file, no_data=options.no_data)
    context.status.success("Backup written to %s", path)
    return 0


@command("restore [file]", description="Restore a backup (default: the newest one)")
def restore(options, context, file):
    db = require_database(context)
    if db is None:
        return 1
    source = file or db.latest_backup().path
    context.status.info("Restoring %s", source)
    res = db.restore(source)
    if res.ok:
        context.status.success("Database restored")
    else:
        context.status.error("Restore failed: %s", res.stderr.strip())
    return res


@command("snapshot [name]", description="Take a snapshot to roll back to later")
def snapshot(options, context, name):
    db = require_database(context)
    if db is None:
        return 1
    path = db.snapshot(name)
    context.status.success("Snapshot written to %s", path)
    return 0


@command("rollback", description="Restore the newest snapshot")
def rollback(options, context):
    db = require_database(context)
    if db is None:
        return 1
    path = db.rollback()
    context.status.success("Rolled back to %s", path.name)
    return 0


@command("size", description="Show database and table sizes")
def size(options, context):
    db = require_database(context)
    if db is None:
        return 1
    info = db.get_size()
    context.status.echo(f"{info.get('database')}: {info.get('formatted')}")
    tables = info.get("tables") or []
    if tables:
        context.status.table(
            ["TABLE", "SIZE"],
            [[t["table"], format_bytes(t["size"]) if t.get("size") is not None else "-"] for t in tables],
        )
    return 0


@command("backups", description="List backups and snapshots")
def backups(options, context):
    db = require_database(context)
    if db is None:
        return 1
    for title, files in (("Backups", db.list_backups()), ("Snapshots", db.list_snapshots())):
        context.status.echo(f"{title}:")
        if not files:
            context.status.echo("  (none)")
            continue
        for f in files:
            context.status.echo(f"  {f.name:<45} {format_bytes(f.size):>10}  {f.modified:%Y-%m-%d %H:%M}")
    return 0


COMMANDS = [
    group(
        "db",
        [connect, query, backup, restore, snapshot, rollback, size, backups],
        description="Database operations",
        category=CATEGORY,
    )
]
