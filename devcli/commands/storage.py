from __future__ import annotations

from devcli.commands.api import command, group
from devcli.util import format_bytes

CATEGORY = "Storage"


def require_storage(context):
    storage = context.storage
    if storage is None:
        context.status.error("Storage is not configured", hint="set storage.driver in your config")
    return storage


@command(
    "list [path]",
    description="List files",
    aliases=["ls"],
    options=[
        ("-l, --long", "Show size and modification time"),
        ("--sort <key>", "Sort by name, modified or size", "name"),
    ],
)
def list_files(options, context, path):
    storage = require_storage(context)
    if storage is None:
        return 1
    entries = storage.list(path or "", sort=options.sort)
    if not entries:
        context.status.info("No files found")
        return 0
    if not options.long:
        for e in entries:
            context.status.echo(e.name + ("/" if e.is_dir else ""))
        return 0
    context.status.table(
        ["NAME", "SIZE", "MODIFIED"],
        [
            [
                e.name + ("/" if e.is_dir else ""),
                "-" if e.is_dir else format_bytes(e.size),
                f"{e.modified:%Y-%m-%d %H:%M}" if e.modified else "",
            ]
            for e in entries
        ],
    )
    return 0


@command("upload <local> <remote>", description="Upload a local file")
def upload(options, context, local, remote):
    storage = require_storage(context)
    if storage is None:
        return 1
    storage.upload(local, remote)
    context.status.success("Uploaded %s to %s", local, remote)
    return 0


@command("download <remote> [local]", description="Download a file")
def download(options, context, remote, local):
    storage = require_storage(context)
    if storage is None:
        return 1
    target = storage.download(remote, local or remote.rstrip("/").rsplit("/", 1)[-1])
    context.status.success("Downloaded %s to %s", remote, target)
    return 0


@command(
    "delete <path>",
    description="Delete a file or directory",
    aliases=["rm"],
    options=[("-r, --recursive", "Delete directories recursively")],
)
def delete(options, context, path):
    storage = require_storage(context)
    if storage is None:
        return 1
    storage.delete(path, recursive=options.recursive)
    context.status.success("Deleted %s", path)
    return 0


@command("copy <source> <destination>", description="Copy a file", aliases=["cp"])
def copy(options, context, source, destination):
    storage = require_storage(context)
    if storage is None:
        return 1
    storage.copy(source, destination)
    context.status.success("Copied %s to %s", source, destination)
    return 0


@command("move <source> <destination>", description="Move a file", aliases=["mv"])
def move(options, context, source, destination):
    storage = require_storage(context)
    if storage is None:
        return 1
    storage.move(source, destination)
    context.status.success("Moved %s to %s", source, destination)
    return 0


@command("stat <path>", description="Show file details")
def stat(options, context, path):
    storage = require_storage(context)
    if storage is None:
        return 1
    entry = storage.stat(path)
    context.status.echo(f"path:     {entry.path}")
    context.status.echo(f"type:     {'directory' if entry.is_dir else 'file'}")
    context.status.echo(f"size:     {format_bytes(entry.size)}")
    if entry.modified:
        context.status.echo(f"modified: {entry.modified:%Y-%m-%d %H:%M:%S}")
    return 0


@command("exists <path>", description="Check whether a path exists")
def exists(options, context, path):
    storage = require_storage(context)
    if storage is None:
        return 1
    if storage.exists(path):
        context.status.success("%s exists", path)
        return 0
    context.status.error("%s does not exist", path)
    return 1


@command("mkdir <path>", description="Create a directory")
def mkdir(options, context, path):
    storage = require_storage(context)
    if storage is None:
        return 1
    storage.mkdir(path)
    context.status.success("Created %s", path)
    return 0


@command("usage", description="Show storage usage")
def usage(options, context):
    storage = require_storage(context)
    if storage is None:
        return 1
    info = storage.get_usage()
    line = f"{storage.get_base_path()}: {info['formatted']} used"
    if info.get("total"):
        line += f" of {format_bytes(info['total'])}"
    context.status.echo(line)
    return 0


COMMANDS = [
    group(
        "storage",
        [list_files, upload, download, delete, copy, move, stat, exists, mkdir, usage],
        description="Storage operations",
        category=CATEGORY,
    )
]
