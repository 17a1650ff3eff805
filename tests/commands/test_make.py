from __future__ import annotations

import argparse

import pytest

from devcli.commands import make
from devcli.commands.loader import CommandLoader


def _opts(**kwargs):
    values = {"description": None, "dir": None, "force": False}
    values.update(kwargs)
    return argparse.Namespace(**values)


@pytest.fixture
def ctx(make_context):
    return make_context({"execution": {"mode": "native"}})


@pytest.mark.parametrize(
    "name, expected",
    [("deploy", "deploy"), ("SyncDb", "sync-db"), ("clear_cache.py", "clear-cache"), ("two words", "two-words")],
)
def test_kebab_name(name, expected):
    assert make.kebab_name(name) == expected


def test_generated_command_is_picked_up_by_custom_stage(ctx, make_config, logger):
    assert make.make_command.action(_opts(description="Pull the production db"), ctx, "SyncDb") == 0

    target = ctx.project_root / "commands" / "sync-db.py"
    assert target.is_file()
    source = target.read_text(encoding="utf-8")
    assert "'Pull the production db'" in source

    config = make_config({"execution": {"mode": "native"}, "commands": {"custom": ["commands"]}})
    loaded = CommandLoader(config, ctx.plugins, logger).load_custom()
    assert [d.command_name for d in loaded] == ["sync-db"]
    assert loaded[0].description == "Pull the production db"
    assert loaded[0].action(argparse.Namespace(force=False), ctx) == 0


def test_name_of_existing_command_is_refused(ctx):
    assert make.make_command.action(_opts(), ctx, "doctor") == 1
    assert not (ctx.project_root / "commands").exists()


def test_invalid_name_is_refused(ctx):
    assert make.make_command.action(_opts(), ctx, "9lives") == 1


def test_existing_file_needs_force(ctx):
    target = ctx.project_root / "commands" / "deploy.py"
    target.parent.mkdir()
    target.write_text("# mine\n", encoding="utf-8")

    assert make.make_command.action(_opts(), ctx, "deploy") == 1
    assert target.read_text(encoding="utf-8") == "# mine\n"

    assert make.make_command.action(_opts(force=True), ctx, "deploy") == 0
    assert "COMMANDS = [deploy_command]" in target.read_text(encoding="utf-8")


def test_first_custom_file_path_selects_its_directory(make_context):
    ctx = make_context({"execution": {"mode": "native"}, "commands": {"custom": ["tools/deploy.py"]}})
    assert make.commands_dir(ctx) == (ctx.project_root / "tools").resolve()


def test_list_skips_private_files(ctx, capsys):
    directory = ctx.project_root / "commands"
    directory.mkdir()
    (directory / "deploy.py").write_text("", encoding="utf-8")
    (directory / "_helpers.py").write_text("", encoding="utf-8")

    assert make.make_list.action(argparse.Namespace(), ctx) == 0
    out = capsys.readouterr().out
    assert "deploy.py" in out
    assert "_helpers" not in out


def test_list_without_directory_is_not_an_error(ctx, capsys):
    assert make.make_list.action(argparse.Namespace(), ctx) == 0
    assert capsys.readouterr().out == ""
