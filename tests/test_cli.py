from __future__ import annotations

import textwrap

import pytest

from devcli.cli import main

CONFIG = """
name: proj
binary_name: pj
version: 2.3.4
execution:
  mode: docker
  docker:
    containers:
      app: proj_app
      database: proj_db
plugins:
  - laravel
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    (tmp_path / "devcli.yaml").write_text(textwrap.dedent(CONFIG), encoding="utf-8")
    (tmp_path / "compose.yaml").write_text("services: {}\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DEVCLI_CONFIG", raising=False)
    monkeypatch.delenv("DEVCLI_DEBUG", raising=False)
    monkeypatch.delenv("DEVCLI_PLUGINS_DIRS", raising=False)
    return tmp_path


def test_version_uses_configured_binary_name(project, capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "pj 2.3.4"


def test_no_command_prints_categorized_help(project, capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert out.startswith("usage: pj")
    assert out.index("Setup:") < out.index("Container:") < out.index("Laravel Commands:")


def test_missing_config_fails_with_hint(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DEVCLI_CONFIG", raising=False)
    assert main(["info"]) == 1
    err = capsys.readouterr().err
    assert "No configuration file found" in err
    assert "hint:" in err


def test_unknown_command_is_a_usage_error(project):
    assert main(["frobnicate"]) == 2


def test_reload_end_to_end_in_dry_run(project, capsys):
    assert main(["--dry-run", "--verbose", "reload"]) == 0
    err = capsys.readouterr().err
    assert "RUN docker restart proj_app" in err
    assert "proj_db" not in err
    assert "Reloaded 1 of 1 containers" in err


def test_plugin_passthrough_forwards_flags(project, capsys):
    assert main(["--dry-run", "--verbose", "artisan", "migrate", "--force"]) == 0
    err = capsys.readouterr().err
    assert "proj_app php artisan migrate --force" in err


def test_passthrough_accepts_leading_flags(project, capsys):
    assert main(["--dry-run", "--verbose", "composer", "--version"]) == 0
    assert "proj_app composer --version" in capsys.readouterr().err


def test_unknown_flag_on_regular_command_is_rejected(project):
    assert main(["reload", "--bogus"]) == 2


def test_command_errors_map_to_exit_code_one(project, capsys):
    (project / "app.db").write_bytes(b"")
    (project / "devcli.yaml").write_text(
        textwrap.dedent(CONFIG) + "database:\n  driver: sqlite\n  database_path: app.db\n",
        encoding="utf-8",
    )
    assert main(["db", "rollback"]) == 1
    err = capsys.readouterr().err
    assert "No snapshots available" in err
    assert "hint: create one with `db snapshot` first" in err
    assert "Traceback" not in err


def test_debug_prints_traceback(project, capsys):
    (project / "app.db").write_bytes(b"")
    (project / "devcli.yaml").write_text(
        textwrap.dedent(CONFIG) + "database:\n  driver: sqlite\n  database_path: app.db\n",
        encoding="utf-8",
    )
    assert main(["--debug", "db", "rollback"]) == 1
    assert "Traceback" in capsys.readouterr().err


def test_group_without_subcommand_prints_its_help(project, capsys):
    (project / "devcli.yaml").write_text(
        textwrap.dedent(CONFIG) + "storage:\n  driver: filesystem\n",
        encoding="utf-8",
    )
    assert main(["storage"]) == 0
    assert "upload" in capsys.readouterr().out
