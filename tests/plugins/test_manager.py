from __future__ import annotations

import logging
import textwrap

import pytest

from devcli.errors import PluginError
from devcli.plugins import PluginManager, PluginState


@pytest.fixture
def plugin_dir(tmp_path):
    d = tmp_path / "plugins"
    d.mkdir()
    return d


@pytest.fixture
def manager(plugin_dir, logger, monkeypatch):
    monkeypatch.delenv("DEVCLI_PLUGINS_DIRS", raising=False)
    return PluginManager(logger=logger, plugin_dirs=[plugin_dir])


def write_plugin(plugin_dir, name, body):
    (plugin_dir / f"{name}.py").write_text(textwrap.dedent(body), encoding="utf-8")


def test_load_is_idempotent_and_commands_are_lazy(manager, plugin_dir):
    write_plugin(
        plugin_dir,
        "counter",
        """
        CALLS = []

        def _commands():
            CALLS.append(1)
            return [{"name": "hello", "action": lambda options, context: 0}]

        PLUGIN = {"name": "counter", "version": "1.2.3", "commands": _commands}
        """,
    )
    first = manager.load_plugin("counter")
    assert manager.load_plugin("counter") is first
    assert manager.state("counter") is PluginState.LOADED

    commands = manager.get_commands("counter")
    assert manager.get_commands("counter") is commands
    assert [c["name"] for c in commands] == ["hello"]


def test_commands_provider_not_called_until_requested(manager, plugin_dir):
    write_plugin(
        plugin_dir,
        "boom",
        """
        def _commands():
            raise RuntimeError("should stay lazy")

        PLUGIN = {"name": "boom", "version": "0.1.0", "commands": _commands}
        """,
    )
    manager.load_plugin("boom")
    assert manager.state("boom") is PluginState.LOADED
    with pytest.raises(RuntimeError):
        manager.get_commands("boom")


@pytest.mark.parametrize(
    "body, message",
    [
        ('PLUGIN = {"version": "1.0.0"}', "name"),
        ('PLUGIN = {"name": "bad"}', "version"),
        ('PLUGIN = {"name": "bad", "version": "one"}', "invalid version"),
        ("VALUE = 1", "PLUGIN"),
    ],
)
def test_invalid_manifest_moves_to_failed(manager, plugin_dir, body, message):
    write_plugin(plugin_dir, "bad", body)
    with pytest.raises(PluginError, match=message):
        manager.load_plugin("bad")
    assert manager.state("bad") is PluginState.FAILED
    assert "bad" in manager.errors
    # Failure sticks until the plugin is unloaded.
    with pytest.raises(PluginError):
        manager.load_plugin("bad")
    manager.unload_plugin("bad")
    assert manager.state("bad") is PluginState.UNLOADED


def test_name_mismatch_is_rejected(manager, plugin_dir):
    write_plugin(plugin_dir, "alias", 'PLUGIN = {"name": "other", "version": "1.0.0"}')
    with pytest.raises(PluginError, match="expected 'alias'"):
        manager.load_plugin("alias")


def test_load_plugins_isolates_failures(manager, plugin_dir, caplog):
    write_plugin(plugin_dir, "good", 'PLUGIN = {"name": "good", "version": "1.0.0"}')
    with caplog.at_level(logging.WARNING, logger="devcli_tests"):
        loaded = manager.load_plugins(["missing", "good"])
    assert [m.name for m in loaded] == ["good"]
    assert manager.state("missing") is PluginState.FAILED
    assert any("missing" in r.getMessage() for r in caplog.records)


def test_hook_failure_does_not_stop_other_hooks(manager, plugin_dir, caplog):
    write_plugin(
        plugin_dir,
        "a",
        """
        def broken(context, seen):
            raise RuntimeError("hook exploded")

        PLUGIN = {"name": "a", "version": "1.0.0", "hooks": {"before_command": broken}}
        """,
    )
    write_plugin(
        plugin_dir,
        "b",
        """
        def record(context, seen):
            seen.append("b")

        PLUGIN = {"name": "b", "version": "1.0.0", "hooks": {"before_command": record}}
        """,
    )
    manager.load_plugins(["a", "b"])
    seen = []
    with caplog.at_level(logging.WARNING, logger="devcli_tests"):
        manager.run_hook("before_command", object(), seen)
    assert seen == ["b"]
    assert any("hook exploded" in r.getMessage() for r in caplog.records)


def test_plugin_config_overlays_schema_defaults(manager):
    manager.load_plugin("laravel")
    merged = manager.plugin_config("laravel", {"laravel": {"php_path": "php8.3"}})
    assert merged["php_path"] == "php8.3"
    assert merged["composer_path"] == "composer"


def test_builtin_plugins_are_listed(manager, plugin_dir):
    write_plugin(plugin_dir, "extra", 'PLUGIN = {"name": "extra", "version": "1.0.0"}')
    (plugin_dir / "_private.py").write_text("", encoding="utf-8")
    available = manager.list_available()
    for name in ("django", "express", "laravel", "rails", "extra"):
        assert name in available
    assert "_private" not in available


@pytest.mark.parametrize("name", ["laravel", "django", "rails", "express"])
def test_builtin_plugins_provide_valid_commands(manager, name):
    from devcli.commands.api import definition_from

    manifest = manager.load_plugin(name)
    assert manifest.version == "1.0.0"
    definitions = [definition_from(raw) for raw in manager.get_commands(name)]
    assert definitions
    assert all(d.is_valid() for d in definitions)
