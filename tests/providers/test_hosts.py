from __future__ import annotations

from pathlib import Path

import pytest

from devcli.providers.hosts import etc_hosts
from devcli.providers.hosts.etc_hosts import END_MARKER, START_MARKER

BASE = "127.0.0.1\tlocalhost\n::1\tlocalhost\n"


@pytest.fixture
def hosts_file(tmp_path):
    path = tmp_path / "hosts"
    path.write_text(BASE, encoding="utf-8")
    return path


@pytest.fixture
def hosts(make_context, hosts_file):
    ctx = make_context(
        {
            "execution": {"mode": "native"},
            "hosts": {"driver": "etc-hosts", "file": str(hosts_file), "entries": ["app.test", "api.app.test"]},
        }
    )
    return ctx.hosts


def test_add_defaults_to_configured_entries(hosts, hosts_file):
    result = hosts.add_entries()
    assert result.added == ["app.test", "api.app.test"]
    text = hosts_file.read_text(encoding="utf-8")
    assert text.startswith(BASE)
    assert f"{START_MARKER}\n127.0.0.1\tapp.test\n127.0.0.1\tapi.app.test\n{END_MARKER}\n" in text


def test_add_twice_is_idempotent(hosts, hosts_file):
    hosts.add_entries()
    once = hosts_file.read_text(encoding="utf-8")
    result = hosts.add_entries()
    assert result.added == []
    assert result.skipped == ["app.test", "api.app.test"]
    assert hosts_file.read_text(encoding="utf-8") == once


def test_existing_unmanaged_entry_is_skipped(hosts, hosts_file):
    result = hosts.add_entries(["localhost"])
    assert result.skipped == ["localhost"]
    assert hosts_file.read_text(encoding="utf-8") == BASE


def test_remove_reports_not_found_and_leaves_file(hosts, hosts_file):
    result = hosts.remove_entries(["ghost.test"])
    assert result.removed == []
    assert result.not_found == ["ghost.test"]
    assert hosts_file.read_text(encoding="utf-8") == BASE


def test_remove_only_touches_managed_block(hosts, hosts_file):
    hosts.add_entries(["app.test"], ip="10.0.0.5")
    result = hosts.remove_entries(["app.test", "localhost"])
    assert result.removed == ["app.test"]
    assert result.not_found == ["localhost"]
    assert hosts_file.read_text(encoding="utf-8") == BASE


def test_custom_ip_is_kept_per_entry(hosts):
    hosts.add_entries(["app.test"])
    hosts.add_entries(["db.test"], ip="10.0.0.7")
    assert [(e.ip, e.hostname) for e in hosts.list_entries()] == [
        ("127.0.0.1", "app.test"),
        ("10.0.0.7", "db.test"),
    ]


def test_check_splits_present_and_missing(hosts):
    hosts.add_entries(["app.test"])
    result = hosts.check_entries()
    assert result.present == ["app.test"]
    assert result.missing == ["api.app.test"]


@pytest.mark.parametrize("hostname", ["bad host", "-lead.test", "x" * 300])
def test_invalid_hostnames_are_rejected(hosts, hostname):
    with pytest.raises(ValueError):
        hosts.add_entries([hostname])


def test_invalid_ip_is_rejected(hosts):
    with pytest.raises(ValueError):
        hosts.add_entries(["app.test"], ip="999.1.1.1")


def test_legacy_list_config_selects_etc_hosts(make_config):
    config = make_config({"hosts": ["a.test", "b.test"]})
    assert config.hosts == {"driver": "etc-hosts", "entries": ["a.test", "b.test"]}


def test_sudo_fallback_copies_on_this_machine_in_ssh_mode(make_context, hosts_file, runner, monkeypatch):
    monkeypatch.setattr(etc_hosts, "can_write_path", lambda p: False)
    monkeypatch.setattr(etc_hosts.platform, "system", lambda: "Linux")
    ctx = make_context(
        {
            "execution": {"mode": "ssh", "ssh": {"host": "remote.example", "user": "me"}},
            "hosts": {"driver": "etc-hosts", "file": str(hosts_file)},
        }
    )

    result = ctx.hosts.add_entries(["app.test"])

    assert result.added == ["app.test"]
    assert not any(argv[0] == "ssh" for argv in runner.argvs)
    call = runner.calls[-1]
    assert call.args[:2] == ["sudo", "cp"]
    assert call.args[-1] == str(hosts_file)
    assert call.capture is False
    assert not Path(call.args[2]).exists()
