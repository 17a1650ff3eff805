from __future__ import annotations

import argparse
import threading

import pytest

from devcli.commands import database, docker, storage, system


def _ns(**kwargs):
    return argparse.Namespace(**kwargs)


@pytest.fixture
def docker_ctx(make_context, docker_raw, tmp_path):
    (tmp_path / "compose.yaml").write_text("services: {}\n", encoding="utf-8")
    return make_context(docker_raw)


def test_reload_restarts_only_mapped_reloadable_containers(docker_ctx, runner):
    assert docker.reload.action(_ns(), docker_ctx) == 0
    assert runner.argvs == [["docker", "restart", "proj_app"]]


def test_reload_runs_restarts_concurrently(make_context, runner, tmp_path):
    containers = {key: f"proj_{key}" for key in ("app", "queue", "worker")}
    ctx = make_context({"execution": {"mode": "docker", "docker": {"containers": containers}}})
    barrier = threading.Barrier(len(containers), timeout=5)
    original = runner.run

    def run(args, **kwargs):
        # Every restart has to be in flight at once for the barrier to open.
        barrier.wait()
        return original(args, **kwargs)

    runner.run = run
    assert docker.reload.action(_ns(), ctx) == 0
    assert sorted(a[-1] for a in runner.argvs) == ["proj_app", "proj_queue", "proj_worker"]


def test_reload_reports_partial_failure(make_context, runner, caplog):
    ctx = make_context(
        {"execution": {"mode": "docker", "docker": {"containers": {"app": "proj_app", "queue": "proj_queue"}}}}
    )
    runner.script(["docker", "restart", "proj_queue"], returncode=1, stderr="no such container")
    assert docker.reload.action(_ns(), ctx) == 1
    assert any("1 of 2" in r.getMessage() for r in caplog.records)


def test_reload_uses_configured_reloadable_list(make_context, runner):
    ctx = make_context(
        {
            "execution": {
                "mode": "docker",
                "docker": {"containers": {"app": "a", "web": "w"}, "reloadable": ["web"]},
            }
        }
    )
    docker.reload.action(_ns(), ctx)
    assert runner.argvs == [["docker", "restart", "w"]]


def test_rebuild_runs_down_build_up_in_order(docker_ctx, runner):
    docker.rebuild.action(_ns(), docker_ctx, [])
    steps = [argv[argv.index("-f") + 2] for argv in runner.argvs]
    assert steps == ["down", "build", "up"]


def test_rebuild_stops_at_first_failure(docker_ctx, runner):
    runner.script(["docker", "compose"], returncode=1)
    res = docker.rebuild.action(_ns(), docker_ctx, [])
    assert res.returncode == 1
    assert len(runner.calls) == 1


def test_shell_defaults_to_app(docker_ctx, runner, monkeypatch):
    from devcli.executors import docker as docker_mod

    monkeypatch.setattr(docker_mod, "has_tty", lambda: False)
    docker.shell.action(_ns(), docker_ctx, None)
    assert runner.argvs[-1] == ["docker", "exec", "-i", "proj_app", "bash"]


def test_database_commands_without_driver_make_no_calls(make_context, runner, caplog):
    ctx = make_context({"execution": {"mode": "native"}, "database": {"driver": "none"}})
    assert ctx.database is None
    assert database.backup.action(_ns(no_data=False), ctx, None) == 1
    assert database.rollback.action(_ns(), ctx) == 1
    assert runner.calls == []
    assert any("not configured" in r.getMessage() for r in caplog.records)


def test_storage_commands_without_driver_make_no_calls(make_context, runner):
    ctx = make_context({"execution": {"mode": "native"}})
    assert storage.usage.action(_ns(), ctx) == 1
    assert runner.calls == []


def test_hosts_add_and_list(make_context, tmp_path, capsys):
    hosts_file = tmp_path / "hosts"
    hosts_file.write_text("127.0.0.1\tlocalhost\n", encoding="utf-8")
    ctx = make_context(
        {"execution": {"mode": "native"}, "hosts": {"driver": "etc-hosts", "file": str(hosts_file)}}
    )
    assert system.add.action(_ns(ip=None), ctx, ["shop.test"]) == 0
    assert system.list_hosts.action(_ns(), ctx) == 0
    out = capsys.readouterr().out
    assert "shop.test" in out
    assert system.check.action(_ns(), ctx, ["shop.test", "other.test"]) == 1


def test_storage_list_prints_names(make_context, tmp_path, capsys):
    ctx = make_context({"execution": {"mode": "native"}, "storage": {"driver": "filesystem"}})
    (tmp_path / "storage" / "uploads").mkdir(parents=True)
    (tmp_path / "storage" / "a.txt").write_text("hi", encoding="utf-8")
    assert storage.list_files.action(_ns(long=False, sort="name"), ctx, None) == 0
    assert capsys.readouterr().out.splitlines() == ["uploads/", "a.txt"]


def test_storage_exists_reports_through_exit_code(make_context, tmp_path):
    ctx = make_context({"execution": {"mode": "native"}, "storage": {"driver": "filesystem"}})
    (tmp_path / "storage").mkdir()
    (tmp_path / "storage" / "a.txt").write_text("hi", encoding="utf-8")
    assert storage.exists.action(_ns(), ctx, "a.txt") == 0
    assert storage.exists.action(_ns(), ctx, "missing.txt") == 1
