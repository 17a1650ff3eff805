from __future__ import annotations

import pytest

from devcli.errors import ConfigurationError
from devcli.executors import ExecutionMode, NativeExecutor, create_executor


@pytest.fixture
def executor(make_config, runner, logger):
    ex = create_executor(make_config({"execution": {"mode": "native"}}), runner, logger)
    assert isinstance(ex, NativeExecutor)
    return ex


def test_lifecycle_is_a_successful_noop(executor, runner):
    for res in (executor.start(["app"]), executor.stop(), executor.restart()):
        assert res.ok
    assert runner.calls == []


def test_service_commands_run_on_host(executor, runner, tmp_path):
    executor.run_in_service("app", "php", ["-v"])
    call = runner.calls[-1]
    assert call.args == ["php", "-v"]
    assert call.cwd == tmp_path.resolve()


def test_logs_explains_instead_of_failing(executor):
    res = executor.logs(["app"])
    assert res.ok
    assert "native mode" in res.stderr


def test_every_mode_answers_every_capability(make_config, runner, logger):
    for mode in ExecutionMode:
        ex = create_executor(make_config({"execution": {"mode": mode.value}}), runner, logger)
        for name in ("run", "run_in_service", "start", "stop", "restart", "status", "logs", "is_available", "get_info"):
            assert callable(getattr(ex, name))


def test_unknown_mode_lists_known_modes(make_config, runner, logger):
    with pytest.raises(ConfigurationError) as info:
        create_executor(make_config({"execution": {"mode": "k8s"}}), runner, logger)
    assert "docker, native, ssh" in str(info.value)
