from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest

from devcli.util import CommandRunner, RunResult, format_bytes, load_env_file, resolve_path, timestamp_slug


@pytest.mark.parametrize(
    "size, text",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1 MB"),
        (5 * 1024**4, "5 TB"),
    ],
)
def test_format_bytes(size, text):
    assert format_bytes(size) == text


def test_timestamp_slug_is_filename_safe():
    assert timestamp_slug(datetime(2024, 3, 9, 7, 5, 1)) == "2024-03-09_07-05-01"


def test_resolve_path_keeps_absolute(tmp_path):
    assert resolve_path(tmp_path, "/opt/app") == Path("/opt/app").resolve()
    assert resolve_path(tmp_path, "a/b") == (tmp_path / "a" / "b").resolve()


def test_load_env_file(tmp_path):
    env = tmp_path / ".env"
    env.write_text('DB_HOST=db\n# comment\nDB_PASSWORD="s3 cret"\nEMPTY\n', encoding="utf-8")
    assert load_env_file(env) == {"DB_HOST": "db", "DB_PASSWORD": "s3 cret"}
    assert load_env_file(tmp_path / "missing.env") == {}


def test_dry_run_logs_and_skips(caplog):
    logger = logging.getLogger("devcli_tests")
    runner = CommandRunner(dry_run=True, logger=logger)
    with caplog.at_level(logging.DEBUG, logger="devcli_tests"):
        res = runner.run(["rm", "-rf", "/definitely/not"], sudo=True)
    assert res == RunResult(args=["sudo", "rm", "-rf", "/definitely/not"], returncode=0, stdout="", stderr="")
    assert "RUN sudo rm -rf /definitely/not" in caplog.text


def test_missing_binary_becomes_exit_127():
    runner = CommandRunner(dry_run=False, logger=logging.getLogger("devcli_tests"))
    res = runner.run(["devcli-binary-that-does-not-exist"])
    assert res.returncode == 127
    assert not res.ok


def test_undecodable_output_is_replaced_not_raised():
    runner = CommandRunner(dry_run=False, logger=logging.getLogger("devcli_tests"))
    res = runner.run(["printf", "\\377\\376ok"])
    assert res.ok
    assert res.stdout.endswith("ok")
    assert "\ufffd" in res.stdout


def test_binary_run_keeps_raw_stdout_and_accepts_bytes_input():
    runner = CommandRunner(dry_run=False, logger=logging.getLogger("devcli_tests"))
    payload = b"\x00\xff\xfe BLOB \x80"
    res = runner.run(["cat"], input=payload, binary=True)
    assert res.ok
    assert res.output == payload
    assert res.stdout == ""


def test_invalid_argv_becomes_a_result():
    runner = CommandRunner(dry_run=False, logger=logging.getLogger("devcli_tests"))
    res = runner.run(["echo", "nul\x00byte"])
    assert res.returncode == 126
    assert res.stderr
