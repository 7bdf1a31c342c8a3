import io
import os
import re
import subprocess
import sys

import pytest

from crashd.proc import cli_run, sanitize_str, write_error, write_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CMD_EXITCODE", "CMD_PID", "CMD_SUCCESS"):
        monkeypatch.delenv(name, raising=False)


def test_sanitize_known_value():
    assert sanitize_str("/bin/echo 'HELLO WORLD'") == "_bin_echo__HELLO_WORLD_"


def test_sanitize_invariants():
    text = 'ls -l "/tmp/a.b:c"\t\n'
    result = sanitize_str(text)
    assert len(result) == len(text)
    assert not re.search(r"[\s\"'/.:]", result)
    assert sanitize_str("plainword") == "plainword"


def test_cli_run_success_output_and_env():
    out = cli_run(os.getuid(), os.getgid(), "/bin/echo", "HELLO WORLD")
    assert out.strip() == b"HELLO WORLD"
    assert os.environ["CMD_EXITCODE"] == "0"
    assert os.environ["CMD_SUCCESS"] == "true"
    assert int(os.environ["CMD_PID"]) > 0


def test_cli_run_captures_stderr():
    out = cli_run(
        os.getuid(), os.getgid(), sys.executable, "-c",
        "import sys; sys.stderr.write('oops')",
    )
    assert out == b"oops"


def test_cli_run_failure_sets_env_and_raises():
    with pytest.raises(subprocess.CalledProcessError) as info:
        cli_run(os.getuid(), os.getgid(), sys.executable, "-c", "import sys; sys.exit(3)")
    assert info.value.returncode == 3
    assert os.environ["CMD_EXITCODE"] == "3"
    assert os.environ["CMD_SUCCESS"] == "false"


def test_cli_run_missing_program():
    with pytest.raises(FileNotFoundError):
        cli_run(os.getuid(), os.getgid(), "/nonexistent/ffoobarr")


@pytest.mark.parametrize("source", [b"HelloFoo", "HelloFoo", io.BytesIO(b"HelloFoo")])
def test_write_file_round_trip(tmp_path, source):
    path = tmp_path / "out.txt"
    write_file(source, str(path))
    assert path.read_bytes() == b"HelloFoo"


def test_write_error_writes_message(tmp_path):
    path = tmp_path / "err.txt"
    err = RuntimeError("local command failed")
    write_error(err, str(path))
    assert path.read_text() == str(err)