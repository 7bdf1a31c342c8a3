import os

import pytest

from crashd.args import ScriptError, expand_env
from crashd.local import capture_locally, copy_locally, exe_locally, run_locally
from crashd.parser import parse
from crashd.preambles import exe_as
from crashd.proc import sanitize_str


@pytest.fixture
def clean_cmd_env(monkeypatch):
    for name in ("CMD_RESULT", "CMD_EXITCODE", "CMD_PID", "CMD_SUCCESS"):
        monkeypatch.delenv(name, raising=False)


def _capture_file(workdir, cmd):
    return workdir / f"{sanitize_str(cmd.cmd_string)}.txt"


def _below(workdir, path):
    return workdir / os.path.relpath(path, "/")


def test_capture_single_command(tmp_path, clean_cmd_env):
    script = parse("""CAPTURE "/bin/echo 'HELLO WORLD'\"""")
    exe_locally(script, str(tmp_path))
    out = _capture_file(tmp_path, script.actions[0])
    assert out.read_text().strip() == "HELLO WORLD"


def test_capture_multiple_commands(tmp_path, clean_cmd_env):
    script = parse("CAPTURE '/bin/echo \"HELLO WORLD\"'\nCAPTURE ls .")
    exe_locally(script, str(tmp_path))
    assert _capture_file(tmp_path, script.actions[0]).read_text().strip() == "HELLO WORLD"
    assert _capture_file(tmp_path, script.actions[1]).is_file()


def test_capture_with_user_specified(tmp_path, clean_cmd_env):
    script = parse(f"AS userid:{os.getuid()} \nCAPTURE '/bin/echo \"HELLO WORLD\"'")
    exe_locally(script, str(tmp_path))
    assert _capture_file(tmp_path, script.actions[0]).read_text().strip() == "HELLO WORLD"


def test_capture_with_var_expansion(tmp_path, monkeypatch, clean_cmd_env):
    monkeypatch.setenv("msg", "unset")
    script = parse("""
    ENV msg="Hello to the World!"
    CAPTURE "/bin/echo '${msg}'\"""")
    exe_locally(script, str(tmp_path))
    content = _capture_file(tmp_path, script.actions[0]).read_text()
    assert content.strip() == "Hello to the World!"


def test_capture_as_unknown_user(tmp_path, clean_cmd_env):
    script = parse("AS userid:foo \nCAPTURE /bin/echo 'HELLO WORLD'")
    with pytest.raises(ScriptError):
        exe_locally(script, str(tmp_path))


def test_capture_bad_cli_command(tmp_path, clean_cmd_env):
    script = parse("CAPTURE ./ffoobarr")
    with pytest.raises(FileNotFoundError):
        capture_locally(exe_as(script), script.actions[0], str(tmp_path))


def test_capture_failing_command_writes_error(tmp_path, clean_cmd_env):
    script = parse("CAPTURE /bin/ls /no-such-crashd-dir")
    exe_locally(script, str(tmp_path))
    content = _capture_file(tmp_path, script.actions[0]).read_text()
    assert content.startswith("local command /bin/ls failed")


def test_run_single_command(tmp_path, clean_cmd_env):
    script = parse("""RUN "/bin/echo 'HELLO WORLD'\"""")
    exe_locally(script, str(tmp_path))
    assert expand_env("$CMD_PID") != ""
    assert expand_env("${CMD_EXITCODE}:${CMD_RESULT}") == "0:HELLO WORLD"


def test_run_multiple_commands(tmp_path, clean_cmd_env):
    script = parse("""
    RUN "/bin/echo 'HELLO WORLD'"
    RUN "/bin/echo 'FROM SPACE'"
    """)
    exe_locally(script, str(tmp_path))
    assert expand_env("${CMD_EXITCODE}:${CMD_RESULT}") == "0:FROM SPACE"


def test_run_chain_command_result(tmp_path, clean_cmd_env):
    script = parse("""
    RUN "/bin/echo 'HELLO WORLD'"
    RUN "/bin/echo '${CMD_RESULT} ALL'"
    """)
    exe_locally(script, str(tmp_path))
    assert expand_env("${CMD_RESULT}") == "HELLO WORLD ALL"
    program, args = script.actions[0].parsed_cmd()
    assert (program, list(args)) == ("/bin/echo", ["HELLO WORLD ALL ALL"])


def test_run_with_error_code(tmp_path, clean_cmd_env, monkeypatch):
    monkeypatch.setenv("CMD_RESULT", "before")
    script = parse('RUN "/bin/date --foo"')
    run_locally(exe_as(script), script.actions[0], str(tmp_path))
    assert expand_env("$CMD_EXITCODE") != "0"
    assert expand_env("$CMD_SUCCESS") != "true"
    assert expand_env("$CMD_RESULT") == "before"


def test_copy_single_file(tmp_path, clean_cmd_env):
    src = tmp_path / "src"
    src.mkdir()
    (src / "foo0.txt").write_text("HelloFoo")
    work = tmp_path / "work"
    script = parse(f"COPY {src / 'foo0.txt'}")
    exe_locally(script, str(work))
    assert _below(work, src / "foo0.txt").read_text() == "HelloFoo"


def test_copy_multiple_files(tmp_path, clean_cmd_env):
    src = tmp_path / "src"
    src.mkdir()
    files = [src / f"foo{i}.txt" for i in range(3)]
    for i, file in enumerate(files):
        file.write_text(f"HelloFoo-{i}")
    work = tmp_path / "work"
    script = parse(f"COPY {files[0]}\nCOPY {files[1]} {files[2]}")
    exe_locally(script, str(work))
    for i, file in enumerate(files):
        assert _below(work, file).read_text() == f"HelloFoo-{i}"


def test_copy_directories_and_files(tmp_path, clean_cmd_env):
    src = tmp_path / "src"
    dir0, dir1 = src / "foodir0", src / "foodir1"
    dir0.mkdir(parents=True)
    dir1.mkdir()
    (dir0 / "file-0.txt").write_text("HelloFoo-0")
    (dir1 / "file-1.txt").write_text("HelloFoo-1")
    (src / "foo2.txt").write_text("HelloFoo-2")
    work = tmp_path / "work"
    script = parse(f"COPY {dir0}\nCOPY {dir1} {src / 'foo2.txt'}")
    exe_locally(script, str(work))
    assert _below(work, dir0 / "file-0.txt").read_text() == "HelloFoo-0"
    assert _below(work, dir1 / "file-1.txt").read_text() == "HelloFoo-1"
    assert _below(work, src / "foo2.txt").read_text() == "HelloFoo-2"


def test_copy_with_var_expansion(tmp_path, monkeypatch, clean_cmd_env):
    src = tmp_path / "src"
    src.mkdir()
    for i in range(3):
        (src / f"foo{i}.txt").write_text(f"HelloFoo-{i}")
    monkeypatch.setenv("foosrc", str(src))
    monkeypatch.setenv("foofile0", "foo0.txt")
    monkeypatch.setenv("foofile1", str(src / "foo1.txt"))
    monkeypatch.setenv("foo2", "foo2")
    work = tmp_path / "work"
    script = parse("COPY ${foosrc}/${foofile0}\nCOPY ${foofile1} ${foosrc}/${foo2}.txt")
    exe_locally(script, str(work))
    for i in range(3):
        assert _below(work, src / f"foo{i}.txt").read_text() == f"HelloFoo-{i}"


def test_copy_bad_source_writes_error(tmp_path, clean_cmd_env):
    work = tmp_path / "work"
    script = parse("COPY /foo/bar.txt")
    exe_locally(script, str(work))
    content = (work / "foo" / "bar.txt").read_text()
    assert content.startswith("local file copy failed: /foo/bar.txt (may not exist)")


def test_copy_skips_path_inside_destination(tmp_path, clean_cmd_env):
    work = tmp_path / "work"
    work.mkdir()
    inner = work / "inner.txt"
    script = parse(f"COPY {inner}")
    inner.write_text("inside")
    copy_locally(exe_as(script), script.actions[0], str(work))
    assert sorted(os.listdir(work)) == ["inner.txt"]