import pytest

from crashd.args import ScriptError
from crashd.commands import Script
from crashd.parser import parse
from crashd.preambles import (
    exe_as,
    exe_auth_config,
    exe_envs,
    exe_from,
    exe_output,
    exe_workdir,
)


def test_exe_as_returns_directive():
    s = parse("AS userid:foo groupid:bar")
    as_cmd = exe_as(s)
    assert as_cmd.user_id == "foo"
    assert as_cmd.group_id == "bar"


def test_exe_as_missing():
    with pytest.raises(ScriptError, match="Script missing valid AS"):
        exe_as(Script())


def test_exe_auth_config():
    s = parse("AUTHCONFIG username:tester private-key:/keys/id_rsa")
    auth = exe_auth_config(s)
    assert auth.username == "tester"
    assert auth.private_key == "/keys/id_rsa"


def test_exe_auth_config_missing():
    with pytest.raises(ScriptError, match="Script missing valid AUTHCONFIG"):
        exe_auth_config(parse("FROM local"))


def test_exe_envs_merges_declared(monkeypatch):
    for name in ("TEST_A", "TEST_B", "TEST_C"):
        monkeypatch.delenv(name, raising=False)
    s = parse("ENV vars:'TEST_A=1 TEST_B=2'\nENV 'TEST_B=3 TEST_C=${TEST_A}'")
    assert exe_envs(s) == {"TEST_A": "1", "TEST_B": "3", "TEST_C": "1"}


def test_exe_envs_none_declared():
    assert exe_envs(parse("FROM local")) == {}


def test_exe_from():
    s = parse("FROM local")
    assert [m.address for m in exe_from(s).machines] == ["local"]


def test_exe_from_not_defined():
    with pytest.raises(ScriptError, match="FROM not defined"):
        exe_from(Script())


def test_exe_from_empty():
    with pytest.raises(ScriptError, match="Script missing valid FROM"):
        exe_from(Script(preambles={"FROM": []}))


def test_exe_output_creates_parent(tmp_path):
    target = tmp_path / "crashout" / "out.tar.gz"
    s = parse(f"OUTPUT path:'{target}'")
    output = exe_output(s)
    assert output.path == str(target)
    assert (tmp_path / "crashout").is_dir()
    assert not target.exists()


def test_exe_output_relative_creates_nothing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    output = exe_output(parse(""))
    assert output.path == "out.tar.gz"
    assert list(tmp_path.iterdir()) == []


def test_exe_output_missing():
    with pytest.raises(ScriptError, match="Script missing valid OUTPUT"):
        exe_output(Script())


def test_exe_workdir_creates_dir(tmp_path):
    target = tmp_path / "foodir" / "nested"
    s = parse(f"WORKDIR '{target}'")
    workdir = exe_workdir(s)
    assert workdir.path == str(target)
    assert target.is_dir()


def test_exe_workdir_existing_dir_kept(tmp_path):
    (tmp_path / "keep.txt").write_text("HelloFoo")
    workdir = exe_workdir(parse(f"WORKDIR path:'{tmp_path}'"))
    assert workdir.path == str(tmp_path)
    assert (tmp_path / "keep.txt").read_text() == "HelloFoo"


def test_exe_workdir_missing():
    with pytest.raises(ScriptError, match="Script missing valid WORKDIR"):
        exe_workdir(Script())