"""Script model and the AS, AUTHCONFIG, WORKDIR and OUTPUT directives."""

from __future__ import annotations

import os
import pwd
import re
from dataclasses import dataclass, field

from .args import (
    CMD_AS,
    CMD_AUTHCONFIG,
    CMD_OUTPUT,
    CMD_WORKDIR,
    ScriptError,
    expand_env,
    is_named_param,
    make_named_param,
    map_args,
    validate_cmd_args,
    validate_raw_args,
)

_INTEGER = re.compile(r"[+-]?\d+")


@dataclass
class Command:
    """A directive of a script: its line, its name and its mapped arguments."""

    index: int
    name: str
    args: dict[str, str]


@dataclass
class Script:
    """A parsed script: directives by name, and actions in order."""

    preambles: dict[str, list[Command]] = field(default_factory=dict)
    actions: list[Command] = field(default_factory=list)


def _mapped(prefix: str, raw_args: str) -> dict[str, str]:
    try:
        return map_args(raw_args)
    except ScriptError as err:
        raise ScriptError(f"{prefix}: {err}") from err


@dataclass
class AsCommand(Command):
    """AS userid:"userid" [groupid:"groupid"]."""

    _user: pwd.struct_passwd | None = field(
        default=None, init=False, repr=False, compare=False
    )

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> AsCommand:
        validate_raw_args(CMD_AS, raw_args)
        arg_map = _mapped(CMD_AS, raw_args)
        validate_cmd_args(CMD_AS, arg_map)
        if len(arg_map) == 1:
            if "userid" not in arg_map:
                raise ScriptError("AS requires parameter userid")
            arg_map["groupid"] = str(os.getgid())
        return cls(index=index, name=CMD_AS, args=arg_map)

    @property
    def user_id(self) -> str:
        return expand_env(self.args.get("userid", ""))

    @property
    def group_id(self) -> str:
        return expand_env(self.args.get("groupid", ""))

    def credentials(self) -> tuple[int, int]:
        """Look up the user and return its (uid, gid)."""
        if self._user is None:
            user_id = self.user_id
            if _INTEGER.fullmatch(user_id):
                try:
                    self._user = pwd.getpwuid(int(user_id))
                except KeyError as err:
                    raise ScriptError(f"user: unknown userid {user_id}") from err
            else:
                try:
                    self._user = pwd.getpwnam(user_id)
                except KeyError as err:
                    raise ScriptError(f"user: unknown user {user_id}") from err
        return self._user.pw_uid, self._user.pw_gid


@dataclass
class AuthConfigCommand(Command):
    """AUTHCONFIG username:"username" private-key:"/path/to/key"."""

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> AuthConfigCommand:
        validate_raw_args(CMD_AUTHCONFIG, raw_args)
        arg_map = _mapped(CMD_AUTHCONFIG, raw_args)
        validate_cmd_args(CMD_AUTHCONFIG, arg_map)
        return cls(index=index, name=CMD_AUTHCONFIG, args=arg_map)

    @property
    def private_key(self) -> str:
        return expand_env(self.args.get("private-key", ""))

    @property
    def username(self) -> str:
        return expand_env(self.args.get("username", ""))


def _path_args(cmd_name: str, raw_args: str) -> dict[str, str]:
    validate_raw_args(CMD_OUTPUT, raw_args)
    if not is_named_param(raw_args):
        raw_args = make_named_param("path", raw_args)
    arg_map = _mapped(cmd_name, raw_args)
    validate_cmd_args(cmd_name, arg_map)
    return arg_map


@dataclass
class WorkdirCommand(Command):
    """WORKDIR /path/to/workdir, or WORKDIR path:/path/to/workdir."""

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> WorkdirCommand:
        arg_map = _path_args(CMD_WORKDIR, raw_args)
        return cls(index=index, name=CMD_WORKDIR, args=arg_map)

    @property
    def path(self) -> str:
        return expand_env(self.args.get("path", ""))


@dataclass
class OutputCommand(Command):
    """OUTPUT /path/to/output, or OUTPUT path:/path/to/output."""

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> OutputCommand:
        arg_map = _path_args(CMD_OUTPUT, raw_args)
        return cls(index=index, name=CMD_OUTPUT, args=arg_map)

    @property
    def path(self) -> str:
        return expand_env(self.args.get("path", ""))