"""The CAPTURE, RUN and COPY actions."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .args import (
    CMD_CAPTURE,
    CMD_COPY,
    CMD_RUN,
    ScriptError,
    cmd_parse,
    expand_env,
    is_named_param,
    make_named_param,
    map_args,
    validate_cmd_args,
    validate_raw_args,
)
from .commands import Command

_SPACE = re.compile(r"[\t\n\f\r ]")


def _cmd_args(cmd_name: str, raw_args: str) -> dict[str, str]:
    """Map the arguments of a command-line action and check the command."""
    validate_raw_args(cmd_name, raw_args)
    if not is_named_param(raw_args):
        raw_args = make_named_param("cmd", raw_args)
    try:
        arg_map = map_args(raw_args)
        validate_cmd_args(cmd_name, arg_map)
        cmd_parse(arg_map.get("cmd", ""))
    except ScriptError as err:
        raise ScriptError(f"{cmd_name}: {err}") from err
    return arg_map


@dataclass
class CaptureCommand(Command):
    """CAPTURE <command-string>, or CAPTURE cmd:"<command-string>".

    The output of the command is saved to a file.
    """

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> CaptureCommand:
        arg_map = _cmd_args(CMD_CAPTURE, raw_args)
        return cls(index=index, name=CMD_CAPTURE, args=arg_map)

    @property
    def cmd_string(self) -> str:
        """The raw command line, as written in the script."""
        return self.args.get("cmd", "")

    def parsed_cmd(self) -> tuple[str, list[str]]:
        """Expand variables in the command line and split it into program and arguments."""
        return cmd_parse(expand_env(self.cmd_string))


@dataclass
class RunCommand(Command):
    """RUN <command-string>, or RUN cmd:"<command-string>".

    The trimmed output of the command is kept in CMD_RESULT.
    """

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> RunCommand:
        arg_map = _cmd_args(CMD_RUN, raw_args)
        return cls(index=index, name=CMD_RUN, args=arg_map)

    @property
    def cmd_string(self) -> str:
        """The raw command line, as written in the script."""
        return self.args.get("cmd", "")

    def parsed_cmd(self) -> tuple[str, list[str]]:
        """Expand variables in the command line and split it into program and arguments."""
        return cmd_parse(expand_env(self.cmd_string))


@dataclass
class CopyCommand(Command):
    """COPY path0 path1 ... pathN, or COPY paths:"path0 path1 ... pathN"."""

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> CopyCommand:
        validate_raw_args(CMD_COPY, raw_args)
        if not is_named_param(raw_args):
            raw_args = make_named_param("paths", raw_args)
        try:
            arg_map = map_args(raw_args)
        except ScriptError as err:
            raise ScriptError(f"{CMD_COPY}: {err}") from err
        validate_cmd_args(CMD_COPY, arg_map)
        return cls(index=index, name=CMD_COPY, args=arg_map)

    @property
    def paths(self) -> list[str]:
        """The paths to copy, with variables expanded."""
        return [expand_env(path) for path in _SPACE.split(self.args.get("paths", ""))]