"""Directive metadata and the argument handling shared by all directives."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from .words import word_split

CMD_AS = "AS"
CMD_AUTHCONFIG = "AUTHCONFIG"
CMD_CAPTURE = "CAPTURE"
CMD_COPY = "COPY"
CMD_ENV = "ENV"
CMD_FROM = "FROM"
CMD_KUBECONFIG = "KUBECONFIG"
CMD_OUTPUT = "OUTPUT"
CMD_RUN = "RUN"
CMD_WORKDIR = "WORKDIR"


class ScriptError(Exception):
    """Raised when a script or one of its directives is invalid."""


@dataclass(frozen=True)
class CommandMeta:
    """Argument limits of a directive; ``max_args`` of -1 means unbounded."""

    name: str
    min_args: int
    max_args: int
    supported: bool = True


CMDS: dict[str, CommandMeta] = {
    meta.name: meta
    for meta in (
        CommandMeta(CMD_AS, 1, 2),
        CommandMeta(CMD_AUTHCONFIG, 1, 3),
        CommandMeta(CMD_CAPTURE, 1, 1),
        CommandMeta(CMD_COPY, 1, -1),
        CommandMeta(CMD_ENV, 1, -1),
        CommandMeta(CMD_FROM, 1, -1),
        CommandMeta(CMD_KUBECONFIG, 1, 1),
        CommandMeta(CMD_OUTPUT, 1, 1),
        CommandMeta(CMD_RUN, 1, 1),
        CommandMeta(CMD_WORKDIR, 1, 1),
    )
}


def _default_kubeconfig() -> str:
    kubecfg = os.environ.get("KUBECONFIG", "")
    if not kubecfg:
        kubecfg = os.path.join(os.environ.get("HOME", ""), ".kube", "config")
    return kubecfg


def _default_private_key() -> str:
    return os.path.join(os.environ.get("HOME", ""), ".ssh", "id_rsa")


@dataclass(frozen=True)
class Defaults:
    """Values used for directives a script leaves out."""

    from_value: str = "local"
    workdir_value: str = "/tmp/crashdir"
    kubeconfig_value: str = field(default_factory=_default_kubeconfig)
    auth_pk_value: str = field(default_factory=_default_private_key)
    output_value: str = "out.tar.gz"


DEFAULTS = Defaults()

_ENV_REF = re.compile(
    r"\$(?:\{(?P<brace>[^}]*)\}"
    r"|(?P<open>\{)"
    r"|(?P<special>[*#$@!?\-0-9])"
    r"|(?P<name>[A-Za-z0-9_]+))"
)


def _env_value(match: re.Match) -> str:
    name = match.group("brace") or match.group("special") or match.group("name")
    if not name:
        # "${}" or an unclosed "${": the reference is dropped
        return ""
    return os.environ.get(name, "")


def expand_env(text: str) -> str:
    """Replace ``$var`` and ``${var}`` with environment values; unset is empty."""
    return _ENV_REF.sub(_env_value, text)


def _meta(cmd_name: str) -> CommandMeta:
    meta = CMDS.get(cmd_name)
    if meta is None:
        raise ScriptError(f"{cmd_name} is unknown")
    return meta


def validate_raw_args(cmd_name: str, raw_args: str) -> None:
    """Check that a directive that needs arguments was given some."""
    meta = _meta(cmd_name)
    if not raw_args and meta.min_args > 0:
        raise ScriptError(
            f"{cmd_name} must have at least {meta.min_args} argument(s)"
        )


def validate_cmd_args(cmd_name: str, args: dict[str, str]) -> None:
    """Check the number of mapped arguments against the directive's limits."""
    meta = _meta(cmd_name)
    if len(args) < meta.min_args:
        raise ScriptError(
            f"{cmd_name} must have at least {meta.min_args} argument(s)"
        )
    if meta.max_args > -1 and len(args) > meta.max_args:
        raise ScriptError(
            f"{cmd_name} can only have up to {meta.max_args} argument(s)"
        )


def map_args(raw_args: str) -> dict[str, str]:
    """Map ``name0:"val0" name1:val1 ...`` to a dict, unquoting values."""
    arg_map: dict[str, str] = {}
    for param in word_split(raw_args):
        name, sep, raw_value = param.partition(":")
        if not sep:
            raise ScriptError(f"invalid param: {param}")
        values = word_split(raw_value)
        if not values:
            raise ScriptError(f"invalid param: {param}")
        arg_map[name] = values[0]
    return arg_map


def is_named_param(text: str) -> bool:
    """Return True if ``text`` has the form ``name:value``."""
    return ":" in text


def make_named_param(name: str, value: str) -> str:
    """Turn a bare value into a named parameter, quoting it if needed."""
    value = value.strip()
    if not value:
        raise ScriptError(f"missing value for {name}")
    if value[0] in "\"'":
        return f"{name}:{value}"
    return f"{name}:'{value}'"


def cmd_parse(cmd_str: str) -> tuple[str, list[str]]:
    """Split a command line into the program and its arguments."""
    words = word_split(cmd_str)
    if not words:
        raise ScriptError("empty command")
    return words[0], words[1:]