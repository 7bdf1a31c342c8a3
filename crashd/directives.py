"""The ENV, FROM and KUBECONFIG directives."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from .args import (
    CMD_ENV,
    CMD_FROM,
    CMD_KUBECONFIG,
    DEFAULTS,
    ScriptError,
    expand_env,
    is_named_param,
    make_named_param,
    map_args,
    validate_cmd_args,
    validate_raw_args,
)
from .commands import Command
from .words import word_split

_SPACE = re.compile(r"[\t\n\f\r ]")


def _mapped(prefix: str, raw_args: str) -> dict[str, str]:
    try:
        return map_args(raw_args)
    except ScriptError as err:
        raise ScriptError(f"{prefix}: {err}") from err


@dataclass
class EnvCommand(Command):
    """ENV var0=val0 ... varN=valN, or ENV vars:"var0=val0 ... varN=valN".

    Each declared variable is also set in the process environment, so later
    directives can refer to it.
    """

    _envs: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> EnvCommand:
        validate_raw_args(CMD_ENV, raw_args)
        if not is_named_param(raw_args):
            raw_args = make_named_param("vars", raw_args)
        arg_map = _mapped(CMD_ENV, raw_args)
        validate_cmd_args(CMD_ENV, arg_map)

        cmd = cls(index=index, name=CMD_ENV, args=arg_map)
        for env in word_split(arg_map.get("vars", "")):
            key, sep, raw_value = env.strip().partition("=")
            if not sep:
                raise ScriptError(f"ENV: invalid: {env}")
            values = word_split(raw_value)  # drops outer quotes
            value = expand_env(values[0]) if values else ""
            cmd._envs[key] = value
            try:
                os.environ[key] = value
            except (ValueError, OSError) as err:
                raise ScriptError(f"ENV: {err}") from err
        return cmd

    @property
    def envs(self) -> dict[str, str]:
        """The declared variables with their expanded values."""
        return self._envs


def _split_host_port(addr: str) -> tuple[str, str]:
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0:
            raise ScriptError(f"address {addr}: missing ']' in address")
        rest = addr[end + 1:]
        if not rest:
            raise ScriptError(f"address {addr}: missing port in address")
        if not rest.startswith(":"):
            raise ScriptError(f"address {addr}: unexpected character after ']'")
        host, port = addr[1:end], rest[1:]
    else:
        colon = addr.rfind(":")
        if colon < 0:
            raise ScriptError(f"address {addr}: missing port in address")
        host, port = addr[:colon], addr[colon + 1:]
        if ":" in host:
            raise ScriptError(f"address {addr}: too many colons in address")
    if "[" in host or "]" in host or "[" in port or "]" in port:
        raise ScriptError(f"address {addr}: unexpected bracket in address")
    return host, port


@dataclass(frozen=True)
class Machine:
    """A machine named in FROM, by its ``host:port`` address or ``local``."""

    address: str

    @property
    def host(self) -> str:
        return _split_host_port(self.address)[0]

    @property
    def port(self) -> str:
        return _split_host_port(self.address)[1]


@dataclass
class FromCommand(Command):
    """FROM host0:port ... hostN:port, or FROM hosts:"host0:port ..."."""

    _machines: list[Machine] = field(default_factory=list, repr=False)

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> FromCommand:
        validate_raw_args(CMD_FROM, raw_args)
        # addresses contain ':', so only an explicit "hosts:" marks a named param
        if "hosts:" not in raw_args:
            raw_args = make_named_param("hosts", raw_args)
        arg_map = _mapped(CMD_FROM, raw_args)
        validate_cmd_args(CMD_FROM, arg_map)

        machines = [
            Machine(expand_env(host))
            for host in _SPACE.split(arg_map.get("hosts", ""))
        ]
        return cls(index=index, name=CMD_FROM, args=arg_map, _machines=machines)

    @property
    def machines(self) -> list[Machine]:
        return list(self._machines)


def search_for_config(default_path: str) -> str:
    """Return ``default_path`` if given, else the default kube config path."""
    if default_path:
        return default_path
    return DEFAULTS.kubeconfig_value


@dataclass
class KubeConfigCommand(Command):
    """KUBECONFIG path/to/kubeconfig, or KUBECONFIG path:"path/to/kubeconfig"."""

    @classmethod
    def from_args(cls, index: int, raw_args: str) -> KubeConfigCommand:
        validate_raw_args(CMD_KUBECONFIG, raw_args)
        if not is_named_param(raw_args):
            raw_args = make_named_param("path", raw_args)
        arg_map = _mapped(CMD_KUBECONFIG, raw_args)
        validate_cmd_args(CMD_KUBECONFIG, arg_map)
        arg_map["path"] = search_for_config(arg_map.get("path", ""))
        return cls(index=index, name=CMD_KUBECONFIG, args=arg_map)

    @property
    def path(self) -> str:
        return expand_env(self.args.get("path", ""))