"""Retrieval of a script's directives ahead of execution."""

from __future__ import annotations

import logging
import os

from .args import CMD_AS, CMD_AUTHCONFIG, CMD_ENV, CMD_FROM, CMD_OUTPUT, CMD_WORKDIR, ScriptError
from .commands import AsCommand, AuthConfigCommand, OutputCommand, Script, WorkdirCommand
from .directives import FromCommand

logger = logging.getLogger(__name__)


def _first(script: Script, name: str):
    cmds = script.preambles.get(name)
    if not cmds:
        raise ScriptError(f"Script missing valid {name}")
    return cmds[0]


def exe_as(script: Script) -> AsCommand:
    """Return the AS directive of the script."""
    return _first(script, CMD_AS)


def exe_auth_config(script: Script) -> AuthConfigCommand:
    """Return the AUTHCONFIG directive of the script."""
    return _first(script, CMD_AUTHCONFIG)


def exe_envs(script: Script) -> dict[str, str]:
    """Return the variables declared by all ENV directives, later ones winning.

    The variables are already in the process environment: ENV exports
    them when it is parsed.
    """
    merged: dict[str, str] = {}
    for cmd in script.preambles.get(CMD_ENV, []):
        merged.update(cmd.envs)
    return merged


def exe_from(script: Script) -> FromCommand:
    """Return the FROM directive of the script."""
    if CMD_FROM not in script.preambles:
        raise ScriptError(f"{CMD_FROM} not defined")
    return _first(script, CMD_FROM)


def _ensure_dir(path: str) -> None:
    if not os.path.exists(path):
        logger.debug("Creating directory %s", path)
        os.makedirs(path, mode=0o744, exist_ok=True)


def exe_output(script: Script) -> OutputCommand:
    """Return the OUTPUT directive, creating the output's parent directory."""
    output = _first(script, CMD_OUTPUT)
    logger.debug("Setting output to %s", output.path)
    parent = os.path.dirname(output.path)
    if parent not in ("", "."):
        _ensure_dir(parent)
    return output


def exe_workdir(script: Script) -> WorkdirCommand:
    """Return the WORKDIR directive, creating the working directory."""
    workdir = _first(script, CMD_WORKDIR)
    logger.debug("Using workdir %s", workdir.path)
    _ensure_dir(workdir.path)
    return workdir