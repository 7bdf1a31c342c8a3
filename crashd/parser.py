"""Parsing of diagnostics script text into a :class:`Script`."""

from __future__ import annotations

import logging
import os
import re
from typing import IO, Union

from .actions import CaptureCommand, CopyCommand, RunCommand
from .args import (
    CMD_AS,
    CMD_AUTHCONFIG,
    CMD_CAPTURE,
    CMD_COPY,
    CMD_ENV,
    CMD_FROM,
    CMD_KUBECONFIG,
    CMD_OUTPUT,
    CMD_RUN,
    CMD_WORKDIR,
    CMDS,
    DEFAULTS,
    ScriptError,
)
from .commands import AsCommand, AuthConfigCommand, OutputCommand, Script, WorkdirCommand
from .directives import EnvCommand, FromCommand, KubeConfigCommand

logger = logging.getLogger(__name__)

_SPACE = re.compile(r"[\t\n\f\r ]")

# directive name -> (command type, whether repeated directives accumulate)
_PREAMBLES = {
    CMD_AS: (AsCommand, False),
    CMD_ENV: (EnvCommand, True),
    CMD_FROM: (FromCommand, False),
    CMD_KUBECONFIG: (KubeConfigCommand, False),
    CMD_AUTHCONFIG: (AuthConfigCommand, False),
    CMD_OUTPUT: (OutputCommand, False),
    CMD_WORKDIR: (WorkdirCommand, False),
}

_ACTIONS = {
    CMD_CAPTURE: CaptureCommand,
    CMD_COPY: CopyCommand,
    CMD_RUN: RunCommand,
}


def _read_text(reader: Union[str, bytes, IO]) -> str:
    data = reader if isinstance(reader, (str, bytes)) else reader.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return data


def parse(reader: Union[str, bytes, IO]) -> Script:
    """Parse script text, given as a string or a readable stream.

    Raises :class:`ScriptError` for unsupported or malformed directives.
    Directives left out of the script get their default values.
    """
    logger.info("Parsing script file")
    script = Script()

    for line, raw_line in enumerate(_read_text(reader).split("\n"), start=1):
        text = raw_line.rstrip("\r").strip()
        if not text or text.startswith("#"):
            continue
        logger.debug("Parsing [%d: %s]", line, text)

        tokens = _SPACE.split(text, maxsplit=1)
        cmd_name = tokens[0]
        raw_args = tokens[1] if len(tokens) == 2 else ""

        meta = CMDS.get(cmd_name)
        if meta is None or not meta.supported:
            raise ScriptError(f"line {line}: {cmd_name} unsupported")

        if cmd_name in _PREAMBLES:
            cmd_type, accumulate = _PREAMBLES[cmd_name]
            cmd = cmd_type.from_args(line, raw_args)
            if accumulate:
                script.preambles.setdefault(cmd_name, []).append(cmd)
            else:
                script.preambles[cmd_name] = [cmd]
        elif cmd_name in _ACTIONS:
            script.actions.append(_ACTIONS[cmd_name].from_args(line, raw_args))
        else:
            raise ScriptError(f"{cmd_name} not supported")
        logger.debug("%s parsed OK", cmd_name)

    logger.debug("Done parsing")
    return enforce_defaults(script)


def enforce_defaults(script: Script) -> Script:
    """Add default AS, FROM, WORKDIR, OUTPUT and KUBECONFIG where missing."""
    logger.debug("Applying default values")
    preambles = script.preambles

    if CMD_AS not in preambles:
        as_cmd = AsCommand.from_args(0, f"userid:{os.getuid()} groupid:{os.getgid()}")
        logger.debug("AS %s:%s (as default)", as_cmd.user_id, as_cmd.group_id)
        preambles[CMD_AS] = [as_cmd]

    if CMD_FROM not in preambles:
        from_cmd = FromCommand.from_args(0, DEFAULTS.from_value)
        logger.debug("FROM %s (as default)", from_cmd.machines)
        preambles[CMD_FROM] = [from_cmd]

    if CMD_WORKDIR not in preambles:
        workdir = WorkdirCommand.from_args(0, f"path:{DEFAULTS.workdir_value}")
        logger.debug("WORKDIR %s (as default)", workdir.path)
        preambles[CMD_WORKDIR] = [workdir]

    if CMD_OUTPUT not in preambles:
        output = OutputCommand.from_args(0, f"path:{DEFAULTS.output_value}")
        logger.debug("OUTPUT %s (as default)", output.path)
        preambles[CMD_OUTPUT] = [output]

    if CMD_KUBECONFIG not in preambles:
        kubecfg = KubeConfigCommand.from_args(0, f"path:{DEFAULTS.kubeconfig_value}")
        logger.debug("KUBECONFIG %s (as default)", kubecfg.path)
        preambles[CMD_KUBECONFIG] = [kubecfg]

    return script