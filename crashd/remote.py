"""Execution of script actions on remote machines over SSH."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess

import paramiko

from .actions import CaptureCommand, CopyCommand, RunCommand
from .args import ScriptError
from .commands import AsCommand, Script
from .directives import Machine
from .local import _ensure_parent, _join_path
from .preambles import exe_as, exe_auth_config
from .proc import cli_run, sanitize_str, write_error, write_file
from .sshclient import SSHClient

logger = logging.getLogger(__name__)

_SCP_NAME = "scp"
_SCP_ARGS = "-rpq"

_SSH_ERRORS = (paramiko.SSHException, OSError, EOFError)
_CLI_ERRORS = (subprocess.SubprocessError, OSError)


def exe_remotely(script: Script, machine: Machine, workdir: str) -> None:
    """Run every action of the script on ``machine``, collecting into ``workdir``."""
    as_cmd = exe_as(script)
    auth_cmd = exe_auth_config(script)

    user = auth_cmd.username or as_cmd.user_id
    priv_key = auth_cmd.private_key
    if not priv_key:
        raise ScriptError("missing private key file")

    for action in script.actions:
        if isinstance(action, CopyCommand):
            copy_remotely(user, priv_key, machine, as_cmd, action, workdir)
        elif isinstance(action, CaptureCommand):
            capture_remotely(user, priv_key, machine.address, action, workdir)
        elif isinstance(action, RunCommand):
            run_remotely(user, priv_key, machine.address, action, workdir)
        else:
            logger.error("Unsupported command %s", type(action).__name__)


def _connect(user: str, priv_key: str, host_addr: str) -> SSHClient:
    sshc = SSHClient(user, priv_key)
    sshc.dial(host_addr)
    return sshc


def capture_remotely(
    user: str, priv_key: str, host_addr: str, cmd: CaptureCommand, workdir: str
) -> None:
    """Run a CAPTURE command over SSH and save its output, or its failure, to a file."""
    with _connect(user, priv_key, host_addr) as sshc:
        cmd_str = cmd.cmd_string
        cli_cmd, cli_args = cmd.parsed_cmd()

        file_path = os.path.join(workdir, f"{sanitize_str(cmd_str)}.txt")
        logger.debug("Capturing remote command [%s] -into-> %s", cmd_str, file_path)

        try:
            output = sshc.run(cli_cmd, *cli_args)
        except _SSH_ERRORS as err:
            ssh_err = RuntimeError(f"remote command {cli_cmd} failed: {err}")
            logger.warning("%s", ssh_err)
            write_error(ssh_err, file_path)
            return
        write_file(output, file_path)


def run_remotely(
    user: str, priv_key: str, host_addr: str, cmd: RunCommand, workdir: str
) -> None:
    """Run a RUN command over SSH and keep its trimmed output in CMD_RESULT.

    Empty output removes CMD_RESULT; a failing command is logged, not raised.
    """
    with _connect(user, priv_key, host_addr) as sshc:
        cmd_str = cmd.cmd_string
        cli_cmd, cli_args = cmd.parsed_cmd()
        logger.debug("Running remote command: %s", cmd_str)

        try:
            output = sshc.run(cli_cmd, *cli_args)
        except _SSH_ERRORS as err:
            logger.error("Command failed: %s: %s", cli_cmd, err)
            return

    result = output.decode("utf-8", errors="replace").strip()
    if not result:
        os.environ.pop("CMD_RESULT", None)
        return
    os.environ["CMD_RESULT"] = result


def copy_remotely(
    user: str,
    priv_key: str,
    machine: Machine,
    as_cmd: AsCommand,
    cmd: CopyCommand,
    dest: str,
) -> None:
    """Copy each path of a COPY command from ``machine`` beneath ``dest`` with scp.

    The first failing copy is recorded in a file in place of the copy and
    ends the command.
    """
    if shutil.which(_SCP_NAME) is None:
        raise FileNotFoundError(f'remote copy: exec: "{_SCP_NAME}": executable file not found in $PATH')

    logger.debug("Entering remote COPY command: %s", cmd.args)
    try:
        host = machine.host
        port = machine.port
    except ScriptError as err:
        raise ScriptError(f"COPY: {err}") from err

    uid, gid = as_cmd.credentials()

    for path in cmd.paths:
        remote_path = f"{user}@{host}:{path}"
        logger.debug("Copying %s to %s", remote_path, dest)

        target_path = _join_path(dest, path)
        _ensure_parent(target_path)

        args = [
            _SCP_ARGS,
            "-o StrictHostKeyChecking=no",
            "-P",
            port,
            "-i",
            priv_key,
            remote_path,
            target_path,
        ]
        try:
            cli_run(uid, gid, _SCP_NAME, *args)
        except _CLI_ERRORS as err:
            cli_err = RuntimeError(f"scp command failed: {err}")
            logger.warning("%s", cli_err)
            write_error(cli_err, target_path)
            return
        logger.debug("Remote copy succeeded: %s", remote_path)