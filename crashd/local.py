"""Execution of script actions on the local machine."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess

from .actions import CaptureCommand, CopyCommand, RunCommand
from .commands import AsCommand, Script
from .preambles import exe_as
from .proc import cli_run, sanitize_str, write_error, write_file

logger = logging.getLogger(__name__)

_CP_NAME = "cp"
_CP_ARGS = "-Rp"

_CLI_ERRORS = (subprocess.SubprocessError, OSError)


def _look_path(name: str) -> str:
    found = shutil.which(name)
    if found is None:
        raise FileNotFoundError(f'exec: "{name}": executable file not found in $PATH')
    return found


def _join_path(*parts: str) -> str:
    """Join path parts, keeping absolute later parts beneath the earlier ones."""
    joined = "/".join(part for part in parts if part)
    if not joined:
        return ""
    cleaned = os.path.normpath(joined)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _ensure_parent(target_path: str) -> None:
    target_dir = os.path.dirname(target_path)
    if target_dir and not os.path.exists(target_dir):
        os.makedirs(target_dir, mode=0o744, exist_ok=True)
        logger.debug("Created dir %s", target_dir)


def _is_inside(dest: str, path: str) -> bool:
    if os.path.isabs(path) != os.path.isabs(dest):
        return False
    return not os.path.relpath(path, dest).startswith("..")


def exe_locally(script: Script, workdir: str) -> None:
    """Run every action of the script on this machine, collecting into ``workdir``."""
    as_cmd = exe_as(script)
    for action in script.actions:
        if isinstance(action, CopyCommand):
            copy_locally(as_cmd, action, workdir)
        elif isinstance(action, CaptureCommand):
            capture_locally(as_cmd, action, workdir)
        elif isinstance(action, RunCommand):
            run_locally(as_cmd, action, workdir)
        else:
            logger.error("Unsupported command %s", type(action).__name__)


def capture_locally(as_cmd: AsCommand, cmd: CaptureCommand, workdir: str) -> None:
    """Run a CAPTURE command and save its output, or its failure, to a file."""
    cmd_str = cmd.cmd_string
    cli_cmd, cli_args = cmd.parsed_cmd()
    _look_path(cli_cmd)
    uid, gid = as_cmd.credentials()

    file_path = os.path.join(workdir, f"{sanitize_str(cmd_str)}.txt")
    logger.debug("Capturing local command [%s] -into-> %s", cmd_str, file_path)

    try:
        output = cli_run(uid, gid, cli_cmd, *cli_args)
    except _CLI_ERRORS as err:
        cli_err = RuntimeError(f"local command {cli_cmd} failed: {err}")
        logger.warning("%s", cli_err)
        write_error(cli_err, file_path)
        return
    write_file(output, file_path)


def run_locally(as_cmd: AsCommand, cmd: RunCommand, workdir: str) -> None:
    """Run a RUN command and keep its trimmed output in CMD_RESULT.

    A failing command is logged, not raised.
    """
    cmd_str = cmd.cmd_string
    cli_cmd, cli_args = cmd.parsed_cmd()
    _look_path(cli_cmd)
    uid, gid = as_cmd.credentials()

    logger.debug("Running command [%s]", cmd_str)
    try:
        output = cli_run(uid, gid, cli_cmd, *cli_args)
    except _CLI_ERRORS as err:
        logger.error("Command failed: [%s]: %s", cli_cmd, err)
        return
    os.environ["CMD_RESULT"] = output.decode("utf-8", errors="replace").strip()


def copy_locally(as_cmd: AsCommand, cmd: CopyCommand, dest: str) -> None:
    """Copy each path of a COPY command beneath ``dest``.

    The first failing copy is recorded in a file in place of the copy and
    ends the command.
    """
    _look_path(_CP_NAME)
    uid, gid = as_cmd.credentials()

    for path in cmd.paths:
        if _is_inside(dest, path):
            logger.error("%s path %s cannot be relative to %s", cmd.name, path, dest)
            continue

        logger.debug("Copying %s to %s", path, dest)
        target_path = _join_path(dest, path)
        _ensure_parent(target_path)

        try:
            cli_run(uid, gid, _CP_NAME, _CP_ARGS, path, target_path)
        except _CLI_ERRORS as err:
            cli_err = RuntimeError(f"local file copy failed: {path} (may not exist): {err}")
            logger.warning("%s", cli_err)
            write_error(cli_err, target_path)
            return