"""Running local programs and writing collected output to files."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import IO, Union

logger = logging.getLogger(__name__)

_SANITIZE = re.compile(r"[\t\n\f\r \"'/.:]")


def _record(pid: int, returncode: int) -> None:
    exit_code = returncode if returncode >= 0 else -1
    os.environ["CMD_EXITCODE"] = str(exit_code)
    os.environ["CMD_PID"] = str(pid)
    os.environ["CMD_SUCCESS"] = "true" if returncode == 0 else "false"


def cli_run(uid: int, gid: int, cmd: str, *args: str) -> bytes:
    """Run ``cmd`` with ``args`` as the given user and group.

    Returns stdout and stderr combined. The exit code, pid and success of
    the process are stored in CMD_EXITCODE, CMD_PID and CMD_SUCCESS.
    Raises :class:`subprocess.CalledProcessError` on a non-zero exit.
    """
    logger.debug("Running %s %s (uid=%d,gid=%d)", cmd, list(args), uid, gid)
    with subprocess.Popen(
        [cmd, *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        user=uid,
        group=gid,
    ) as proc:
        output, _ = proc.communicate()
    _record(proc.pid, proc.returncode)
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, [cmd, *args], output=output)
    return output


def sanitize_str(text: str) -> str:
    """Replace blanks, quotes, slashes, dots and colons with underscores."""
    return _SANITIZE.sub("_", text)


def write_file(source: Union[bytes, str, IO], file_path: str) -> None:
    """Write bytes, text or the content of a readable stream to ``file_path``."""
    data = source.read() if hasattr(source, "read") else source
    if isinstance(data, str):
        data = data.encode("utf-8")
    with open(file_path, "wb") as file:
        file.write(data)
    logger.debug("Wrote file %s", file_path)


def write_error(err: BaseException, file_path: str) -> None:
    """Write the message of ``err`` to ``file_path``."""
    write_file(str(err), file_path)