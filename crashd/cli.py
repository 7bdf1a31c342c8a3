"""Command line entry point of crash-diagnostics."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .args import CMD_OUTPUT, ScriptError
from .commands import OutputCommand
from .executor import Executor
from .parser import parse

VERSION = "v0.1.0-alpha.0"
GIT_SHA = ""

DEFAULT_SCRIPT_FILE = "Diagnostics.file"

logger = logging.getLogger(__name__)


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stdout`` currently is."""

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value) -> None:
        pass


def _configure_logging(debug: bool) -> None:
    pkg_logger = logging.getLogger("crashd")
    pkg_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not any(isinstance(h, _StdoutHandler) for h in pkg_logger.handlers):
        handler = _StdoutHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        pkg_logger.addHandler(handler)


def run(file: str = DEFAULT_SCRIPT_FILE, output: str = "") -> None:
    """Parse and execute the script in ``file``; ``output`` overrides OUTPUT."""
    try:
        stream = open(file, encoding="utf-8")
    except OSError as err:
        raise ScriptError(f"Unable to find script file {file}") from err
    with stream:
        script = parse(stream)

    if output:
        script.preambles[CMD_OUTPUT] = [OutputCommand.from_args(0, f"path:{output}")]

    Executor(script).execute()


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--debug",
        action="store_true",
        default=argparse.SUPPRESS,
        help="sets log level to debug",
    )

    parser = argparse.ArgumentParser(
        prog="crash-diagnostics",
        description="crash-diagnostics collects diagnostics from an unresponsive Kubernetes cluster",
        parents=[common],
    )
    parser.add_argument(
        "--version", action="version", version=f"crash-diagnostics version {VERSION}"
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run",
        parents=[common],
        help="Executes a diagnostics script file",
        description="Executes a diagnostics script and collects its output as an archive bundle",
    )
    run_parser.add_argument(
        "--file",
        default=DEFAULT_SCRIPT_FILE,
        help="the path to the diagnostics script file to run",
    )
    run_parser.add_argument(
        "--output", default="", help="the path of the generated archive file"
    )

    subparsers.add_parser(
        "version",
        parents=[common],
        help="prints the crash-diagnostics version",
        description="prints the crash-diagnostics version and other build info",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; returns the process exit status."""
    parser = _build_parser()
    opts = parser.parse_args(argv)
    _configure_logging(getattr(opts, "debug", False))

    if opts.command is None:
        parser.print_help()
        return 0

    try:
        if opts.command == "version":
            print(f"Version:{VERSION}\nGitSHA: {GIT_SHA}")
        else:
            run(opts.file, opts.output)
    except Exception as err:  # the command line reports any failure and exits
        logger.error("%s", err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())