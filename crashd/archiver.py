"""Creation of tar archives from files and directories."""

from __future__ import annotations

import logging
import os
import stat
import tarfile
from collections.abc import Iterator

logger = logging.getLogger(__name__)

_COMPRESSED_SUFFIXES = (".gz", ".gzip")


def _walk(path: str) -> Iterator[str]:
    """Yield ``path`` and, for a directory, everything beneath it in lexical order.

    Symbolic links are yielded but not followed.
    """
    info = os.lstat(path)
    yield path
    if stat.S_ISDIR(info.st_mode):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def tar(tar_name: str, *paths: str) -> None:
    """Archive ``paths`` into the tarball ``tar_name``.

    The archive is gzip compressed when its name ends in ``.gz`` or
    ``.gzip``. Absolute sources are stored relative to ``/``; relative
    sources keep their relative names. A source that is the archive itself,
    or the directory holding it, is skipped. A source that cannot be added
    is logged and the others are still archived.
    """
    logger.debug("Archiving %s in %s", list(paths), tar_name)
    abs_tar = os.path.abspath(tar_name)
    mode = "w:gz" if tar_name.endswith(_COMPRESSED_SUFFIXES) else "w"

    with tarfile.open(tar_name, mode) as archive:
        for path in paths:
            path = os.path.normpath(path)
            abs_path = os.path.abspath(path)
            if abs_path == abs_tar:
                logger.error("Tar file %s cannot be the source, skipping path", tar_name)
                continue
            if abs_path == os.path.dirname(abs_tar):
                logger.error(
                    "Tar file %s cannot be in source %s, skipping path", tar_name, abs_path
                )
                continue

            try:
                for file in _walk(path):
                    name = os.path.relpath(file, "/") if os.path.isabs(path) else file
                    archive.add(file, arcname=name, recursive=False)
                    logger.debug("Archived %s", file)
            except (OSError, tarfile.TarError) as err:
                logger.error("failed to add %s to archive %s: %s", path, tar_name, err)