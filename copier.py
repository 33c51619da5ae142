"""Streaming file copy for audio that is mirrored unchanged."""

import logging
import shutil
from pathlib import Path

from errors import CopyFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def copy_file(source: Path, destination: Path, chunk_size: int = CHUNK_SIZE) -> None:
    """Stream-copy source to destination, creating parent directories.

    A copy that fails partway leaves the partial destination in place.

    Raises:
        CopyFailed: If the source cannot be read or the destination written
    """
    try:
        src = open(source, 'rb')
    except OSError as e:
        raise CopyFailed(f"unable to open source file: {e}", source, destination) from e

    with src:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CopyFailed(
                f"unable to create destination directory: {e}", source, destination
            ) from e

        try:
            with open(destination, 'wb') as dest:
                shutil.copyfileobj(src, dest, chunk_size)
        except OSError as e:
            raise CopyFailed(
                f"unable to copy source to destination: {e}", source, destination
            ) from e

    logger.debug(f"Copied {source} -> {destination}")
