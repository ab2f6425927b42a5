import asyncio
import errno
import logging
import os
from pathlib import Path
from uuid import uuid4

import aiofiles
import aiofiles.os

DEFAULT_CHUNK_SIZE = 1024 * 1024

# Filesystems where a hard link cannot create the destination
_LINK_UNSUPPORTED_ERRNOS = {errno.EXDEV, errno.EOPNOTSUPP, errno.ENOTSUP}


def is_plain_file_name(name: str) -> bool:
    """True if ``name`` is a bare file name that cannot escape its folder."""
    if not name or not name.strip():
        return False
    if name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    return True


def split_extension(file_name: str) -> tuple[str, str]:
    """
    Split into (stem, extension) on the last dot.

    A leading dot is part of the stem (".hidden" has no extension).
    """
    return os.path.splitext(file_name)


def build_probe_path(directory: str, prefix: str) -> Path:
    return Path(directory) / f"{prefix}{uuid4().hex}.tmp"


async def file_exists(path: Path) -> bool:
    return await aiofiles.os.path.exists(path)


async def move_file(source_path: Path, dest_path: Path) -> None:
    """
    Move a file without ever replacing an existing destination.

    The destination is created with a hard link (atomic, EEXIST if taken)
    and the source is unlinked afterwards. Across filesystems it falls back
    to an exclusive copy followed by removal of the source.

    Raises:
        FileExistsError: if ``dest_path`` already exists.
    """
    try:
        await asyncio.to_thread(os.link, source_path, dest_path)
    except OSError as e:
        if e.errno not in _LINK_UNSUPPORTED_ERRNOS:
            raise
        logging.debug(f"Hard link not possible ({e.strerror}), moving by copy: {source_path}")
        await copy_file(source_path, dest_path)

    try:
        await aiofiles.os.remove(source_path)
    except OSError:
        # The file must exist exactly once: drop the new destination
        await _discard(dest_path)
        raise


async def _discard(path: Path) -> None:
    try:
        await aiofiles.os.remove(path)
    except OSError as cleanup_error:
        logging.warning(f"Could not remove {path} after a failed move: {cleanup_error}")


async def copy_file(
    source_path: Path, dest_path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """
    Copy ``source_path`` to ``dest_path`` in chunks. Never overwrites: an
    existing destination raises FileExistsError. A partially written
    destination is removed before the error propagates.

    Returns the number of bytes copied.
    """
    bytes_copied = 0
    created = False
    try:
        async with aiofiles.open(source_path, "rb") as src:
            async with aiofiles.open(dest_path, "xb") as dst:
                created = True
                while True:
                    chunk = await src.read(chunk_size)
                    if not chunk:
                        break
                    await dst.write(chunk)
                    bytes_copied += len(chunk)
    except BaseException:
        if created:
            try:
                await aiofiles.os.remove(dest_path)
            except OSError as cleanup_error:
                logging.warning(
                    f"Could not remove partial copy {dest_path}: {cleanup_error}"
                )
        raise
    return bytes_copied


async def remove_file(path: Path) -> None:
    await aiofiles.os.remove(path)


async def write_probe_file(directory: str, prefix: str) -> Path:
    probe_path = build_probe_path(directory, prefix)
    async with aiofiles.open(probe_path, "w") as f:
        await f.write("lookout_write_test")
    return probe_path
