"""File-system primitives for cache entries.

One entry is one regular file directly inside the cache directory, named
after its query name. This module owns every touch of the disk:

* :func:`entry_path` -- map a query name to its file.
* :func:`read_entry` -- read an entry's bytes, ``None`` when absent.
* :func:`write_entry` -- atomic temp-file-then-rename write.
* :func:`remove_entry` -- delete an entry, tolerating absence.
* :func:`entry_size` -- size of a present entry.

Every :class:`OSError` other than "file not found" is re-raised as
:class:`~querycache.exceptions.StorageError`.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from querycache.exceptions import StorageError

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".tmp"


def entry_path(cache_path: Path, name: str) -> Path:
    """Return the file that stores the entry for *name*."""
    return Path(cache_path) / name


def ensure_directory(cache_path: Path) -> None:
    """Create *cache_path* and its parents if missing.

    Raises:
        StorageError: If the directory cannot be created, or a non-directory
            already occupies the path.
    """
    try:
        Path(cache_path).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(f"Cannot create cache directory {cache_path}: {exc}") from exc


def read_entry(path: Path) -> Optional[bytes]:
    """Read the full contents of an entry file.

    Args:
        path: Entry file path.

    Returns:
        The file's bytes, or ``None`` when no regular file exists at *path*
        (including when it vanished after an existence check).

    Raises:
        StorageError: If the file exists but cannot be read.
    """
    if not path.is_file():
        return None
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise StorageError(f"Cannot read cache entry {path}: {exc}") from exc


def write_entry(path: Path, data: bytes) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems; concurrent readers
    see either the previous file or the complete new one. On any failure the
    temp file is removed and no partial entry is left behind.

    Raises:
        StorageError: If the temp file cannot be written or renamed.
    """
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=_TMP_SUFFIX,
            delete=False,
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException as exc:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        if isinstance(exc, OSError):
            raise StorageError(f"Cannot write cache entry {path}: {exc}") from exc
        raise
    logger.debug("Wrote %d bytes to %s", len(data), path)


def remove_entry(path: Path) -> bool:
    """Delete an entry file.

    Returns:
        ``True`` if a file was removed, ``False`` if none existed.

    Raises:
        StorageError: If the file exists but cannot be deleted.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise StorageError(f"Cannot delete cache entry {path}: {exc}") from exc
    return True


def entry_size(path: Path) -> Optional[int]:
    """Return the size in bytes of a present entry, or ``None`` when absent."""
    try:
        if not path.is_file():
            return None
        return path.stat().st_size
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise StorageError(f"Cannot stat cache entry {path}: {exc}") from exc
