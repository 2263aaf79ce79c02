"""File helper utilities for the edit engine.

Common file operations for reading, backing up and atomically writing files.
These helpers raise OSError / UnicodeDecodeError; callers classify them.
"""

import contextlib
import os
import stat
import tempfile
from pathlib import Path

DEFAULT_BACKUP_SUFFIX = ".bak"


def read_file_validated(file_path: Path) -> tuple[str, bytes]:
    """Read a file and decode it as strict UTF-8.

    Line endings are preserved exactly as stored.

    Returns:
        Tuple of (decoded text, raw bytes)

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8

    """
    raw = file_path.read_bytes()
    return raw.decode("utf-8"), raw


def backup_path_for(file_path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX) -> Path:
    """Return the sibling backup path (fixed suffix appended to the full name)."""
    return file_path.with_name(file_path.name + suffix)


def atomic_write(file_path: Path, content: str | bytes) -> None:
    """Write content to file atomically using temp-file-then-rename.

    The temporary file lives in the target's directory so the final
    os.replace() is a same-filesystem rename. The target path is only ever
    touched by that rename, so it holds either its old or its new content.
    Permission bits of an existing target are carried over.

    Args:
        file_path: Path to the target file
        content: Text (encoded as UTF-8) or raw bytes

    Raises:
        OSError: If the temp file cannot be written or the rename fails.
            The temp file is removed before the error propagates.

    """
    data = content.encode("utf-8") if isinstance(content, str) else content

    try:
        mode: int | None = stat.S_IMODE(file_path.stat().st_mode)
    except FileNotFoundError:
        mode = None

    fd, temp_name = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
        suffix=".tmp",
    )
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(temp_path, mode)
        os.replace(temp_path, file_path)
    except BaseException:
        # Interrupted or failed writes must never leave the temp file behind
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def create_backup(
    file_path: Path,
    original: bytes,
    suffix: str = DEFAULT_BACKUP_SUFFIX,
) -> Path:
    """Write the original bytes of file_path to its backup path.

    One generation only: an existing backup is overwritten.

    Returns:
        The backup path

    """
    backup_path = backup_path_for(file_path, suffix)
    atomic_write(backup_path, original)
    return backup_path


def create_scratch_backup(
    file_path: Path,
    original: bytes,
    suffix: str = DEFAULT_BACKUP_SUFFIX,
) -> Path:
    """Write the original bytes to a uniquely named sibling file.

    Used when the caller did not ask for a backup, so an existing
    <file><suffix> is never touched. The caller removes the file.

    Returns:
        The scratch backup path

    """
    fd, temp_name = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
        suffix=suffix,
    )
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(original)
            handle.flush()
            os.fsync(handle.fileno())
    except BaseException:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise
    return temp_path


def split_lines(content: str) -> list[str]:
    """Split content on LF, keeping a trailing empty element like str.split."""
    return content.split("\n")
