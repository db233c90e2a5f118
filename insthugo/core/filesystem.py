"""
Archive extraction and file removal utilities for insthugo.

Release archives come in two containers:
- .zip: multi-entry, may contain nested directories; entry permissions are
  restored from the archive
- .gz: a single gzip stream whose header carries the original filename

Both extractors report every path they wrote so callers can decide which
outputs to keep and which to treat as temporary.
"""

import gzip
import logging
import os
import shutil
import struct
import zipfile
from pathlib import Path
from typing import List, Optional, Union

from insthugo.core.exceptions import (
    ExtractionError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"

ARCHIVE_FORMATS = ("zip", "gzip")

# gzip header flag bits (RFC 1952)
_FEXTRA = 0x04
_FNAME = 0x08


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Args:
        path: Path to check
        parent: Potential parent path

    Returns:
        True if path is under parent
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def _validate_archive_path(name: str, destination: Path) -> Path:
    """
    Resolve an archive member name under the destination.

    Prevents directory traversal attacks (e.g., names containing '../').

    Returns:
        The member's destination path

    Raises:
        InsecureArchiveError: If the name escapes the destination
    """
    member_path = destination / name
    if not is_relative_to(member_path.resolve(), destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{name}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )
    return member_path


# ============================================================================
# Archive Extraction
# ============================================================================


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    archive_format: str,
    default_name: Optional[str] = None,
    written: Optional[List[Path]] = None,
) -> List[Path]:
    """
    Extract an archive using the given container format.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        archive_format: 'zip' or 'gzip'
        default_name: Output name for gzip streams without an embedded name
        written: List to append each path to as it is written; on failure it
            still holds the partial output

    Returns:
        Every path written, in extraction order

    Raises:
        UnsupportedArchiveFormat: If archive_format is not recognized
        ExtractionError: If extraction fails
    """
    if archive_format == "zip":
        return extract_zip(archive_path, destination, written)
    elif archive_format == "gzip":
        return extract_gzip(archive_path, destination, default_name, written)
    raise UnsupportedArchiveFormat(
        f"Unsupported archive format: {archive_format}. "
        f"Supported: {', '.join(ARCHIVE_FORMATS)}"
    )


def extract_zip(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    written: Optional[List[Path]] = None,
) -> List[Path]:
    """
    Extract a ZIP archive, restoring each entry's declared permissions.

    Args:
        archive_path: Path to the .zip file
        destination: Directory to extract to (created if missing)

    Returns:
        Every file and directory written, in archive order

    Raises:
        InsecureArchiveError: If an entry escapes the destination
        ExtractionError: On the first I/O or container error

    Example:
        >>> extract_zip(Path("hugo_0.15_darwin_amd64.zip"), Path("~/.caddy/bin"))
        [PosixPath('.../hugo_0.15_darwin_amd64'), PosixPath('.../README.md')]
    """
    archive_path = Path(archive_path)
    destination = Path(destination)
    if written is None:
        written = []

    try:
        destination.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(archive_path, "r") as zf:
            for info in zf.infolist():
                target = _validate_archive_path(info.filename, destination)
                mode = _zip_entry_mode(info)

                if info.is_dir():
                    _make_dirs(target, written)
                    if mode:
                        os.chmod(target, mode)
                    continue

                _make_dirs(target.parent, written)
                written.append(target)
                with zf.open(info, "r") as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                if mode:
                    os.chmod(target, mode)
    except InsecureArchiveError:
        raise
    except (OSError, zipfile.BadZipFile) as e:
        raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e

    logger.debug(f"Extracted {len(written)} entries from {archive_path.name}")
    return written


def _make_dirs(directory: Path, created: List[Path]) -> None:
    """Create directory and missing parents, recording each one created."""
    missing = []
    while not directory.is_dir():
        missing.append(directory)
        directory = directory.parent
    for path in reversed(missing):
        path.mkdir(exist_ok=True)
        created.append(path)


def _zip_entry_mode(info: zipfile.ZipInfo) -> int:
    """Permission bits stored in a zip entry (0 when the archive has none)."""
    return (info.external_attr >> 16) & 0o7777


def extract_gzip(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    default_name: Optional[str] = None,
    written: Optional[List[Path]] = None,
) -> List[Path]:
    """
    Decompress a single-stream gzip file into the destination directory.

    The output file is named after the original filename embedded in the
    gzip header. Streams without one fall back to ``default_name`` or, failing
    that, the archive name without its ``.gz`` suffix.

    Returns:
        A one-element list with the written file

    Raises:
        InsecureArchiveError: If the embedded name escapes the destination
        ExtractionError: On I/O or container errors
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    try:
        name = read_gzip_member_name(archive_path)
        if not name:
            name = default_name or archive_path.name.removesuffix(".gz")
        # The header name is a bare filename; drop any directory components
        name = Path(name.replace("\\", "/")).name
        target = _validate_archive_path(name, destination)

        destination.mkdir(parents=True, exist_ok=True)
        if written is not None:
            written.append(target)
        with gzip.open(archive_path, "rb") as src, open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except InsecureArchiveError:
        raise
    except (OSError, EOFError, gzip.BadGzipFile) as e:
        raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e

    logger.debug(f"Decompressed {archive_path.name} to {target.name}")
    return [target]


def read_gzip_member_name(archive_path: Union[str, Path]) -> Optional[str]:
    """
    Read the original filename (FNAME) from a gzip header.

    Returns:
        The embedded name, or None if the header does not carry one

    Raises:
        gzip.BadGzipFile: If the file is not a gzip stream
    """
    with open(archive_path, "rb") as f:
        header = f.read(10)
        if len(header) < 10 or header[:2] != b"\x1f\x8b":
            raise gzip.BadGzipFile(f"Not a gzipped file: {archive_path}")
        if header[2] != 8:
            raise gzip.BadGzipFile(f"Unknown compression method: {header[2]}")

        flags = header[3]
        if flags & _FEXTRA:
            (extra_len,) = struct.unpack("<H", f.read(2))
            f.read(extra_len)
        if not flags & _FNAME:
            return None

        raw = bytearray()
        while True:
            byte = f.read(1)
            if not byte:
                raise gzip.BadGzipFile("Truncated gzip header")
            if byte == b"\x00":
                break
            raw += byte

    # RFC 1952 specifies ISO 8859-1 for the name field
    return raw.decode("latin-1") or None


# ============================================================================
# Safe File Operations
# ============================================================================


def make_executable(path: Union[str, Path]) -> None:
    """Add execute permission for everyone who can read the file (POSIX only)."""
    if IS_WINDOWS:
        return
    path = Path(path)
    mode = path.stat().st_mode
    path.chmod(mode | ((mode & 0o444) >> 2))


def remove_path(path: Union[str, Path]) -> bool:
    """
    Remove a file, or a directory if it is empty.

    Missing paths and non-empty directories are left alone.

    Returns:
        True if something was removed

    Raises:
        OSError: If removal fails for any other reason
    """
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        if any(path.iterdir()):
            logger.debug(f"Keeping non-empty directory: {path}")
            return False
        path.rmdir()
        return True
    return False
