"""
Checksum verification for downloaded release archives.

This module provides:
- SHA256 file hashing (streamed, never cached between calls)
- An immutable checksum registry keyed by archive filename
- Artifact verification that fails closed on unknown archive names
- Timing-attack resistant digest comparison
"""

import hashlib
import logging
import secrets
from pathlib import Path
from collections.abc import Iterator, Mapping
from typing import Optional

logger = logging.getLogger(__name__)

_HASH_LENGTHS = {"sha256": 64, "sha512": 128}


class HashFormatError(ValueError):
    """Exception raised when a registered digest is malformed."""

    pass


def compute_file_hash(file_path: Path, algorithm: str = "sha256") -> str:
    """
    Compute cryptographic hash of file.

    Args:
        file_path: Path to file
        algorithm: Hash algorithm ('sha256', 'sha512')

    Returns:
        Lowercase hex string of hash

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If algorithm is not supported

    Example:
        >>> compute_file_hash(Path('hugo_0.15_linux_amd64.tar.gz'))
        '32a6335bd76f72867efdec9306a8a7eb7b9498a2e0478105efa96c1febadb09b'
    """
    algorithm = algorithm.lower()
    if algorithm not in _HASH_LENGTHS:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    hasher = hashlib.new(algorithm)
    with open(file_path, "rb") as f:
        while chunk := f.read(8192):
            hasher.update(chunk)

    return hasher.hexdigest()


class ChecksumRegistry(Mapping[str, str]):
    """
    Read-only mapping of archive filename to expected SHA256 digest.

    Example:
        >>> registry = ChecksumRegistry({"hugo_0.15_linux_amd64.tar.gz": "32a6...09b"})
        >>> "hugo_0.15_linux_amd64.tar.gz" in registry
        True
    """

    def __init__(self, checksums: Mapping[str, str]):
        """
        Initialize registry.

        Args:
            checksums: Mapping of archive filename -> hex digest

        Raises:
            HashFormatError: If any digest is not a 64-character hex string
        """
        entries = {}
        for key, digest in checksums.items():
            digest = str(digest).strip().lower()
            if not _is_valid_hash_format(digest, "sha256"):
                raise HashFormatError(f"Invalid SHA256 digest for {key}: {digest!r}")
            entries[str(key)] = digest
        self._entries = entries

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ChecksumRegistry({len(self)} entries)"


def verify_artifact(
    file_path: Path, artifact_key: str, registry: Mapping[str, str]
) -> bool:
    """
    Verify a downloaded archive against its registered checksum.

    The whole file is read on every call. An archive name that has no
    registry entry never verifies.

    Args:
        file_path: Downloaded archive
        artifact_key: Archive filename used to look up the expected digest
        registry: Mapping of archive filename -> expected SHA256 digest

    Returns:
        True only if the key is registered and the digests match

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    expected: Optional[str] = registry.get(artifact_key)
    if expected is None:
        logger.warning(f"No checksum registered for {artifact_key}")
        return False

    actual = compute_file_hash(Path(file_path), "sha256")
    if not _constant_time_compare(actual, expected.lower()):
        logger.error(
            f"Checksum mismatch for {artifact_key}: expected {expected}, got {actual}"
        )
        return False

    logger.debug(f"SHA256 of {artifact_key} matches {actual}")
    return True


def _constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks."""
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def _is_valid_hash_format(hash_str: str, algorithm: str) -> bool:
    """
    Validate hash string format.

    Args:
        hash_str: Hash string to validate
        algorithm: Algorithm name

    Returns:
        True if format is valid
    """
    if not hash_str:
        return False

    if not all(c in "0123456789abcdef" for c in hash_str.lower()):
        return False

    expected_len = _HASH_LENGTHS.get(algorithm.lower())
    return expected_len is None or len(hash_str) == expected_len
