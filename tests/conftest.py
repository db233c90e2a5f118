"""
Pytest configuration and shared fixtures for insthugo tests.
"""

import gzip
import hashlib
import logging
import stat
import zipfile
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple

import pytest

from insthugo.core.platform import PlatformInfo
from insthugo.core.verification import ChecksumRegistry
from insthugo.release import ToolRelease

# (name, data, mode); data None marks a directory entry
ZipEntry = Tuple[str, Optional[bytes], int]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))

    return fake_home


@pytest.fixture
def no_network(monkeypatch):
    """Disable network access for tests."""
    import socket

    def guard(*args, **kwargs):
        raise RuntimeError("Network access not allowed in this test")

    monkeypatch.setattr(socket, "socket", guard)


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    from insthugo.core import platform

    platform.clear_platform_cache()
    yield


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo CLI logging.basicConfig(force=True) calls after each test."""
    root = logging.getLogger()
    level = root.level
    handlers = root.handlers[:]
    yield
    root.setLevel(level)
    # pytest attaches and detaches its own capture handlers per phase
    for handler in root.handlers[:]:
        if handler not in handlers and type(handler) is logging.StreamHandler:
            root.removeHandler(handler)


@pytest.fixture
def linux_amd64() -> PlatformInfo:
    return PlatformInfo("linux", "amd64")


# ============================================================================
# Archive Builders
# ============================================================================


def _write_zip(path: Path, entries: Iterable[ZipEntry]) -> Path:
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data, mode in entries:
            info = zipfile.ZipInfo(name)
            if data is None:
                info.external_attr = (stat.S_IFDIR | mode) << 16 | 0x10
                zf.writestr(info, b"")
            else:
                info.external_attr = (stat.S_IFREG | mode) << 16
                info.compress_type = zipfile.ZIP_DEFLATED
                zf.writestr(info, data)
    return path


def _write_gzip(path: Path, payload: bytes, embedded_name: Optional[str]) -> Path:
    with open(path, "wb") as raw:
        # GzipFile stores the basename of `filename` in the FNAME header field
        with gzip.GzipFile(
            filename=embedded_name or "", mode="wb", fileobj=raw, mtime=0
        ) as gz:
            gz.write(payload)
    return path


@pytest.fixture
def make_zip() -> Callable[[Path, Iterable[ZipEntry]], Path]:
    """Factory writing a zip archive from (name, data, mode) entries."""
    return _write_zip


@pytest.fixture
def make_gzip() -> Callable[[Path, bytes, Optional[str]], Path]:
    """Factory writing a single-stream gzip file with an embedded name."""
    return _write_gzip


# ============================================================================
# Release Fixtures
# ============================================================================

TOOL_PAYLOAD = b"#!/bin/sh\necho tool 1.0\n"
TOOL_ARCHIVE = "tool_1.0_linux_amd64.tar.gz"
TOOL_URL = f"https://github.com/example/tool/releases/download/v1.0/{TOOL_ARCHIVE}"


@pytest.fixture
def tool_payload() -> bytes:
    """Executable content inside the fake tool archive."""
    return TOOL_PAYLOAD


@pytest.fixture
def tool_url() -> str:
    """Download URL of the fake tool archive."""
    return TOOL_URL


@pytest.fixture
def tool_archive(tmp_path: Path) -> bytes:
    """Bytes of a gzip archive holding the tool payload."""
    path = _write_gzip(tmp_path / TOOL_ARCHIVE, TOOL_PAYLOAD, "tool_1.0_linux_amd64")
    data = path.read_bytes()
    path.unlink()
    return data


@pytest.fixture
def make_release() -> Callable[..., ToolRelease]:
    """Factory for a fake 'tool' release with the given checksum table."""

    def factory(checksums: dict) -> ToolRelease:
        return ToolRelease(
            name="tool",
            version="1.0",
            project="example/tool",
            checksums=ChecksumRegistry(checksums),
            platforms={"linux": ["amd64"]},
        )

    return factory


@pytest.fixture
def tool_release(tool_archive: bytes, make_release) -> ToolRelease:
    """Fake release whose checksum matches ``tool_archive``."""
    return make_release({TOOL_ARCHIVE: hashlib.sha256(tool_archive).hexdigest()})
