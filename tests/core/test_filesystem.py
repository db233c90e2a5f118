"""
Unit tests for archive extraction and file removal.

Tests cover:
- ZIP extraction with nested directories and permission bits
- gzip extraction using the embedded original filename
- Format dispatch
- Path traversal protection
- Error propagation
"""

import gzip
import os
import stat
import zipfile

import pytest

from insthugo.core.exceptions import (
    ExtractionError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)
from insthugo.core.filesystem import (
    extract_archive,
    extract_gzip,
    extract_zip,
    is_relative_to,
    make_executable,
    read_gzip_member_name,
    remove_path,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")


class TestExtractZip:
    """Test ZIP extraction."""

    def test_nested_entries(self, tmp_path, make_zip):
        """Test nested directories reproduce the same relative paths."""
        archive = make_zip(
            tmp_path / "nested.zip",
            [
                ("pkg/", None, 0o755),
                ("pkg/bin/", None, 0o755),
                ("pkg/bin/tool", b"binary", 0o755),
                ("pkg/docs/guide/intro.md", b"# Intro", 0o644),
                ("README.md", b"readme", 0o644),
            ],
        )
        target = tmp_path / "out"

        written = extract_zip(archive, target)

        assert (target / "pkg" / "bin" / "tool").read_bytes() == b"binary"
        assert (target / "pkg" / "docs" / "guide" / "intro.md").read_text() == "# Intro"
        assert (target / "README.md").read_text() == "readme"
        assert target / "pkg" / "docs" / "guide" / "intro.md" in written
        assert target / "pkg" / "docs" / "guide" in written
        assert target / "pkg" in written

    @posix_only
    def test_preserves_permissions(self, tmp_path, make_zip):
        """Test executable bits survive extraction and plain files stay plain."""
        archive = make_zip(
            tmp_path / "modes.zip",
            [
                ("bin/", None, 0o750),
                ("bin/tool", b"x", 0o755),
                ("LICENSE.md", b"license", 0o644),
            ],
        )
        target = tmp_path / "out"

        extract_zip(archive, target)

        tool_mode = stat.S_IMODE((target / "bin" / "tool").stat().st_mode)
        license_mode = stat.S_IMODE((target / "LICENSE.md").stat().st_mode)
        dir_mode = stat.S_IMODE((target / "bin").stat().st_mode)
        assert tool_mode == 0o755
        assert license_mode == 0o644
        assert dir_mode == 0o750
        assert os.access(target / "bin" / "tool", os.X_OK)

    def test_existing_target_directory_not_reported(self, tmp_path, make_zip):
        """Test only directories created by extraction are reported."""
        target = tmp_path / "out"
        (target / "pkg").mkdir(parents=True)
        archive = make_zip(tmp_path / "a.zip", [("pkg/file.txt", b"data", 0o644)])

        written = extract_zip(archive, target)

        assert written == [target / "pkg" / "file.txt"]

    def test_path_traversal_blocked(self, tmp_path):
        """Test entries escaping the target raise InsecureArchiveError."""
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.txt", b"pwned")

        with pytest.raises(InsecureArchiveError):
            extract_zip(archive, tmp_path / "out")

        assert not (tmp_path / "escape.txt").exists()

    def test_corrupt_archive(self, tmp_path):
        """Test a non-zip file raises ExtractionError."""
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"not a zip file")

        with pytest.raises(ExtractionError, match="Failed to extract"):
            extract_zip(archive, tmp_path / "out")

    def test_missing_archive(self, tmp_path):
        """Test filesystem errors are chained to the original OSError."""
        with pytest.raises(ExtractionError) as exc_info:
            extract_zip(tmp_path / "missing.zip", tmp_path / "out")

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_failure_keeps_entries_written_so_far(self, tmp_path, make_zip):
        """Test entries extracted before a failure are reported to the caller."""
        # "tool" is written as a file, so "tool/README" cannot get its parent
        archive = make_zip(
            tmp_path / "a.zip",
            [("tool", b"binary", 0o755), ("tool/README", b"docs", 0o644)],
        )
        target = tmp_path / "out"
        written = []

        with pytest.raises(ExtractionError):
            extract_zip(archive, target, written=written)

        assert written == [target / "tool"]


class TestExtractGzip:
    """Test gzip extraction."""

    def test_uses_embedded_name(self, tmp_path, make_gzip):
        """Test output is named after the header's original filename."""
        payload = b"\x7fELF fake hugo binary" * 100
        archive = make_gzip(tmp_path / "hugo_0.15_linux_amd64.tar.gz", payload, "hugo")
        target = tmp_path / "bin"

        written = extract_gzip(archive, target)

        assert written == [target / "hugo"]
        assert (target / "hugo").read_bytes() == payload
        assert sorted(p.name for p in target.iterdir()) == ["hugo"]

    def test_fallback_to_default_name(self, tmp_path, make_gzip):
        """Test streams without an embedded name use default_name."""
        archive = make_gzip(tmp_path / "tool.tar.gz", b"data", None)

        written = extract_gzip(archive, tmp_path / "out", default_name="tool_1.0")

        assert written == [tmp_path / "out" / "tool_1.0"]

    def test_fallback_to_archive_name(self, tmp_path, make_gzip):
        archive = make_gzip(tmp_path / "tool.gz", b"data", None)

        written = extract_gzip(archive, tmp_path / "out")

        assert written == [tmp_path / "out" / "tool"]

    def test_embedded_name_directories_stripped(self, tmp_path, make_gzip):
        """Test directory components in the header name are ignored."""
        archive = make_gzip(tmp_path / "a.gz", b"data", "x")
        raw = archive.read_bytes()
        # The name field starts right after the fixed 10-byte header
        assert raw[10:12] == b"x\x00"
        archive.write_bytes(raw[:10] + b"../x" + raw[11:])

        written = extract_gzip(archive, tmp_path / "out")

        assert written == [tmp_path / "out" / "x"]
        assert not (tmp_path / "x").exists()

    def test_not_gzip(self, tmp_path):
        """Test a non-gzip file raises ExtractionError."""
        archive = tmp_path / "plain.tar.gz"
        archive.write_bytes(b"plain text")

        with pytest.raises(ExtractionError):
            extract_gzip(archive, tmp_path / "out")

    def test_truncated_stream(self, tmp_path, make_gzip):
        """Test a truncated stream raises ExtractionError."""
        archive = make_gzip(tmp_path / "t.gz", os.urandom(4096), "t")
        archive.write_bytes(archive.read_bytes()[:-100])

        with pytest.raises(ExtractionError):
            extract_gzip(archive, tmp_path / "out")

    def test_truncated_stream_reports_partial_output(self, tmp_path, make_gzip):
        """Test the partially written file is still reported on failure."""
        archive = make_gzip(tmp_path / "t.gz", os.urandom(4096), "t")
        archive.write_bytes(archive.read_bytes()[:-100])
        written = []

        with pytest.raises(ExtractionError):
            extract_gzip(archive, tmp_path / "out", written=written)

        assert written == [tmp_path / "out" / "t"]
        assert written[0].exists()


class TestReadGzipMemberName:
    """Test gzip header parsing."""

    def test_reads_name(self, tmp_path, make_gzip):
        archive = make_gzip(tmp_path / "h.gz", b"data", "hugo")
        assert read_gzip_member_name(archive) == "hugo"

    def test_no_name(self, tmp_path, make_gzip):
        archive = make_gzip(tmp_path / "h.gz", b"data", None)
        assert read_gzip_member_name(archive) is None

    def test_bad_magic(self, tmp_path):
        path = tmp_path / "x.gz"
        path.write_bytes(b"PK\x03\x04" + b"\x00" * 20)
        with pytest.raises(gzip.BadGzipFile):
            read_gzip_member_name(path)


class TestExtractArchive:
    """Test format dispatch."""

    def test_dispatch_zip(self, tmp_path, make_zip):
        archive = make_zip(tmp_path / "a.zip", [("tool", b"zip", 0o755)])
        assert extract_archive(archive, tmp_path / "out", "zip") == [
            tmp_path / "out" / "tool"
        ]

    def test_dispatch_gzip(self, tmp_path, make_gzip):
        archive = make_gzip(tmp_path / "a.tar.gz", b"gz", "tool")
        assert extract_archive(archive, tmp_path / "out", "gzip") == [
            tmp_path / "out" / "tool"
        ]

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(UnsupportedArchiveFormat, match="Unsupported archive format"):
            extract_archive(tmp_path / "a.rar", tmp_path / "out", "rar")


class TestFileOperations:
    """Test helpers used when finalizing and cleaning up."""

    def test_is_relative_to(self, tmp_path):
        assert is_relative_to(tmp_path / "a" / "b", tmp_path)
        assert not is_relative_to(tmp_path, tmp_path / "a")

    @posix_only
    def test_make_executable(self, tmp_path):
        path = tmp_path / "tool"
        path.write_bytes(b"x")
        path.chmod(0o644)

        make_executable(path)

        assert stat.S_IMODE(path.stat().st_mode) == 0o755

    def test_remove_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")
        assert remove_path(path) is True
        assert not path.exists()

    def test_remove_missing(self, tmp_path):
        assert remove_path(tmp_path / "missing") is False

    def test_remove_empty_directory(self, tmp_path):
        path = tmp_path / "empty"
        path.mkdir()
        assert remove_path(path) is True
        assert not path.exists()

    def test_keep_non_empty_directory(self, tmp_path):
        path = tmp_path / "full"
        path.mkdir()
        (path / "keep").write_text("x")
        assert remove_path(path) is False
        assert path.exists()
