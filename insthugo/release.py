"""
Release metadata for the tool being installed.

A release names the tool, its version, the GitHub project that publishes it,
the (OS, arch) pairs it ships for and the SHA256 of every archive. The
default Hugo release is embedded as ``data/hugo.json``; a different file can
be supplied to install another tool or version.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from insthugo.core.exceptions import ReleaseMetadataError
from insthugo.core.verification import ChecksumRegistry, HashFormatError

logger = logging.getLogger(__name__)

GITHUB_URL = "https://github.com"


@dataclass(frozen=True)
class ToolRelease:
    """Metadata for one published version of a tool."""

    name: str
    """Tool identifier, used in archive names and as the executable name"""

    version: str
    """Release version without the leading 'v'"""

    project: str
    """GitHub project publishing the release (owner/repo)"""

    checksums: ChecksumRegistry
    """Expected SHA256 per archive filename"""

    platforms: Dict[str, List[str]] = field(default_factory=dict)
    """Supported architectures per operating system"""

    def __post_init__(self):
        if not self.name:
            raise ReleaseMetadataError("Release name cannot be empty")
        if not self.version:
            raise ReleaseMetadataError("Release version cannot be empty")
        if self.project.count("/") != 1:
            raise ReleaseMetadataError(
                f"Project must look like 'owner/repo', got {self.project!r}"
            )

    @property
    def releases_url(self) -> str:
        """Human-facing page listing every release of the project."""
        return f"{GITHUB_URL}/{self.project}/releases/"

    @property
    def download_base_url(self) -> str:
        return f"{GITHUB_URL}/{self.project}/releases/download/v{self.version}"

    def download_url(self, artifact_key: str, base_url: Optional[str] = None) -> str:
        """
        Get the URL of an archive.

        Args:
            artifact_key: Archive filename
            base_url: Optional mirror replacing the GitHub download location

        Example:
            >>> release.download_url("hugo_0.15_linux_amd64.tar.gz")
            'https://github.com/spf13/hugo/releases/download/v0.15/hugo_0.15_linux_amd64.tar.gz'
        """
        base = (base_url or self.download_base_url).rstrip("/")
        return f"{base}/{artifact_key}"

    def supported_platforms(self) -> List[Tuple[str, str]]:
        """List every supported (os, arch) pair."""
        return [
            (os_name, arch)
            for os_name, arches in sorted(self.platforms.items())
            for arch in arches
        ]

    @classmethod
    def from_dict(cls, data: dict) -> "ToolRelease":
        """
        Build a release from parsed metadata.

        Raises:
            ReleaseMetadataError: If required fields are missing or invalid
        """
        missing = [k for k in ("name", "version", "project", "checksums") if k not in data]
        if missing:
            raise ReleaseMetadataError(
                f"Release metadata is missing required fields: {', '.join(missing)}"
            )

        try:
            checksums = ChecksumRegistry(data["checksums"])
        except (HashFormatError, AttributeError) as e:
            raise ReleaseMetadataError(f"Invalid checksum table: {e}") from e

        return cls(
            name=str(data["name"]),
            version=str(data["version"]),
            project=str(data["project"]),
            checksums=checksums,
            platforms={
                str(os_name): [str(a) for a in arches]
                for os_name, arches in data.get("platforms", {}).items()
            },
        )

    @classmethod
    def load(cls, path: Path) -> "ToolRelease":
        """
        Load release metadata from a JSON file.

        Raises:
            ReleaseMetadataError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ReleaseMetadataError(
                f"Invalid JSON in release metadata: {e}\nFile: {path}"
            ) from e
        except OSError as e:
            raise ReleaseMetadataError(
                f"Failed to load release metadata: {e}\nFile: {path}"
            ) from e

        if not isinstance(data, dict):
            raise ReleaseMetadataError(f"Release metadata must be an object: {path}")

        release = cls.from_dict(data)
        logger.debug(
            f"Loaded {release.name} {release.version} with "
            f"{len(release.checksums)} checksums from {path}"
        )
        return release


def default_release_path() -> Path:
    """Path to the embedded Hugo release metadata."""
    return Path(__file__).parent / "data" / "hugo.json"


def load_default_release() -> ToolRelease:
    """Load the embedded Hugo release."""
    return ToolRelease.load(default_release_path())
