"""
Tool installation workflow.

This module orchestrates installing a release binary:
1. Resolve the home directory and the install paths
2. Resolve the release archive for the current platform
3. Return immediately if the executable is already installed
4. Create the install directories
5. Download the archive into the temp directory
6. Verify its SHA256 against the release checksums
7. Extract it into the bin directory
8. Move the extracted binary to its final name
9. Remove every temporary file, whether the install succeeded or not

Every failure is raised as an InstallerError subclass; nothing in here exits
the process.
"""

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from insthugo.config import InstallerConfig
from insthugo.core.directory import (
    InstallPaths,
    ensure_install_structure,
    resolve_base_dir,
)
from insthugo.core.download import DownloadError, DownloadProgress, download_file
from insthugo.core.exceptions import (
    FinalizeError,
    InstallerError,
    NetworkError,
    VerificationError,
)
from insthugo.core.filesystem import extract_archive, make_executable
from insthugo.core.platform import PlatformInfo, detect_platform
from insthugo.core.verification import verify_artifact
from insthugo.installer.resolver import Artifact, resolve_artifact
from insthugo.installer.tempfiles import TempFileSet
from insthugo.release import ToolRelease, load_default_release

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of an install operation."""

    executable: Path
    """Path to the installed executable"""

    artifact: Artifact
    """Release archive that provides the executable"""

    already_installed: bool
    """Whether the executable was already present (nothing was downloaded)"""

    download_time: float = 0.0
    """Time spent downloading in seconds"""


class Installer:
    """
    Installs a tool release into ``<base>/<app_dir>/bin``.

    Example:
        >>> installer = Installer()
        >>> result = installer.install()
        >>> print(f"Hugo is at: {result.executable}")
    """

    def __init__(
        self,
        release: Optional[ToolRelease] = None,
        config: Optional[InstallerConfig] = None,
        platform_info: Optional[PlatformInfo] = None,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ):
        """
        Initialize installer.

        Args:
            release: Release to install. If None, uses config.release_file or
                the embedded Hugo release.
            config: Installer settings. If None, uses defaults.
            platform_info: Target platform. If None, detects the current one.
            progress_callback: Optional callback for download progress
        """
        self.config = config or InstallerConfig()
        if release is None:
            release = (
                ToolRelease.load(self.config.release_file)
                if self.config.release_file
                else load_default_release()
            )
        self.release = release
        self.platform_info = platform_info or detect_platform()
        self.progress_callback = progress_callback

    @property
    def display_name(self) -> str:
        return self.release.name.capitalize()

    def resolve(self) -> Tuple[InstallPaths, Artifact]:
        """
        Compute the archive to fetch and where it installs.

        Raises:
            EnvironmentResolutionError: If the home directory is needed and
                cannot be determined
        """
        artifact = resolve_artifact(
            self.platform_info.os,
            self.platform_info.arch,
            self.release.version,
            tool=self.release.name,
        )
        base_dir = resolve_base_dir(self.config.base_dir)
        paths = InstallPaths.build(
            base_dir, artifact.executable_name, app_dir=self.config.app_dir
        )
        return paths, artifact

    def install(self) -> InstallResult:
        """
        Install the release unless it is already installed.

        Returns:
            InstallResult with the executable path

        Raises:
            EnvironmentResolutionError: If the home directory is unknown
            DirectoryError: If the install directories cannot be created
            NetworkError: If the download fails
            VerificationError: If the archive checksum does not match
            ExtractionError: If the archive cannot be unpacked
            FinalizeError: If the executable cannot be moved into place
        """
        paths, artifact = self.resolve()

        if paths.executable.exists():
            logger.debug(f"{self.display_name} already installed: {paths.executable}")
            return InstallResult(
                executable=paths.executable, artifact=artifact, already_installed=True
            )

        logger.info(f"Unable to find {self.display_name} on {paths.root}")
        ensure_install_structure(paths)

        temp_files = TempFileSet()
        try:
            download_start = time.time()
            archive = self._download(artifact, paths, temp_files)
            download_time = time.time() - download_start

            self._verify(archive, artifact)
            extracted = self._extract(archive, artifact, paths, temp_files)
            self._finalize(extracted, artifact, paths, temp_files)
        finally:
            temp_files.cleanup()

        logger.info(f"{self.display_name} installed at {paths.executable}")
        return InstallResult(
            executable=paths.executable,
            artifact=artifact,
            already_installed=False,
            download_time=download_time,
        )

    def _download(
        self, artifact: Artifact, paths: InstallPaths, temp_files: TempFileSet
    ) -> Path:
        """Download the archive into the temp directory."""
        url = self.release.download_url(artifact.key, self.config.download_url)
        archive = temp_files.add(paths.temp_dir / artifact.key)

        logger.info(f"Downloading {self.display_name} from {url}")
        try:
            download_file(
                url,
                archive,
                progress_callback=self.progress_callback,
                timeout=self.config.timeout,
            )
        except DownloadError as e:
            raise NetworkError(url, str(e), hint=self._manual_install_hint(paths)) from e
        except OSError as e:
            raise InstallerError(f"Cannot write {archive}: {e}") from e

        logger.info("Downloaded.")
        return archive

    def _manual_install_hint(self, paths: InstallPaths) -> str:
        return (
            f"If this error persists, try downloading {self.display_name} from "
            f'"{self.release.releases_url}" and put the executable in '
            f"{paths.bin_dir} named '{paths.executable.name}'."
        )

    def _verify(self, archive: Path, artifact: Artifact) -> None:
        logger.info("Checking SHA256...")
        # verify_artifact also rejects an unknown key; checked here for the reason
        if artifact.key not in self.release.checksums:
            raise VerificationError(artifact.key, "no checksum registered")
        try:
            verified = verify_artifact(archive, artifact.key, self.release.checksums)
        except OSError as e:
            raise VerificationError(artifact.key, str(e)) from e
        if not verified:
            raise VerificationError(artifact.key, "checksum mismatch")
        logger.info("Checksum verified.")

    def _extract(
        self,
        archive: Path,
        artifact: Artifact,
        paths: InstallPaths,
        temp_files: TempFileSet,
    ) -> List[Path]:
        """Unpack the archive into the bin directory, tracking every output."""
        logger.info(f"Extracting {archive.name}...")
        extracted: List[Path] = []
        try:
            extract_archive(
                archive,
                paths.bin_dir,
                artifact.archive_format,
                default_name=artifact.binary_name,
                written=extracted,
            )
        finally:
            # Everything but the executable is a byproduct (README, LICENSE, ...)
            temp_files.extend(extracted)
        return extracted

    def _finalize(
        self,
        extracted: List[Path],
        artifact: Artifact,
        paths: InstallPaths,
        temp_files: TempFileSet,
    ) -> None:
        """Rename the extracted binary to the final executable path."""
        binary = _find_binary(extracted, artifact)
        if binary is None:
            raise FinalizeError(
                f"Archive {artifact.key} does not contain {artifact.binary_name}"
            )

        try:
            os.replace(binary, paths.executable)
            make_executable(paths.executable)
        except OSError as e:
            raise FinalizeError(
                f"Cannot move {binary} to {paths.executable}: {e}"
            ) from e

        temp_files.discard(binary)
        temp_files.discard(paths.executable)


def _find_binary(extracted: List[Path], artifact: Artifact) -> Optional[Path]:
    """
    Pick the executable among extracted paths.

    Prefers the archive's versioned binary name, then the plain executable
    name, then the only extracted file.
    """
    files = [p for p in extracted if p.is_file()]
    for name in (artifact.binary_name, artifact.executable_name):
        for path in files:
            if path.name == name:
                return path
    if len(files) == 1:
        return files[0]
    return None


def install(
    config: Optional[InstallerConfig] = None,
    release: Optional[ToolRelease] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Path:
    """
    Convenience function to install the tool and get its path.

    Example:
        >>> from insthugo import install
        >>> hugo = install()
        >>> subprocess.run([str(hugo), "version"])
    """
    installer = Installer(
        release=release, config=config, progress_callback=progress_callback
    )
    return installer.install().executable
