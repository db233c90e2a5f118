"""
Install directory layout for insthugo.

Directory Structure (relative to the base directory, normally the user's home):
    .caddy/
        - bin/   : The installed executable (hugo or hugo.exe)
        - temp/  : Downloaded archives and extraction byproducts, removed
                   at the end of every install attempt
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from insthugo.core.exceptions import DirectoryError, EnvironmentResolutionError

logger = logging.getLogger(__name__)

DEFAULT_APP_DIR = ".caddy"


@dataclass(frozen=True)
class InstallPaths:
    """Filesystem locations used by one install."""

    root: Path
    """Application directory (e.g. ~/.caddy)"""

    bin_dir: Path
    """Directory holding the final executable"""

    temp_dir: Path
    """Directory holding transient downloads"""

    executable: Path
    """Final, canonical executable path"""

    @classmethod
    def build(
        cls, base_dir: Path, executable_name: str, app_dir: str = DEFAULT_APP_DIR
    ) -> "InstallPaths":
        """
        Derive every install path from a base directory.

        Example:
            >>> paths = InstallPaths.build(Path("/home/user"), "hugo")
            >>> paths.executable
            PosixPath('/home/user/.caddy/bin/hugo')
        """
        root = Path(base_dir) / app_dir
        bin_dir = root / "bin"
        return cls(
            root=root,
            bin_dir=bin_dir,
            temp_dir=root / "temp",
            executable=bin_dir / executable_name,
        )


def get_home_dir() -> Path:
    """
    Get the current user's home directory.

    Returns:
        Path: The home directory.
            - Windows: %USERPROFILE%
            - Linux/macOS: ~

    Raises:
        EnvironmentResolutionError: If the home directory cannot be determined
    """
    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if user_profile:
            return Path(user_profile)

    try:
        return Path.home()
    except (RuntimeError, KeyError, OSError) as e:
        raise EnvironmentResolutionError(
            f"Cannot determine the current user's home directory: {e}"
        ) from e


def resolve_base_dir(base_dir: Optional[Path] = None) -> Path:
    """Return ``base_dir`` if given, otherwise the user's home directory."""
    if base_dir is not None:
        return Path(base_dir).expanduser()
    return get_home_dir()


def ensure_install_structure(paths: InstallPaths) -> None:
    """
    Create the application, bin and temp directories.

    Existing directories are accepted as-is.

    Raises:
        DirectoryError: If any directory cannot be created
    """
    for directory in (paths.root, paths.bin_dir, paths.temp_dir):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(directory, str(e)) from e
        logger.debug(f"Ensured directory: {directory}")
