"""
insthugo - download, verify and install the Hugo static site generator.

Usage:
    from insthugo import install

    hugo = install()  # ~/.caddy/bin/hugo
"""

from insthugo.config import InstallerConfig, load_config
from insthugo.core.exceptions import (
    DirectoryError,
    EnvironmentResolutionError,
    ExtractionError,
    FinalizeError,
    InstallerError,
    NetworkError,
    VerificationError,
)
from insthugo.installer import Installer, InstallResult, install
from insthugo.release import ToolRelease, load_default_release

__version__ = "0.1.0"

__all__ = [
    "install",
    "Installer",
    "InstallResult",
    "InstallerConfig",
    "load_config",
    "ToolRelease",
    "load_default_release",
    "InstallerError",
    "EnvironmentResolutionError",
    "DirectoryError",
    "NetworkError",
    "VerificationError",
    "ExtractionError",
    "FinalizeError",
]
