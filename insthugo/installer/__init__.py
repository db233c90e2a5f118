"""
Install pipeline: archive resolution, temporary file tracking and the
orchestration that ties download, verification and extraction together.
"""

from insthugo.installer.orchestrator import Installer, InstallResult, install
from insthugo.installer.resolver import Artifact, resolve_artifact
from insthugo.installer.tempfiles import TempFileSet

__all__ = [
    "Installer",
    "InstallResult",
    "install",
    "Artifact",
    "resolve_artifact",
    "TempFileSet",
]
