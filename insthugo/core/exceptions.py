"""
Centralized exception hierarchy for insthugo.

Every failure of the install pipeline is raised as one of these types so that
a single top-level caller (the CLI) can decide how to report it and which
exit code to use. Library code never terminates the process.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class InstallerError(Exception):
    """Base exception for all insthugo errors."""

    pass


class ConfigError(InstallerError):
    """Raised when the YAML configuration file is invalid."""

    pass


class ReleaseMetadataError(InstallerError):
    """Raised when release metadata (version, checksums) cannot be loaded."""

    pass


# ============================================================================
# Install Pipeline Exceptions
# ============================================================================


class EnvironmentResolutionError(InstallerError):
    """Raised when the current user's home directory cannot be determined."""

    pass


class DirectoryError(InstallerError):
    """Raised when the install directories cannot be created."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        msg = f"Cannot create directory: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class NetworkError(InstallerError):
    """Raised when the release archive cannot be downloaded."""

    def __init__(self, url: str, reason: str = "", hint: str = ""):
        self.url = url
        self.hint = hint
        msg = f"Failed to download {url}"
        if reason:
            msg += f": {reason}"
        if hint:
            msg += f"\n{hint}"
        super().__init__(msg)


class VerificationError(InstallerError):
    """Raised when a downloaded archive fails checksum verification."""

    def __init__(self, artifact_key: str, reason: str = ""):
        self.artifact_key = artifact_key
        msg = f"Can't verify SHA256 of {artifact_key}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ExtractionError(InstallerError):
    """Raised when an archive cannot be unpacked."""

    pass


class UnsupportedArchiveFormat(ExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


class FinalizeError(InstallerError):
    """Raised when the extracted binary cannot be moved to its final path."""

    pass
