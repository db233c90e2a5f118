"""
Release archive naming.

Maps a platform and version onto the archive filename the release publishes,
the container format to expect and the names of the executable before and
after installation.
"""

from dataclasses import dataclass

ZIP_SUFFIX = ".zip"
GZIP_SUFFIX = ".tar.gz"

# Platforms whose releases are published as zip files; everything else is gzip
_ZIP_PLATFORMS = ("darwin", "windows")

# Qualifier appended to the legacy 32-bit Windows build
_WINDOWS_32BIT_QUALIFIER = "_32-bit-only"


@dataclass(frozen=True)
class Artifact:
    """A release archive and the executable it contains."""

    key: str
    """Archive filename, also the checksum registry key"""

    archive_format: str
    """'zip' or 'gzip'"""

    binary_name: str
    """Name of the executable as extracted from the archive"""

    executable_name: str
    """Name of the installed executable"""

    @property
    def suffix(self) -> str:
        return ZIP_SUFFIX if self.archive_format == "zip" else GZIP_SUFFIX


def resolve_artifact(os_name: str, arch: str, version: str, tool: str = "hugo") -> Artifact:
    """
    Resolve the release archive for a platform.

    Never fails: an unsupported platform yields a name with no registered
    checksum, which verification rejects.

    Args:
        os_name: Operating system in release naming ('linux', 'darwin', ...)
        arch: Architecture in release naming ('amd64', '386', 'arm', ...)
        version: Release version without the leading 'v'
        tool: Tool identifier

    Returns:
        Artifact describing the archive

    Example:
        >>> resolve_artifact("windows", "386", "0.15").key
        'hugo_0.15_windows_386_32-bit-only.zip'
        >>> resolve_artifact("linux", "amd64", "0.15").binary_name
        'hugo_0.15_linux_amd64'
    """
    base = f"{tool}_{version}_{os_name}_{arch}"
    executable_name = tool

    if os_name == "windows":
        if arch == "386":
            base += _WINDOWS_32BIT_QUALIFIER
        return Artifact(
            key=base + ZIP_SUFFIX,
            archive_format="zip",
            binary_name=base + ".exe",
            executable_name=executable_name + ".exe",
        )

    if os_name in _ZIP_PLATFORMS:
        return Artifact(
            key=base + ZIP_SUFFIX,
            archive_format="zip",
            binary_name=base,
            executable_name=executable_name,
        )

    return Artifact(
        key=base + GZIP_SUFFIX,
        archive_format="gzip",
        binary_name=base,
        executable_name=executable_name,
    )
