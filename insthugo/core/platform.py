"""
Platform detection for insthugo.

Release archives are named after the Go toolchain's GOOS/GOARCH values
(``darwin``, ``windows``, ``linux``, ``freebsd``; ``amd64``, ``386``, ``arm``),
so this module normalizes what the Python runtime reports into that
vocabulary.

Usage:
    from insthugo.core.platform import detect_platform

    info = detect_platform()
    print(info.platform_string())  # e.g. 'linux_amd64'
"""

import functools
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Operating system and CPU architecture of a machine.

    Attributes:
        os: Operating system in release naming ('darwin', 'linux', 'windows', ...)
        arch: CPU architecture in release naming ('amd64', '386', 'arm', 'arm64', ...)
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def platform_string(self) -> str:
        """
        Get the platform fragment used in release archive names.

        Example:
            >>> PlatformInfo("linux", "amd64").platform_string()
            'linux_amd64'
        """
        return f"{self.os}_{self.arch}"

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect the current platform.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo for the running interpreter
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Normalized OS name. Unknown systems are returned lowercased as-is,
        which yields an artifact name with no registered checksum.
    """
    system = platform.system().lower()

    if system == "darwin":
        return "darwin"
    elif system.startswith(("win", "cygwin", "msys")):
        return "windows"
    elif system.startswith("dragonfly"):
        return "dragonfly"
    return system


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'amd64', '386', 'arm64', 'arm', or the
        lowercased machine name for anything else
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "amd64"
    elif machine in ("i386", "i486", "i586", "i686", "x86"):
        return "386"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine.startswith("arm"):
        return "arm"
    return machine


def clear_platform_cache():
    """
    Clear the platform detection cache.

    Forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
]
