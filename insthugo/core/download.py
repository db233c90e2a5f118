"""
Network download of release archives.

Downloads are streamed to disk with a bounded request timeout and optional
progress reporting. There is no resume and no automatic retry: any failure is
raised to the caller, which owns cleanup of the partially written file.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 30


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second

    def __str__(self) -> str:
        return format_progress(self)


class DownloadError(Exception):
    """Exception raised when download fails."""

    pass


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """
    Download file from URL to destination.

    The destination is truncated before the request is made, so it exists
    (possibly empty) whenever this function raises.

    Args:
        url: URL to download from
        destination: Local path to save file
        progress_callback: Optional callback for progress updates
        timeout: Connect/read timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the request fails, returns an error status, or the
            connection drops mid-transfer
        OSError: If the destination cannot be written

    Example:
        >>> url = "https://github.com/spf13/hugo/releases/download/v0.15/hugo_0.15_linux_amd64.tar.gz"
        >>> download_file(url, Path("temp/hugo_0.15_linux_amd64.tar.gz"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)

    logger.debug(f"Downloading from {url}")

    with open(destination, "wb") as f:
        try:
            response = requests.get(url, stream=True, timeout=timeout)
            with response:
                response.raise_for_status()
                _write_body(response, f, progress_callback)
        except RequestException as e:
            raise DownloadError(str(e)) from e

    logger.debug(f"Download complete: {destination}")
    return destination


def _write_body(
    response: requests.Response,
    f,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> int:
    """Stream a response body into an open file, reporting progress."""
    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        if not chunk:
            continue
        f.write(chunk)
        downloaded += len(chunk)

        # Report progress (max once per 0.5 seconds to avoid spam)
        current_time = time.time()
        if progress_callback and (
            current_time - last_progress_time >= 0.5 or downloaded == total_size
        ):
            elapsed = current_time - start_time
            progress_callback(
                DownloadProgress(
                    bytes_downloaded=downloaded,
                    total_bytes=total_size if total_size > 0 else downloaded,
                    percentage=(downloaded / total_size * 100)
                    if total_size > 0
                    else 0,
                    speed_bps=downloaded / elapsed if elapsed > 0 else 0,
                )
            )
            last_progress_time = current_time

    return downloaded


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(2621440, 5242880, 50.0, 1048576)
        >>> format_progress(progress)
        '2.5/5.0 MB (50.0%) at 1.0 MB/s'
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"
