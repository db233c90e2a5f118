"""
Tracking of temporary files created during one install attempt.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Union

from insthugo.core.filesystem import remove_path

logger = logging.getLogger(__name__)


class TempFileSet:
    """
    Ordered set of paths to remove when an install attempt ends.

    A new set is created for every install call and handed to each step, so
    separate installs never share cleanup state.

    Example:
        >>> temp_files = TempFileSet()
        >>> temp_files.add(paths.temp_dir / artifact.key)
        >>> temp_files.cleanup()
    """

    def __init__(self):
        self._paths: List[Path] = []

    def add(self, path: Union[str, Path]) -> Path:
        """Track a path. Adding a tracked path again is a no-op."""
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
            logger.debug(f"Tracking temporary path: {path}")
        return path

    def extend(self, paths) -> None:
        for path in paths:
            self.add(path)

    def discard(self, path: Union[str, Path]) -> None:
        """Stop tracking a path (e.g. one that has been promoted to the install)."""
        path = Path(path)
        if path in self._paths:
            self._paths.remove(path)

    def __contains__(self, path) -> bool:
        return Path(path) in self._paths

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    def cleanup(self) -> List[Path]:
        """
        Remove every tracked path and empty the set.

        Files are removed first in the order they were tracked, then
        directories deepest first, and only if they ended up empty. Failures
        are logged and do not stop the remaining removals.

        Returns:
            Paths that were actually removed
        """
        if not self._paths:
            return []

        logger.info("Removing temporary files...")

        files = [p for p in self._paths if not p.is_dir()]
        dirs = sorted(
            (p for p in self._paths if p.is_dir()),
            key=lambda p: len(p.parts),
            reverse=True,
        )

        removed = []
        for path in files + dirs:
            try:
                if remove_path(path):
                    removed.append(path)
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {e}")

        self._paths.clear()
        logger.debug(f"Removed {len(removed)} temporary path(s)")
        return removed
