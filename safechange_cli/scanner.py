"""Source tree scanning and bounded parallel file reading."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from . import config
from .errors import ScanIOError

logger = logging.getLogger(__name__)


class SourceScanner:
    """Collect analyzable source files under a root directory.

    A path is kept when its suffix is in *extensions* and no path segment
    below *root* contains any of the *ignore_patterns* substrings.
    Unreadable entries are logged and skipped; a scan never aborts on a
    single bad directory or file.
    """

    def __init__(
        self,
        root: str | Path = config.DEFAULT_SRC_DIR,
        extensions: Optional[Sequence[str]] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
        follow_symlinks: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.root = Path(root)
        self.extensions = set(extensions if extensions is not None else config.SUPPORTED_EXTENSIONS)
        self.ignore_patterns = list(
            ignore_patterns if ignore_patterns is not None else config.IGNORE_PATTERNS
        )
        self.follow_symlinks = follow_symlinks
        self.cancel_event = cancel_event
        self.errors: List[ScanIOError] = []

    def is_ignored(self, name: str) -> bool:
        return any(pattern in name for pattern in self.ignore_patterns)

    def scan(self) -> List[str]:
        """Return posix paths of every candidate file under the root."""
        self.errors = []
        files: List[str] = []
        try:
            if not self.root.is_dir():
                self._record(ScanIOError(str(self.root), NotADirectoryError("not a directory")))
                return files
        except OSError as exc:
            self._record(ScanIOError(str(self.root), exc))
            return files

        visited: Set[str] = set()
        self._scan_directory(self.root, files, visited)
        logger.info("Scanned %s: %d candidate file(s)", self.root, len(files))
        return files

    def _scan_directory(self, directory: Path, files: List[str], visited: Set[str]) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.info("Scan cancelled at %s", directory)
            return

        if self.follow_symlinks:
            real = os.path.realpath(directory)
            if real in visited:
                logger.debug("Skipping already visited directory %s", directory)
                return
            visited.add(real)

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            self._record(ScanIOError(str(directory), exc))
            return

        for entry in entries:
            if self.is_ignored(entry.name):
                continue
            full_path = directory / entry.name
            try:
                if entry.is_dir(follow_symlinks=self.follow_symlinks):
                    self._scan_directory(full_path, files, visited)
                elif entry.is_file():
                    if os.path.splitext(entry.name)[1] in self.extensions:
                        files.append(full_path.as_posix())
            except OSError as exc:
                self._record(ScanIOError(str(full_path), exc))

    def _record(self, error: ScanIOError) -> None:
        logger.warning("%s", error)
        self.errors.append(error)


def _read_one(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="ignore") as handle:
        return handle.read()


def read_sources(
    paths: Iterable[str],
    max_workers: int = config.DEFAULT_MAX_WORKERS,
) -> Dict[str, str]:
    """Read many files with a bounded worker pool.

    Files that cannot be read are logged and left out of the result.
    The returned mapping preserves the order of *paths*.
    """
    ordered = list(paths)
    contents: Dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [(path, pool.submit(_read_one, path)) for path in ordered]
        for path, future in futures:
            try:
                contents[path] = future.result()
            except OSError as exc:
                logger.warning("%s", ScanIOError(path, exc))
    return contents
