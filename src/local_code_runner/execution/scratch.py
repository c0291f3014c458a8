from __future__ import annotations

import logging
import shutil
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .types import ExecutionArtifacts

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SweepSummary:
    """Result summary from an idle sweep of the scratch directory.

    Example:
        ```python
        summary = SweepSummary(removed_files=2, removed_dirs=1, removed_root=True)
        ```
    """

    removed_files: int
    removed_dirs: int
    removed_root: bool


class ScratchDirectory:
    """Shared on-disk location for ephemeral sources and compiled artifacts.

    Leases are counted in-process. Releasing the last lease attempts to remove
    the directory, but a concurrent writer in another process can keep it
    alive; ``sweep`` is the routine that reclaims whatever is left over.

    Example:
        ```python
        scratch = ScratchDirectory("/tmp/local-code-runner")
        ```
    """

    def __init__(self, path: str | Path) -> None:
        """Bind the handle to ``path`` without creating it.

        Example:
            ```python
            scratch = ScratchDirectory(Path("/tmp/lcr"))
            ```
        """
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._leases = 0

    @property
    def active_leases(self) -> int:
        """Return the number of executions currently holding the directory.

        Example:
            ```python
            busy = scratch.active_leases > 0
            ```
        """
        with self._lock:
            return self._leases

    @contextmanager
    def lease(self) -> Iterator[Path]:
        """Create the directory if needed and hold it for one execution.

        Example:
            ```python
            with scratch.lease() as path:
                (path / "a.py").write_text("print(1)")
            ```
        """
        with self._lock:
            self.path.mkdir(parents=True, exist_ok=True)
            self._leases += 1
        try:
            yield self.path
        finally:
            with self._lock:
                self._leases -= 1
                if self._leases == 0:
                    self._remove_root_if_empty()

    def remove_artifacts(self, artifacts: ExecutionArtifacts) -> list[str]:
        """Delete every tracked artifact and return messages for failures.

        Example:
            ```python
            failures = scratch.remove_artifacts(artifacts)
            ```
        """
        failures: list[str] = []
        for path in artifacts.paths():
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink(missing_ok=True)
            except OSError as exc:
                failures.append(f"{path}: {exc}")
        return failures

    def sweep(self, max_age_seconds: float = 0) -> SweepSummary:
        """Remove entries older than ``max_age_seconds`` and the empty root.

        Entries younger than the threshold are left for the runs that own them.
        The root is only removed when no lease is held.

        Example:
            ```python
            summary = scratch.sweep(max_age_seconds=3600)
            ```
        """
        removed_files = 0
        removed_dirs = 0
        if not self.path.is_dir():
            return SweepSummary(0, 0, False)
        cutoff = time.time() - max_age_seconds
        for entry in self.path.iterdir():
            try:
                if entry.lstat().st_mtime > cutoff:
                    continue
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                    removed_dirs += 1
                else:
                    entry.unlink(missing_ok=True)
                    removed_files += 1
            except OSError as exc:
                logger.warning("Could not sweep %s: %s", entry, exc)
        with self._lock:
            removed_root = self._leases == 0 and self._remove_root_if_empty()
        return SweepSummary(removed_files, removed_dirs, removed_root)

    def _remove_root_if_empty(self) -> bool:
        """Try to remove the root directory; callers must hold the lock.

        Example:
            ```python
            removed = scratch._remove_root_if_empty()
            ```
        """
        try:
            self.path.rmdir()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.debug("Scratch directory %s kept: %s", self.path, exc)
            return False
        return True
