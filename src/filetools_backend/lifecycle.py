"""
Time-based eviction of generated artifacts.

Every file a tool writes is handed to ``OutputLifecycle.track`` and deleted
``retention_seconds`` later. Deletion is driven by a single daemon thread
that sleeps until the earliest due entry (or until a new entry arrives),
plus an opportunistic ``sweep()`` before every download lookup so an
expired artifact is never served even if the thread is late.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from threading import Condition, Thread
from typing import Callable, Dict, List, Optional, Tuple

from .models import GeneratedArtifact

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class OutputLifecycle:
    """
    Schedules deletion of generated artifacts.

    Access never extends an artifact's life and nothing can be pinned: the
    due time is fixed when the artifact is tracked.

    Attributes:
        retention_seconds: Lifetime of every artifact
        sweep_interval_seconds: Longest the sweeper sleeps between checks
        clock: Source of the current time, replaceable in tests
    """

    def __init__(
        self,
        retention_seconds: float,
        sweep_interval_seconds: float = 60,
        clock: Clock = time.time,
    ) -> None:
        self.retention_seconds = retention_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self.clock = clock
        self._heap: List[Tuple[float, int, Path]] = []
        self._due: Dict[Path, float] = {}
        self._names: Dict[Path, str] = {}
        self._sequence = itertools.count()
        self._condition = Condition()
        self._thread: Optional[Thread] = None
        self._stopping = False

    def track(self, path: Path, display_name: Optional[str] = None) -> GeneratedArtifact:
        """
        Register a freshly written artifact and schedule its deletion.

        Args:
            path: File inside the output directory
            display_name: Name shown to the client, defaults to the file name

        Returns:
            GeneratedArtifact describing the file

        Raises:
            FileNotFoundError: If the routine did not actually write ``path``
        """
        path = Path(path)
        size = path.stat().st_size
        now = self.clock()
        due = now + self.retention_seconds
        self._schedule(path, due)
        if display_name:
            with self._condition:
                self._names[path] = display_name
        return GeneratedArtifact(
            file_id=path.name,
            file_name=display_name or path.name,
            size_bytes=size,
            created_at=datetime.fromtimestamp(now, tz=timezone.utc),
        )

    def _schedule(self, path: Path, due: float) -> None:
        with self._condition:
            heapq.heappush(self._heap, (due, next(self._sequence), path))
            self._due[path] = due
            self._condition.notify()

    def adopt_existing(self, directory: Path) -> int:
        """
        Schedule files left in ``directory`` by an earlier process.

        Their due time counts from the file's modification time, so a
        restart does not grant leftovers a fresh retention period.

        Returns:
            Number of files adopted
        """
        directory = Path(directory)
        if not directory.exists():
            return 0
        adopted = 0
        for path in directory.iterdir():
            if not path.is_file() or path in self._due:
                continue
            self._schedule(path, path.stat().st_mtime + self.retention_seconds)
            adopted += 1
        if adopted:
            logger.info(f"Adopted {adopted} leftover artifacts from {directory}")
        return adopted

    def sweep(self) -> int:
        """
        Delete every artifact whose due time has passed.

        Returns:
            Number of entries evicted (missing files included)
        """
        now = self.clock()
        expired: List[Path] = []
        with self._condition:
            while self._heap and self._heap[0][0] <= now:
                due, _, path = heapq.heappop(self._heap)
                if self._due.get(path) != due:
                    continue
                del self._due[path]
                self._names.pop(path, None)
                expired.append(path)

        for path in expired:
            self._evict(path)
        return len(expired)

    def _evict(self, path: Path) -> None:
        try:
            path.unlink()
            logger.info(f"Evicted expired artifact {path.name}")
        except FileNotFoundError:
            logger.debug(f"Artifact {path.name} was already gone at eviction")
        except OSError:
            logger.exception(f"Could not evict artifact {path}")

    def is_live(self, name: str) -> bool:
        with self._condition:
            due = next((value for path, value in self._due.items() if path.name == name), None)
        return due is not None and due > self.clock()

    def display_name(self, name: str) -> Optional[str]:
        """Client-facing name recorded for the artifact stored as ``name``, if any."""
        with self._condition:
            return next((value for path, value in self._names.items() if path.name == name), None)

    def pending(self) -> int:
        with self._condition:
            return len(self._due)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stopping = False
        self._thread = Thread(target=self._run, name="output-lifecycle", daemon=True)
        self._thread.start()
        logger.info(f"Output sweeper started (retention {self.retention_seconds}s)")

    def stop(self, timeout: float = 5) -> None:
        with self._condition:
            self._stopping = True
            self._condition.notify_all()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while True:
            with self._condition:
                if self._stopping:
                    return
                wait = self.sweep_interval_seconds
                if self._heap:
                    wait = max(0.0, min(wait, self._heap[0][0] - self.clock()))
                self._condition.wait(timeout=wait)
                if self._stopping:
                    return
            self.sweep()
