"""
Polling file watcher with explicit start/stop and self-write suppression.

Every registered watch keeps a fingerprint (mtime in nanoseconds, size) of the
files it covers. A background thread polls them; callbacks receive the sorted
list of paths that were added, removed or modified since the previous poll.

Writes performed inside `suppressed(paths)` are folded into the fingerprints
once the block exits so they are never reported as changes.
"""

import fnmatch
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = {"node_modules", ".git", "dist", "build"}

ChangeCallback = Callable[[list[str]], None]


def fingerprint(path: Path) -> tuple[int, int] | None:
    try:
        stat = path.stat()
    except OSError:
        return None
    return (stat.st_mtime_ns, stat.st_size)


@dataclass(eq=False)
class Watch:
    """One watched file or directory tree."""

    root: Path
    callback: ChangeCallback
    patterns: tuple[str, ...] = ()  # Empty for single-file watches
    ignore_names: set[str] = field(default_factory=set)
    snapshot: dict[str, tuple[int, int]] = field(default_factory=dict)

    @property
    def is_directory(self) -> bool:
        return bool(self.patterns)

    def covers(self, path: Path) -> bool:
        if not self.is_directory:
            return path == self.root
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return False
        if path.name in self.ignore_names:
            return False
        if any(part in DEFAULT_EXCLUDE_DIRS for part in relative.parts[:-1]):
            return False
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.patterns)

    def scan(self) -> dict[str, tuple[int, int]]:
        if not self.is_directory:
            current = fingerprint(self.root)
            return {str(self.root): current} if current else {}

        files = {}
        if not self.root.is_dir():
            return files
        for pattern in self.patterns:
            for match in self.root.rglob(pattern):
                if not self.covers(match) or not match.is_file():
                    continue
                current = fingerprint(match)
                if current:
                    files[str(match)] = current
        return files


class FileWatcher:
    """Polls watched paths from a daemon thread between start() and stop()."""

    def __init__(self, poll_interval: float = 0.5):
        self.poll_interval = poll_interval
        self._lock = threading.RLock()
        self._watches: list[Watch] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def watch_file(self, path: str, callback: ChangeCallback) -> Watch:
        """Watch a single file for creation, modification and removal."""
        return self._add(Watch(root=Path(path).resolve(), callback=callback))

    def watch_directory(
        self,
        path: str,
        callback: ChangeCallback,
        patterns: tuple[str, ...] = ("*.ts",),
        ignore_names: set[str] | None = None,
    ) -> Watch:
        """Watch files under a directory whose names match any of `patterns`."""
        watch = Watch(
            root=Path(path).resolve(),
            callback=callback,
            patterns=tuple(patterns),
            ignore_names=set(ignore_names or ()),
        )
        return self._add(watch)

    def _add(self, watch: Watch) -> Watch:
        with self._lock:
            watch.snapshot = watch.scan()
            self._watches.append(watch)
        logger.debug("Watching %s", watch.root)
        return watch

    def unwatch(self, watch: Watch) -> None:
        with self._lock:
            if watch in self._watches:
                self._watches.remove(watch)

    def start(self) -> None:
        if self.is_running:
            logger.warning("File watcher already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="tsmock-file-watcher", daemon=True)
        self._thread.start()
        logger.info("File watcher started (interval %.2fs)", self.poll_interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("File watcher stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.poll()
            except Exception as e:
                logger.error(f"Error in file watcher poll: {e}")

    def poll(self) -> int:
        """
        Check every watch once and dispatch callbacks for changed paths.

        Returns:
            Number of callbacks invoked
        """
        pending = []
        with self._lock:
            for watch in self._watches:
                current = watch.scan()
                changed = sorted(
                    path
                    for path in set(current) | set(watch.snapshot)
                    if current.get(path) != watch.snapshot.get(path)
                )
                watch.snapshot = current
                if changed:
                    pending.append((watch, changed))

        # Callbacks run outside the lock so they may write inside suppressed()
        for watch, changed in pending:
            try:
                watch.callback(changed)
            except Exception as e:
                logger.error(f"Error in file watcher callback for {watch.root}: {e}")
        return len(pending)

    @contextmanager
    def suppressed(self, paths: list[str]) -> Iterator[None]:
        """Write `paths` inside this block without them being reported as changes."""
        resolved = [Path(path).resolve() for path in paths]
        with self._lock:
            try:
                yield
            finally:
                for watch in self._watches:
                    for path in resolved:
                        if not watch.covers(path):
                            continue
                        current = fingerprint(path)
                        if current is None:
                            watch.snapshot.pop(str(path), None)
                        else:
                            watch.snapshot[str(path)] = current
