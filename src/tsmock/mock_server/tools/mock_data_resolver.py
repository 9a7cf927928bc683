"""
Keep a mock store in sync with the request call sites of a TypeScript project.

One pass scans the project, diffs the endpoints against the previous
structure snapshot, regenerates mock values for created and updated URLs only
and persists both `structure.json` and `mock.json` under the mock directory.

Passes never overlap. A source change that arrives while a pass is running
queues exactly one re-run which starts as soon as the running pass finishes.
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..models.mock_models import AnalysisError, Endpoint, MockEntry, SyncResult
from .file_watcher import FileWatcher
from .mock_generator import MockGenerator, generate_mock_data, mock_data_to_map
from .structure_diff import get_structure_differences
from .typescript_parser import TypeScriptParser
from .visit_files import Patterns, get_structure_from_files

logger = logging.getLogger(__name__)

MOCK_DATA_FILE = "mock.json"
MOCK_STRUCTURE_FILE = "structure.json"

SOURCE_PATTERNS = ("*.ts", "*.tsx")

MockDataCallback = Callable[[list[MockEntry]], None]

# Started resolvers by resolved mock directory; at most one owns a store
_registry_lock = threading.Lock()
_active_resolvers: dict[str, "MockDataResolver"] = {}


def _store_key(mock_dir: str) -> str:
    return str(Path(mock_dir).resolve())


def get_active_resolver(mock_dir: str) -> "MockDataResolver | None":
    """The started resolver writing to `mock_dir`, if any."""
    with _registry_lock:
        return _active_resolvers.get(_store_key(mock_dir))


def write_json_file(path: str, data: Any) -> None:
    """Atomically replace `path` with the JSON encoding of `data`."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(dir=target.parent, prefix=f".tmp_{target.name}_")
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(temp_path, target)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


class MockDataResolver:
    """Orchestrates scan, diff, synchronize and persist passes for one project."""

    def __init__(
        self,
        base_path: str,
        config_path: str | None,
        includes: Patterns,
        excludes: Patterns = None,
        mock_dir: str | None = None,
        watcher: FileWatcher | None = None,
        seed: int | None = None,
        parser: TypeScriptParser | None = None,
    ):
        self.base_path = base_path
        self.config_path = config_path
        self.includes = includes
        self.excludes = excludes
        self.mock_dir = mock_dir
        self.watcher = watcher
        self.seed = seed
        self.generator = MockGenerator(seed)
        self.parser = parser or TypeScriptParser()
        self.errors: list[AnalysisError] = []

        self.mock_file_path = ""
        self.mock_structure_path = ""
        self.origin_structure: list[Endpoint] = []
        self.origin_mock_data: list[MockEntry] = []

        if mock_dir:
            self.mock_file_path = os.path.join(mock_dir, MOCK_DATA_FILE)
            self.mock_structure_path = os.path.join(mock_dir, MOCK_STRUCTURE_FILE)
            self.origin_mock_data = self.get_data_from_mock_file()
            self.origin_structure = self.get_structure_from_json()

        self._pass_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._pass_running = False
        self._rerun_requested = False

    # Store files

    def _read_json_list(self, path: str) -> list[dict[str, Any]]:
        if not path or not os.path.exists(path):
            return []
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            message = f"Cannot read {path}, treating it as empty: {e}"
            logger.warning(message)
            self.errors.append(AnalysisError(code="CORRUPT_STORE", message=message, file=path))
            return []
        if not isinstance(data, list):
            message = f"{path} does not contain a list, treating it as empty"
            logger.warning(message)
            self.errors.append(AnalysisError(code="CORRUPT_STORE", message=message, file=path))
            return []
        return [item for item in data if isinstance(item, dict) and "url" in item]

    def get_data_from_mock_file(self) -> list[MockEntry]:
        return [MockEntry.from_dict(item) for item in self._read_json_list(self.mock_file_path)]

    def get_structure_from_json(self) -> list[Endpoint]:
        return [Endpoint.from_dict(item) for item in self._read_json_list(self.mock_structure_path)]

    def _persist(self, structure: list[Endpoint], mock_data: list[MockEntry]) -> None:
        paths = [self.mock_structure_path, self.mock_file_path]
        if self.watcher is not None:
            with self.watcher.suppressed(paths):
                self._write_files(structure, mock_data)
        else:
            self._write_files(structure, mock_data)

    def _write_files(self, structure: list[Endpoint], mock_data: list[MockEntry]) -> None:
        logger.info("Writing structure file %s", self.mock_structure_path)
        write_json_file(self.mock_structure_path, [endpoint.to_dict() for endpoint in structure])
        logger.info("Writing mock file %s", self.mock_file_path)
        write_json_file(self.mock_file_path, [entry.to_dict() for entry in mock_data])

    # Passes

    def get_structure_from_files(self):
        return get_structure_from_files(
            self.base_path, self.config_path, self.includes, self.excludes, parser=self.parser
        )

    def get_or_generate_data(self) -> list[MockEntry]:
        """Return the current mock store, running a pass first when it is empty."""
        if not self.origin_mock_data:
            self.run_pass()
        return self.origin_mock_data

    def run_pass(self) -> SyncResult:
        """
        Scan, diff against the previous snapshot, synchronize and persist.

        Raises:
            FileNotFoundError: If the base path does not exist
        """
        with self._pass_lock:
            scan = self.get_structure_from_files()
            structure = scan.endpoints
            difference = get_structure_differences(self.origin_structure, structure)
            mock_data = generate_mock_data(
                structure, mock_data_to_map(self.origin_mock_data), difference, self.generator
            )

            if difference:
                logger.info(
                    "Structure differences detected: %s",
                    ", ".join(f"{url} ({change.value})" for url, change in difference.items()),
                )

            persisted = False
            store_changed = bool(difference) or mock_data != self.origin_mock_data
            if self.mock_dir and (store_changed or not self._store_exists()):
                self._persist(structure, mock_data)
                persisted = True

            errors, self.errors = self.errors + scan.errors, []
            self.origin_structure = structure
            self.origin_mock_data = mock_data
            return SyncResult(
                structure=structure,
                difference=difference,
                mock_data=mock_data,
                persisted=persisted,
                errors=errors,
            )

    def _store_exists(self) -> bool:
        return os.path.exists(self.mock_file_path) and os.path.exists(self.mock_structure_path)

    def request_pass(self, on_result: Callable[[SyncResult], None] | None = None) -> SyncResult | None:
        """
        Run a pass unless one is already running.

        A request made while a pass is in flight marks it for one re-run and
        returns None; the running caller performs the re-run. `on_result` sees
        every pass this call runs. Returns the last pass's result otherwise.
        """
        with self._state_lock:
            if self._pass_running:
                self._rerun_requested = True
                return None
            self._pass_running = True

        result = None
        try:
            while True:
                result = self.run_pass()
                if on_result is not None:
                    on_result(result)
                with self._state_lock:
                    if not self._rerun_requested:
                        return result
                    self._rerun_requested = False
                logger.debug("Re-running pass for changes made while scanning")
        finally:
            with self._state_lock:
                self._pass_running = False

    # Watching

    def _ensure_watcher(self) -> FileWatcher:
        if self.watcher is None:
            self.watcher = FileWatcher()
        return self.watcher

    def watch_mock_file(self, callback: MockDataCallback) -> bool:
        """
        Reload the mock store whenever mock.json changes on disk.

        Returns:
            False when there is no mock file to watch
        """
        if not self.mock_file_path or not os.path.exists(self.mock_file_path):
            return False

        def on_change(paths: list[str]) -> None:
            logger.info("Update the response mock data")
            with self._pass_lock:
                self.origin_mock_data = self.get_data_from_mock_file()
            callback(self.origin_mock_data)

        self._ensure_watcher().watch_file(self.mock_file_path, on_change)
        return True

    def watch_request_files(self, callback: MockDataCallback) -> bool:
        """
        Re-run the pipeline whenever a source file under the base path changes.

        The callback receives the refreshed mock store after a pass that found
        structure differences.

        Returns:
            False when the base path does not exist
        """
        if not os.path.isdir(self.base_path):
            return False

        def on_change(paths: list[str]) -> None:
            logger.debug("Source changes: %s", ", ".join(paths))
            self.request_pass(on_result)

        def on_result(result: SyncResult) -> None:
            if result.difference:
                callback(result.mock_data)

        self._ensure_watcher().watch_directory(
            self.base_path,
            on_change,
            patterns=SOURCE_PATTERNS,
            ignore_names={MOCK_DATA_FILE, MOCK_STRUCTURE_FILE},
        )
        return True

    def start(self) -> None:
        """
        Start watching and claim the mock directory.

        Raises:
            RuntimeError: If another started resolver owns the same mock directory
        """
        if self.mock_dir:
            key = _store_key(self.mock_dir)
            with _registry_lock:
                owner = _active_resolvers.get(key)
                if owner is not None and owner is not self:
                    raise RuntimeError(f"Mock directory {self.mock_dir} is already being watched")
                _active_resolvers[key] = self
        self._ensure_watcher().start()

    def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        if self.mock_dir:
            key = _store_key(self.mock_dir)
            with _registry_lock:
                if _active_resolvers.get(key) is self:
                    del _active_resolvers[key]

