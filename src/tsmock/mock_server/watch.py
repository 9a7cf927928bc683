"""Background synchronization of the mock store while the server runs."""

import logging
import os

from .config import MockServerConfig, get_config
from .models.mock_models import MockEntry
from .tools.file_watcher import FileWatcher
from .tools.mock_data_resolver import MockDataResolver

logger = logging.getLogger(__name__)


def start_watching(config: MockServerConfig | None = None) -> MockDataResolver:
    """
    Run one pass, then keep structure.json and mock.json in sync with the sources.

    Source changes under the base path re-run the pipeline; hand edits to
    mock.json are reloaded. Call `stop()` on the returned resolver to end
    watching.

    Raises:
        FileNotFoundError: If the configured base path does not exist
    """
    config = config or get_config()
    resolver = MockDataResolver(
        base_path=config.resolve(config.base_path),
        config_path=_existing(config.resolve(config.config_path)),
        includes=config.includes,
        excludes=config.excludes,
        mock_dir=config.resolve(config.mock_dir),
        watcher=FileWatcher(poll_interval=config.poll_interval),
        seed=config.seed,
    )

    result = resolver.run_pass()
    logger.info("Initial mock sync: %d endpoints", len(result.structure))
    for error in result.errors:
        logger.warning("%s: %s", error.code, error.message)

    resolver.watch_request_files(_log_update("Request files changed"))
    resolver.watch_mock_file(_log_update("Mock file reloaded"))
    resolver.start()
    return resolver


def _existing(path: str | None) -> str | None:
    return path if path and os.path.exists(path) else None


def _log_update(message: str):
    def callback(mock_data: list[MockEntry]) -> None:
        logger.info("%s: %d mock entries", message, len(mock_data))

    return callback
