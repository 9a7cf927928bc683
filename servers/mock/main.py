"""Entry point for TSMock Mock Server."""

import logging
import os
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

from tsmock.mock_server.config import get_config
from tsmock.mock_server.server import mcp
from tsmock.mock_server.watch import start_watching

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config = get_config()
    resolver = start_watching(config) if config.watch else None
    try:
        mcp.run()
    finally:
        if resolver is not None:
            resolver.stop()
