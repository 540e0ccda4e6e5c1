"""
Command line entry point for the Research Co-Pilot backend.

Loads settings from environment variables (via `.env`), creates a
ResearchCopilot and serves the JSON API until interrupted.
"""

import logging

from dotenv import load_dotenv

from api.server import run_server
from copilot import ResearchCopilot
from copilot.config import CopilotConfig

# --- Logging configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the HTTP backend."""
    logger.info("Loading environment variables from .env file...")
    load_dotenv()
    config = CopilotConfig.from_env()

    try:
        copilot = ResearchCopilot(config=config)
    except Exception as exc:
        logger.exception("Failed to initialize the research co-pilot: %s", exc)
        return

    run_server(config.host, config.port, copilot)
    logger.info("Server stopped. Goodbye!")


if __name__ == "__main__":
    main()
