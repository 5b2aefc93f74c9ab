"""FastAPI server runner."""

import uvicorn
import structlog

from livewager_core.api.app import create_app
from livewager_core.config.loader import load_config
from livewager_core.logging.setup import setup_logging

logger = structlog.get_logger("api_runner")


def main(config_path: str | None = None):
    """Run the API server with uvicorn."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)

    logger.info("api_server_starting", host=config.api.host, port=config.api.port)

    try:
        uvicorn.run(
            create_app(config),
            host=config.api.host,
            port=config.api.port,
            log_config=None,  # keep the structlog handlers
        )
    except Exception as e:
        logger.error("api_server_failed", error=str(e))
        raise


if __name__ == "__main__":
    main()
