from __future__ import annotations

import logging
import sys

import uvicorn

from insights_webui.app import create_app
from insights_webui.config import load_webui_config, parse_address
from insights_webui.errors import ConfigError
from insights_webui.logging_config import LOG_FORMAT, configure_logging

logger = logging.getLogger("insights_webui")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    logger.info("Reading configuration")
    try:
        config = load_webui_config()
        host, port = parse_address(config.server.address)
    except ConfigError as exc:
        logger.critical("Fatal error config file: %s", exc)
        sys.exit(1)

    try:
        configure_logging(config.logging)
    except OSError as exc:
        logger.critical("Unable to open log file %s: %s", config.logging.file, exc)
        sys.exit(1)

    logger.info("Starting the service at address: %s", config.server.address)
    uvicorn.run(create_app(config), host=host, port=port, server_header=False, log_config=None)


if __name__ == "__main__":
    main()
