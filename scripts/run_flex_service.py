"""
FlexVol Service Launcher Script

Launch the FlexVol lifecycle control API.

This script:
1. Activates the control plane backends (unless --no-init)
2. Starts the control API on a background thread
3. Handles graceful shutdown

Usage:
    python scripts/run_flex_service.py --address 127.0.0.1 --port 8010

Environment Variables:
    FLEXVOL_STORAGE_API_URL: Control plane base URL
    FLEXVOL_BACKEND: Backend used for new volumes
    FLEXVOL_SERVICE_HOST: Listen address (default: 127.0.0.1)
    FLEXVOL_SERVICE_PORT: Listen port (default: 8010)
    FLEXVOL_LOG_FILE: Log file path
"""

import sys
import logging
import argparse
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from flexvol.config import PluginConfig
from flexvol.driver import build_controller
from flexvol.logging_config import setup_logging
from flexvol.service import FlexService

logger = logging.getLogger(__name__)


def main():
    config = PluginConfig.from_env()

    parser = argparse.ArgumentParser(description="Launch FlexVol service")
    parser.add_argument("--address", default=config.service_host, help="Listen address")
    parser.add_argument("--port", type=int, default=config.service_port, help="Control API port")
    parser.add_argument("--storage-api-url", default=config.storage_api_url, help="Control plane base URL")
    parser.add_argument("--backend", default=config.backend, help="Backend used for new volumes")
    parser.add_argument("--log-file", default=config.log_file, help="Log file")
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    parser.add_argument("--no-init", action="store_true", help="Skip control plane activation")

    args = parser.parse_args()

    config.service_host = args.address
    config.service_port = args.port
    config.storage_api_url = args.storage_api_url
    config.backend = args.backend
    config.log_file = args.log_file
    config.log_level = args.log_level

    setup_logging("flexvol-service", level=config.log_level, log_file=config.log_file)

    logger.info("Starting FlexVol service")
    logger.info(f"  Listen address: {config.service_host}")
    logger.info(f"  Control port: {config.service_port}")
    logger.info(f"  Control plane: {config.storage_api_url}")

    try:
        controller = build_controller(config)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    if not args.no_init:
        response = controller.initialize()
        if not response.ok:
            logger.warning(f"Activation failed: {response.message}")
            logger.warning("Continuing; the node agent will retry init")

    service = FlexService(
        controller,
        listen_address=config.service_host,
        port=config.service_port
    )

    try:
        service.start()
        logger.info("FlexVol service running. Press Ctrl+C to stop.")
        service.wait()

    except KeyboardInterrupt:
        logger.info("Shutting down FlexVol service...")
        service.stop()

    logger.info("FlexVol service stopped")


if __name__ == "__main__":
    main()
