#!/usr/bin/env python3
"""
Telemetry Gateway - Main Entry Point
Receives JSON events over UDP and routes them to the OPC UA variable store
or forwards them to a remote log collector.
"""

import logging
import signal
import sys
import threading

from telemetry_gateway.application import GatewayApplication
from telemetry_gateway.config import GatewayConfig
from telemetry_gateway.errors import GatewayError

logger = logging.getLogger(__name__)


def main() -> int:
    """Main entry point"""
    config = GatewayConfig.from_env()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info("Starting Telemetry Gateway")
    logger.info(f"UDP listener: {config.udp_host}:{config.udp_port} "
                f"(workers: {config.udp_workers}, queue: {config.udp_queue_size})")
    logger.info(f"Log sink: {config.log_sink_host}:{config.log_sink_port}")
    logger.info(f"OPC UA port: {config.opcua_port}")

    shutdown = threading.Event()

    def _request_shutdown(signum, frame):
        logger.info(f"Received signal {signum}")
        shutdown.set()

    signal.signal(signal.SIGINT, _request_shutdown)
    signal.signal(signal.SIGTERM, _request_shutdown)

    app = GatewayApplication(config)
    try:
        app.start()
    except GatewayError as e:
        logger.error(f"Failed to start application: {e}")
        return 1

    # Keep running
    while not shutdown.wait(1.0):
        pass

    app.stop()
    return 0


if __name__ == '__main__':
    sys.exit(main())
