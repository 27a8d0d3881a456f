import logging
from typing import List, Optional

from .config import GatewayConfig
from .dispatcher import EventDispatcher
from .log_forwarder import RemoteLogForwarder
from .protocol_sink import ProtocolSink
from .udp_event_receiver import UDPEventReceiver
from .variable_store import VariableStore

logger = logging.getLogger(__name__)


class GatewayApplication:
    """
    Own the gateway components and their start/stop ordering.

    Start order: protocol sink (via the variable store), UDP receiver,
    log forwarder. Stop order: UDP receiver, log forwarder, variable
    store.
    """

    def __init__(self, config: Optional[GatewayConfig] = None) -> None:
        self.config: GatewayConfig = config or GatewayConfig()

        self.variable_store: VariableStore = VariableStore(
            sink=ProtocolSink(port=self.config.opcua_port),
            report_interval=self.config.rate_interval_seconds
        )
        self.log_forwarder: RemoteLogForwarder = RemoteLogForwarder(
            host=self.config.log_sink_host,
            port=self.config.log_sink_port,
            heartbeat_interval=self.config.heartbeat_seconds
        )
        self.dispatcher: EventDispatcher = EventDispatcher(
            variable_store=self.variable_store,
            log_forwarder=self.log_forwarder
        )
        self.receiver: UDPEventReceiver = UDPEventReceiver(
            host=self.config.udp_host,
            port=self.config.udp_port,
            dispatcher=self.dispatcher,
            num_workers=self.config.udp_workers,
            queue_size=self.config.udp_queue_size
        )

    def start(self) -> None:
        """Start every component, undoing partial startup if one fails"""
        started: List[object] = []
        try:
            for component in (self.variable_store, self.receiver, self.log_forwarder):
                component.start()
                started.append(component)
        except Exception as e:
            logger.error(f"Failed to start application: {e}")
            for component in reversed(started):
                component.stop()
            raise

        logger.info("Application started successfully")

    def stop(self) -> None:
        logger.info("Shutting down application...")
        self.receiver.stop()
        self.log_forwarder.stop()
        self.variable_store.stop()
        logger.info("Application stopped")
