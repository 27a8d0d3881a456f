import json
import logging
import math
import socket
import threading
from typing import Any, Dict, Optional

from .errors import AlreadyRunningError, BindError, SendError
from .events import SinkEndpoint, normalize_log_record
from .lifecycle import ComponentState

logger = logging.getLogger(__name__)

DEFAULT_SINK_HOST = '192.168.2.112'
DEFAULT_SINK_PORT = 1514
HEARTBEAT_MESSAGE = 'Heartbeat from log forwarder'


class RemoteLogForwarder:
    """
    Send JSON log records to a remote collector over UDP.

    Delivery is at-most-once: one datagram per record, no retry and no
    acknowledgement. Records sent while the forwarder is stopped are
    dropped without error.
    """

    def __init__(self,
                 host: str = DEFAULT_SINK_HOST,
                 port: int = DEFAULT_SINK_PORT,
                 heartbeat_interval: float = 30.0) -> None:
        """
        Initialize the log forwarder.

        Args:
            host: Collector address
            port: Collector UDP port
            heartbeat_interval: Seconds between heartbeat records
        """
        self.endpoint: SinkEndpoint = SinkEndpoint(host, port)
        self.heartbeat_interval: float = heartbeat_interval
        self.state: ComponentState = ComponentState.STOPPED
        self.conn: Optional[socket.socket] = None
        self.lock: threading.Lock = threading.Lock()

        self._stop_event: threading.Event = threading.Event()
        self._heartbeat_thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self.state is ComponentState.RUNNING

    def start(self) -> None:
        """Connect to the recorded endpoint and start the heartbeat"""
        with self.lock:
            if self.state is not ComponentState.STOPPED:
                raise AlreadyRunningError("Log forwarder already running")

            host, port = self.endpoint
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                sock.connect((host, port))
            except (OSError, OverflowError) as e:
                sock.close()
                raise BindError(f"failed to connect to log sink {host}:{port}: {e}") from e

            self.conn = sock
            self.state = ComponentState.RUNNING
            self._stop_event.clear()
            self._heartbeat_thread = threading.Thread(
                target=self._heartbeat_loop,
                name='log-heartbeat',
                daemon=True
            )
            self._heartbeat_thread.start()

        logger.info(f"Log forwarder started for {host}:{port}")

    def stop(self) -> None:
        """Close the connection and wait for the heartbeat to exit"""
        with self.lock:
            if self.state is not ComponentState.RUNNING:
                return
            self.state = ComponentState.STOPPING
            self._stop_event.set()
            if self.conn is not None:
                self.conn.close()
                self.conn = None
            thread = self._heartbeat_thread
            self._heartbeat_thread = None

        # The heartbeat takes the lock in send_log, so join outside it
        if thread is not None:
            thread.join()

        with self.lock:
            self.state = ComponentState.STOPPED

        logger.info("Log forwarder stopped")

    def send_log(self, record: Dict[str, Any]) -> None:
        """Normalize record and send it as one datagram, dropping it on any failure"""
        with self.lock:
            if not self.running or self.conn is None:
                return

            normalized = normalize_log_record(record)
            try:
                payload = json.dumps(normalized, allow_nan=False).encode('utf-8')
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to marshal log data: {e}")
                return

            try:
                self._transmit(payload)
            except SendError as e:
                logger.error(f"Failed to send log to sink: {e}")

    def config_log(self, config: Dict[str, Any]) -> None:
        """
        Record a new collector endpoint from {"ip": str, "port": number}.

        Only well-typed values are taken. The open connection keeps its
        current target; the new endpoint is used on the next start().
        """
        with self.lock:
            host, port = self.endpoint

            new_host = config.get('ip')
            if isinstance(new_host, str) and new_host:
                host = new_host

            new_port = config.get('port')
            if (isinstance(new_port, (int, float)) and not isinstance(new_port, bool)
                    and math.isfinite(new_port)):
                port = int(new_port)

            self.endpoint = SinkEndpoint(host, port)

        logger.info(f"Updated logger config: {host}:{port}")

    def _transmit(self, payload: bytes) -> None:
        try:
            self.conn.send(payload)
        except OSError as e:
            raise SendError(str(e)) from e

    def _heartbeat_loop(self) -> None:
        while not self._stop_event.wait(self.heartbeat_interval):
            self.send_log({
                'level': 'INFO',
                'message': HEARTBEAT_MESSAGE,
            })
