import logging
import threading
from typing import Any, Callable, Dict, Optional

from .errors import AlreadyRunningError
from .events import VariableUpdate, coerce_status_code
from .lifecycle import ComponentState
from .protocol_sink import ProtocolSink

logger = logging.getLogger(__name__)


class VariableStore:
    """Forward variable updates to the protocol sink and report the update rate"""

    def __init__(self,
                 sink: Optional[ProtocolSink] = None,
                 report_interval: float = 1.0,
                 rate_callback: Optional[Callable[[int], None]] = None) -> None:
        """
        Initialize the variable store.

        Args:
            sink: Protocol sink receiving updates (default: ProtocolSink())
            report_interval: Seconds between packet-rate observations
            rate_callback: Called with each nonzero per-interval count
        """
        self.sink: ProtocolSink = sink if sink is not None else ProtocolSink()
        self.report_interval: float = report_interval
        self.rate_callback: Optional[Callable[[int], None]] = rate_callback

        self.packet_count: int = 0
        self.state: ComponentState = ComponentState.STOPPED
        self.lock: threading.Lock = threading.Lock()

        self._stop_event: threading.Event = threading.Event()
        self._monitor_thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self.state is ComponentState.RUNNING

    def start(self) -> None:
        """Open the protocol sink and start the rate monitor"""
        with self.lock:
            if self.state is not ComponentState.STOPPED:
                raise AlreadyRunningError("OPC UA server already running")
            self.state = ComponentState.STARTING

        try:
            self.sink.open()
        except Exception:
            with self.lock:
                self.state = ComponentState.STOPPED
            raise

        self._stop_event.clear()
        self._monitor_thread = threading.Thread(
            target=self._monitor_rates,
            name='rate-monitor',
            daemon=True
        )
        self._monitor_thread.start()

        with self.lock:
            self.state = ComponentState.RUNNING

    def stop(self) -> None:
        """Stop the rate monitor and release the sink. No-op unless running."""
        with self.lock:
            if self.state is not ComponentState.RUNNING:
                return
            self.state = ComponentState.STOPPING

        self._stop_event.set()
        self.sink.close()
        if self._monitor_thread is not None:
            self._monitor_thread.join()
            self._monitor_thread = None

        with self.lock:
            self.state = ComponentState.STOPPED

    def handle_variable_update(self, tag: str, path: str, value: Any,
                               status_code: Any, namespace: str) -> None:
        """Count, log and forward one variable update"""
        update = VariableUpdate(
            tag=tag,
            path=path,
            value=value,
            status_code=coerce_status_code(status_code),
            namespace=namespace,
        )

        with self.lock:
            self.packet_count += 1

        logger.info(
            f"Variable update - Tag: {update.tag}, Path: {update.path}, "
            f"Value: {update.value}, Status: {update.status_code}, Namespace: {update.namespace}",
            extra={'variable_update': {
                'tag': update.tag,
                'path': update.path,
                'value': update.value,
                'status_code': update.status_code,
                'namespace': update.namespace,
            }}
        )

        self.sink.publish(update)

    def manage_users(self, data: Dict[str, Any]) -> None:
        self.sink.manage_users(data)

    def report_rate(self) -> int:
        """Read and reset the packet counter, emitting an observation if nonzero"""
        with self.lock:
            count = self.packet_count
            self.packet_count = 0

        if count > 0:
            logger.info(f"Packet rate: {count} packets/second")
            if self.rate_callback is not None:
                self.rate_callback(count)
        return count

    def _monitor_rates(self) -> None:
        while not self._stop_event.wait(self.report_interval):
            try:
                self.report_rate()
            except Exception as e:
                logger.error(f"Error reporting packet rate: {e}", exc_info=True)
