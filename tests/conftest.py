"""Pytest configuration and shared fixtures for test suite"""

import json
import socket
import time
from typing import Any, Callable, Dict, Generator, List, Tuple

import pytest

from telemetry_gateway.dispatcher import EventDispatcher
from telemetry_gateway.events import VariableUpdate
from telemetry_gateway.log_forwarder import RemoteLogForwarder
from telemetry_gateway.protocol_sink import ProtocolSink
from telemetry_gateway.udp_event_receiver import UDPEventReceiver
from telemetry_gateway.variable_store import VariableStore


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests requiring network")
    config.addinivalue_line("markers", "scenario: End-to-end gateway scenarios")
    config.addinivalue_line("markers", "slow: Tests that take longer than 1 second")


class RecordingSink(ProtocolSink):
    """Protocol sink that keeps every published update for assertions"""

    def __init__(self) -> None:
        super().__init__(hostname='test-host')
        self.updates: List[VariableUpdate] = []
        self.user_payloads: List[Dict[str, Any]] = []
        self.open_calls: int = 0
        self.close_calls: int = 0

    def open(self) -> None:
        self.open_calls += 1
        super().open()

    def publish(self, update: VariableUpdate) -> None:
        self.updates.append(update)
        super().publish(update)

    def manage_users(self, data: Dict[str, Any]) -> None:
        self.user_payloads.append(data)
        super().manage_users(data)

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class LogCollector:
    """UDP socket standing in for the remote log collector"""

    def __init__(self) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.settimeout(2.0)
        self.host, self.port = self.sock.getsockname()

    def receive(self, timeout: float = 2.0) -> Dict[str, Any]:
        """Return the next datagram as JSON, raising socket.timeout if none arrives"""
        self.sock.settimeout(timeout)
        data, _ = self.sock.recvfrom(65535)
        return json.loads(data.decode('utf-8'))

    def receive_nothing(self, timeout: float = 0.3) -> bool:
        self.sock.settimeout(timeout)
        try:
            self.sock.recvfrom(65535)
        except socket.timeout:
            return True
        return False

    def close(self) -> None:
        self.sock.close()


def wait_for(condition: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll condition until it holds or timeout expires"""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition():
            return True
        time.sleep(0.02)
    return condition()


@pytest.fixture(name='wait_for')
def wait_for_fixture() -> Callable[..., bool]:
    return wait_for


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def variable_store(recording_sink: RecordingSink) -> Generator[VariableStore, None, None]:
    """VariableStore with a recording sink and a long report interval"""
    store = VariableStore(sink=recording_sink, report_interval=60.0)
    yield store
    store.stop()


@pytest.fixture
def log_collector() -> Generator[LogCollector, None, None]:
    collector = LogCollector()
    yield collector
    collector.close()


@pytest.fixture
def log_forwarder(log_collector: LogCollector) -> Generator[RemoteLogForwarder, None, None]:
    """Running forwarder pointed at the local collector, heartbeat effectively off"""
    forwarder = RemoteLogForwarder(
        host=log_collector.host,
        port=log_collector.port,
        heartbeat_interval=3600.0
    )
    forwarder.start()
    yield forwarder
    forwarder.stop()


@pytest.fixture
def dispatcher(variable_store: VariableStore, log_forwarder: RemoteLogForwarder) -> EventDispatcher:
    return EventDispatcher(variable_store=variable_store, log_forwarder=log_forwarder)


@pytest.fixture
def udp_receiver_with_port(
    dispatcher: EventDispatcher
) -> Generator[Tuple[UDPEventReceiver, int], None, None]:
    """Start a UDP receiver on a free localhost port"""
    receiver = UDPEventReceiver(host='127.0.0.1', port=0, dispatcher=dispatcher)
    receiver.start()

    yield receiver, receiver.address[1]

    receiver.stop()


@pytest.fixture
def udp_sender() -> Generator[Callable[[int, Any], None], None, None]:
    """Send a JSON-encodable object (or raw bytes) to a localhost port"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(port: int, payload: Any) -> None:
        data = payload if isinstance(payload, bytes) else json.dumps(payload).encode('utf-8')
        sock.sendto(data, ('127.0.0.1', port))

    yield send
    sock.close()
