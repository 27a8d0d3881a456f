"""
Telemetry Gateway Package

Bridges inbound UDP JSON events to an OPC UA variable store and a
remote UDP log collector.
"""

from .application import GatewayApplication
from .config import GatewayConfig
from .dispatcher import EventDispatcher
from .events import EventParser, SinkEndpoint, VariableUpdate
from .log_forwarder import RemoteLogForwarder
from .protocol_sink import ProtocolSink
from .udp_event_receiver import UDPEventReceiver
from .variable_store import VariableStore

__all__ = [
    'EventDispatcher',
    'EventParser',
    'GatewayApplication',
    'GatewayConfig',
    'ProtocolSink',
    'RemoteLogForwarder',
    'SinkEndpoint',
    'UDPEventReceiver',
    'VariableStore',
    'VariableUpdate',
]

__version__ = '1.0.0'
