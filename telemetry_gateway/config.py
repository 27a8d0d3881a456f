import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .log_forwarder import DEFAULT_SINK_HOST, DEFAULT_SINK_PORT
from .protocol_sink import DEFAULT_OPCUA_PORT
from .udp_event_receiver import DEFAULT_QUEUE_SIZE, DEFAULT_UDP_PORT, DEFAULT_WORKERS


@dataclass
class GatewayConfig:
    """Runtime settings, read from GATEWAY_* environment variables"""
    udp_host: str = '0.0.0.0'
    udp_port: int = DEFAULT_UDP_PORT
    udp_workers: int = DEFAULT_WORKERS
    udp_queue_size: int = DEFAULT_QUEUE_SIZE
    log_sink_host: str = DEFAULT_SINK_HOST
    log_sink_port: int = DEFAULT_SINK_PORT
    heartbeat_seconds: float = 30.0
    rate_interval_seconds: float = 1.0
    opcua_port: int = DEFAULT_OPCUA_PORT
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'GatewayConfig':
        env = os.environ if environ is None else environ
        return cls(
            udp_host=env.get('GATEWAY_UDP_HOST', '0.0.0.0'),
            udp_port=int(env.get('GATEWAY_UDP_PORT', str(DEFAULT_UDP_PORT))),
            udp_workers=int(env.get('GATEWAY_UDP_WORKERS', str(DEFAULT_WORKERS))),
            udp_queue_size=int(env.get('GATEWAY_UDP_QUEUE_SIZE', str(DEFAULT_QUEUE_SIZE))),
            log_sink_host=env.get('GATEWAY_LOG_SINK_HOST', DEFAULT_SINK_HOST),
            log_sink_port=int(env.get('GATEWAY_LOG_SINK_PORT', str(DEFAULT_SINK_PORT))),
            heartbeat_seconds=float(env.get('GATEWAY_HEARTBEAT_SECONDS', '30')),
            opcua_port=int(env.get('GATEWAY_OPCUA_PORT', str(DEFAULT_OPCUA_PORT))),
            log_level=env.get('GATEWAY_LOG_LEVEL', 'INFO').upper(),
        )
