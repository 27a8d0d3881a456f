import logging
import socket
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .events import VariableUpdate

logger = logging.getLogger(__name__)

DEFAULT_OPCUA_PORT = 49320

# (security policy, message security mode)
DEFAULT_SECURITY_POLICIES: Tuple[Tuple[str, str], ...] = (
    ('None', 'None'),
    ('Basic128Rsa15', 'Sign'),
    ('Basic128Rsa15', 'SignAndEncrypt'),
    ('Basic256', 'Sign'),
    ('Basic256', 'SignAndEncrypt'),
    ('Basic256Sha256', 'SignAndEncrypt'),
    ('Basic256Sha256', 'Sign'),
    ('Aes128_Sha256_RsaOaep', 'Sign'),
    ('Aes128_Sha256_RsaOaep', 'SignAndEncrypt'),
    ('Aes256_Sha256_RsaPss', 'Sign'),
    ('Aes256_Sha256_RsaPss', 'SignAndEncrypt'),
)

DEFAULT_AUTH_MODES: Tuple[str, ...] = ('anonymous', 'username', 'certificate')


class ProtocolSink:
    """
    In-process handle on the OPC UA server that receives variable updates.

    The address space, sessions and security negotiation belong to the
    server itself; this object only carries its configuration knobs and
    accepts updates while open.
    """

    def __init__(self,
                 port: int = DEFAULT_OPCUA_PORT,
                 hostname: Optional[str] = None,
                 security_policies: Sequence[Tuple[str, str]] = DEFAULT_SECURITY_POLICIES,
                 auth_modes: Sequence[str] = DEFAULT_AUTH_MODES) -> None:
        self.port: int = port
        self.hostname: str = hostname or socket.gethostname()
        self.security_policies: List[Tuple[str, str]] = list(security_policies)
        self.auth_modes: List[str] = list(auth_modes)
        self.is_open: bool = False
        self.lock: threading.Lock = threading.Lock()

    @property
    def endpoints(self) -> List[Tuple[str, int]]:
        """Wildcard, local hostname and literal localhost, all on one port"""
        return [
            ('0.0.0.0', self.port),
            (self.hostname, self.port),
            ('localhost', self.port),
        ]

    def open(self) -> None:
        with self.lock:
            self.is_open = True

        for host, port in self.endpoints:
            logger.info(f"OPC UA endpoint opc.tcp://{host}:{port}")
        logger.debug(f"Security policies: {self.security_policies}, auth modes: {self.auth_modes}")
        logger.info(f"OPC UA Server started on port {self.port}")

    def publish(self, update: VariableUpdate) -> None:
        with self.lock:
            if not self.is_open:
                logger.debug(f"Protocol sink closed, dropping update for {update.tag}")
                return
        logger.debug(f"Published {update.namespace};{update.path} = {update.value!r}")

    def manage_users(self, data: Dict[str, Any]) -> None:
        logger.info(f"Managing OPC UA users: {data}")

    def close(self) -> None:
        with self.lock:
            if not self.is_open:
                return
            self.is_open = False
        logger.info("OPC UA Server stopped")
