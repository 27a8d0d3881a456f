import logging
import queue
import socket
import threading
from typing import List, Optional, Tuple

from .dispatcher import EventDispatcher
from .errors import AlreadyRunningError, BindError, DecodeError
from .events import EventParser
from .lifecycle import ComponentState

logger = logging.getLogger(__name__)

DEFAULT_UDP_PORT = 8000
DEFAULT_WORKERS = 4
DEFAULT_QUEUE_SIZE = 1024
RECV_BUFFER_SIZE = 4096  # larger datagrams are truncated
READ_TIMEOUT = 0.1

Datagram = Tuple[bytes, Tuple[str, int]]


class UDPEventReceiver:
    """Receive JSON events over UDP and hand them to a bounded worker pool"""

    def __init__(self, host: str = '0.0.0.0', port: int = DEFAULT_UDP_PORT,
                 dispatcher: Optional[EventDispatcher] = None,
                 num_workers: int = DEFAULT_WORKERS,
                 queue_size: int = DEFAULT_QUEUE_SIZE,
                 buffer_size: int = RECV_BUFFER_SIZE,
                 read_timeout: float = READ_TIMEOUT) -> None:
        """
        Initialize UDP event receiver.

        Args:
            host: Interface to bind to
                  - '0.0.0.0' = All interfaces (default)
                  - '127.0.0.1' = Localhost only (development)
            port: UDP port to listen on (default: 8000, 0 picks a free port)
            dispatcher: Receives each decoded event
            num_workers: Threads decoding and dispatching datagrams
            queue_size: Datagrams waiting for a worker before new ones are rejected
            buffer_size: Bytes read per datagram
            read_timeout: Socket timeout bounding how long stop() waits on a read
        """
        self.host: str = host
        self.port: int = port
        self.dispatcher: Optional[EventDispatcher] = dispatcher
        self.num_workers: int = num_workers
        self.buffer_size: int = buffer_size
        self.read_timeout: float = read_timeout

        self.state: ComponentState = ComponentState.STOPPED
        self.dropped: int = 0
        self.sock: Optional[socket.socket] = None
        self.lock: threading.Lock = threading.Lock()

        self.datagram_queue: "queue.Queue[Optional[Datagram]]" = queue.Queue(maxsize=queue_size)
        self._receive_thread: Optional[threading.Thread] = None
        self._workers: List[threading.Thread] = []

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); reflects the real port once started"""
        return self.host, self.port

    @property
    def running(self) -> bool:
        return self.state is ComponentState.RUNNING

    def start(self) -> None:
        """Bind the socket and start the receive loop and workers"""
        with self.lock:
            if self.state is not ComponentState.STOPPED:
                raise AlreadyRunningError("UDP receiver already running")

            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                sock.bind((self.host, self.port))
            except (OSError, OverflowError) as e:
                sock.close()
                raise BindError(f"failed to listen on UDP {self.host}:{self.port}: {e}") from e
            sock.settimeout(self.read_timeout)

            self.sock = sock
            self.port = sock.getsockname()[1]
            self.state = ComponentState.RUNNING

            self._workers = [
                threading.Thread(target=self._worker_loop, name=f'udp-worker-{i}', daemon=True)
                for i in range(self.num_workers)
            ]
            for worker in self._workers:
                worker.start()

            self._receive_thread = threading.Thread(
                target=self._receive_loop,
                args=(sock,),
                name='udp-receiver',
                daemon=True
            )
            self._receive_thread.start()

        logger.info(f"UDP receiver started on {self.host}:{self.port}")

    def stop(self) -> None:
        """Stop receiving, then drain the queue and join every worker"""
        with self.lock:
            if self.state is not ComponentState.RUNNING:
                return
            self.state = ComponentState.STOPPING
            sock = self.sock
            self.sock = None
            receive_thread = self._receive_thread
            workers = self._workers
            self._receive_thread = None
            self._workers = []

        # The read timeout bounds this join; close only once nothing reads the socket
        if receive_thread is not None:
            receive_thread.join()
        if sock is not None:
            sock.close()

        # One sentinel per worker, queued behind any pending datagrams
        for _ in workers:
            self.datagram_queue.put(None)
        for worker in workers:
            worker.join()

        with self.lock:
            self.state = ComponentState.STOPPED

        logger.info("UDP receiver stopped")

    def _receive_loop(self, sock: socket.socket) -> None:
        while self.running:
            try:
                data, addr = sock.recvfrom(self.buffer_size)
            except socket.timeout:
                continue
            except OSError as e:
                if self.running:
                    logger.error(f"Error reading from UDP: {e}")
                continue

            self._enqueue((data, addr))

    def _enqueue(self, datagram: Datagram) -> None:
        try:
            self.datagram_queue.put_nowait(datagram)
        except queue.Full:
            self.dropped += 1
            logger.warning(f"Worker queue full, dropping datagram from {datagram[1][0]}:{datagram[1][1]}")

    def _worker_loop(self) -> None:
        while True:
            item = self.datagram_queue.get()
            if item is None:
                break

            data, addr = item
            try:
                self._process_datagram(data, addr)
            except Exception as e:
                logger.error(f"Error processing datagram from {addr[0]}:{addr[1]}: {e}", exc_info=True)

    def _process_datagram(self, data: bytes, addr: Tuple[str, int]) -> None:
        """Decode a single datagram and dispatch it"""
        try:
            payload = EventParser.decode(data)
        except DecodeError as e:
            logger.warning(f"Failed to decode JSON from {addr[0]}:{addr[1]}: {e}")
            return

        if self.dispatcher:
            self.dispatcher.dispatch(payload)
