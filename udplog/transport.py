"""UDP transport producing human-readable log records from datagrams."""

import logging
import socket
from datetime import datetime
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1024


def rfc3339_now(now: Optional[datetime] = None) -> str:
    """RFC 3339 timestamp at second precision, in local time unless ``now`` is aware.

    A zero UTC offset is written as ``Z``.
    """
    now = now or datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()
    stamp = now.isoformat(timespec='seconds')
    if stamp.endswith('+00:00'):
        stamp = stamp[:-6] + 'Z'
    return stamp


def format_sender(address: Tuple) -> str:
    host, port = address[0], address[1]
    if ':' in host:
        return f'[{host}]:{port}'
    return f'{host}:{port}'


def format_record(payload: bytes, sender: Tuple, now: Optional[datetime] = None) -> str:
    """Build the record string stored for one received datagram.

    The payload is decoded as UTF-8 with invalid bytes replaced, and any
    trailing line terminators sent by syslog-style clients are dropped.
    """
    text = payload.decode('utf-8', errors='replace').rstrip('\r\n')
    return f'[{rfc3339_now(now)}] Received message from {format_sender(sender)}: {text}'


class UdpTransport:
    """Bound UDP socket that yields one decoded record per datagram."""

    def __init__(
        self,
        host: str = '0.0.0.0',
        port: int = 514,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        timeout: float = 1.0,
    ):
        """Bind the socket.

        Args:
            host: Address to bind (IPv6 literals select an AF_INET6 socket).
            port: UDP port to bind.
            buffer_size: Maximum bytes read per datagram; longer datagrams are truncated.
            timeout: Seconds ``receive`` waits before returning None.

        Raises:
            OSError: If the address cannot be bound.
        """
        family = socket.AF_INET6 if ':' in host else socket.AF_INET
        self.buffer_size = buffer_size
        self._sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            self._sock.bind((host, port))
        except OSError:
            self._sock.close()
            raise
        self._sock.settimeout(timeout)
        self._closed = False
        logger.info('Listening on UDP %s', format_sender(self.address))

    @property
    def address(self) -> Tuple:
        return self._sock.getsockname()

    @property
    def closed(self) -> bool:
        return self._closed

    def receive(self) -> Optional[str]:
        """Wait for one datagram and return it as a formatted record.

        Returns None when the timeout expires without traffic. Socket errors
        propagate as OSError.
        """
        try:
            payload, sender = self._sock.recvfrom(self.buffer_size)
        except socket.timeout:
            return None
        return format_record(payload, sender)

    def close(self):
        if not self._closed:
            self._closed = True
            self._sock.close()
            logger.info('UDP transport closed')
