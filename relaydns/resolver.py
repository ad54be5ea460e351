"""
Upstream DNS forwarder: relays a raw query to the single upstream server.
"""

import socket
import logging
from typing import Optional

from .protocol import MAX_MESSAGE_SIZE, parse_ttl

logger = logging.getLogger(__name__)


def resolve_upstream(
    query: bytes,
    server: str,
    port: int = 53,
    timeout: Optional[float] = None,
) -> tuple[bytes, int]:
    """
    Forward a raw DNS query upstream.
    Returns (reply, ttl), or (b"", 0) if the exchange fails.
    """
    try:
        reply = _query_udp(query, server, port, timeout)
    except OSError as e:
        logger.warning(f"Upstream {server}:{port} failed: {e}")
        return b"", 0

    if not reply:
        logger.warning(f"Upstream {server}:{port} returned an empty reply")
        return b"", 0

    return reply, parse_ttl(reply)


def _query_udp(
    query: bytes,
    server: str,
    port: int,
    timeout: Optional[float],
) -> bytes:
    """Send one datagram on a fresh socket and read one datagram back."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.settimeout(timeout)
        sock.connect((server, port))
        sock.send(query)
        return sock.recv(MAX_MESSAGE_SIZE)
