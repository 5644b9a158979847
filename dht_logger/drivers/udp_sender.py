from __future__ import annotations

import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)


class UdpSender:
    """Sends datagrams from one unbound IPv4 UDP socket."""

    def __init__(self, bind_host: str = "0.0.0.0") -> None:
        self._bind_host = bind_host
        self._sock: Optional[socket.socket] = None

    def _ensure_open(self) -> socket.socket:
        if self._sock is None:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.bind((self._bind_host, 0))
            self._sock = sock
            logger.debug("UDP socket bound to %s:%d", *sock.getsockname())
        return self._sock

    def send(self, payload: bytes, address: tuple[str, int]) -> int:
        return self._ensure_open().sendto(payload, address)

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None
