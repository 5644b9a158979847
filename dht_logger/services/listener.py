from __future__ import annotations

import logging
import socket
from typing import Optional

from ..domain.errors import SourceError, SourceTimeoutError
from ..domain.models import Snapshot
from ..wire.codec import WireCodec

logger = logging.getLogger(__name__)

MAX_DATAGRAM = 65507


class UdpListener:
    """Receives compact snapshots sent by DispatchSink and decodes them."""

    def __init__(
        self,
        bind_host: str = "0.0.0.0",
        bind_port: int = 0,
        codec: Optional[WireCodec] = None,
        timeout_s: Optional[float] = 1.0,
    ) -> None:
        self._codec = codec or WireCodec()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.bind((bind_host, bind_port))
        self._sock.settimeout(timeout_s)

    @property
    def address(self) -> tuple[str, int]:
        return self._sock.getsockname()

    def receive(self) -> Snapshot:
        """Block for one datagram. Raises SourceTimeoutError, SourceError or WireDecodeError."""
        try:
            payload, sender = self._sock.recvfrom(MAX_DATAGRAM)
        except socket.timeout as e:
            raise SourceTimeoutError("No datagram received before timeout") from e
        except OSError as e:
            raise SourceError(f"UDP receive failed: {e}") from e
        logger.debug("Received %d bytes from %s:%d", len(payload), *sender)
        return self._codec.decode_bytes(payload)

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> UdpListener:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
