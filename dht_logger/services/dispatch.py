from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..domain.interfaces import DatagramSender
from ..domain.models import Snapshot
from ..wire.codec import WireCodec

logger = logging.getLogger(__name__)

Address = tuple[str, int]


@dataclass
class DispatchReport:
    delivered: list[Address] = field(default_factory=list)
    failed: list[Address] = field(default_factory=list)
    logged: bool = False


class DispatchSink:
    """
    Logs a snapshot and sends its compact form to every configured UDP
    listener. Each channel and each address fails on its own; nothing here
    raises on delivery errors.
    """

    def __init__(
        self,
        codec: WireCodec,
        sender: Optional[DatagramSender] = None,
        addresses: Sequence[Address] = (),
        verbose: bool = False,
    ) -> None:
        if addresses and sender is None:
            raise ValueError("A datagram sender is required when UDP addresses are configured")
        self._codec = codec
        self._sender = sender
        self._addresses = list(addresses)
        self._verbose = verbose

    @property
    def addresses(self) -> list[Address]:
        return list(self._addresses)

    def dispatch(self, snapshot: Snapshot) -> DispatchReport:
        report = DispatchReport()
        report.logged = self._log_snapshot(snapshot)
        if self._addresses:
            self._send_udp(snapshot, report)
        return report

    def _log_snapshot(self, snapshot: Snapshot) -> bool:
        level = logging.INFO if self._verbose else logging.DEBUG
        if not logger.isEnabledFor(level):
            return False
        try:
            logger.log(level, "Received measurement:\n%s", self._codec.pretty(snapshot))
        except (TypeError, ValueError) as e:
            logger.warning("Failed to format measurement for logging: %s", e)
            return False
        return True

    def _send_udp(self, snapshot: Snapshot, report: DispatchReport) -> None:
        try:
            payload = self._codec.encode_bytes(snapshot)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to encode snapshot for UDP: %s", e)
            report.failed.extend(self._addresses)
            return

        logger.debug("%s", payload.decode("utf-8"))
        for addr in self._addresses:
            try:
                n = self._sender.send(payload, addr)
            except OSError as e:
                logger.warning("Failed to send measurement to UDP addr %s:%d: %s", addr[0], addr[1], e)
                report.failed.append(addr)
                continue
            logger.debug("Sent %d bytes to UDP addr: %s:%d", n, addr[0], addr[1])
            report.delivered.append(addr)
