from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import serial

from ..domain.errors import SourceError, SourceTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class SerialConfig:
    port: str = "/dev/ttyUSB0"      # Windows example: "COM3"
    baudrate: int = 115200
    bytesize: int = 8
    parity: str = "N"               # "N", "E", "O"
    stopbits: int = 1
    timeout_s: float = 4.0
    buffer_size: int = 1024
    reconnect_backoff_s: float = 1.0
    max_reconnect_backoff_s: float = 10.0


class SerialSource:
    """
    Serial/USB byte source.
    Responsible for: open/reopen, reading one newline-terminated JSON frame.
    """

    def __init__(self, cfg: SerialConfig, port: Optional[serial.Serial] = None):
        self.cfg = cfg
        self._port = port
        self._backoff = cfg.reconnect_backoff_s

    @property
    def name(self) -> Optional[str]:
        return self.cfg.port

    def connect(self) -> None:
        if self._port is not None and self._port.is_open:
            return
        try:
            self._port = serial.Serial(
                port=self.cfg.port,
                baudrate=self.cfg.baudrate,
                bytesize=self.cfg.bytesize,
                parity=self.cfg.parity,
                stopbits=self.cfg.stopbits,
                timeout=self.cfg.timeout_s,
            )
        except (serial.SerialException, ValueError) as e:
            raise SourceError(f"Failed to open port {self.cfg.port}: {e}") from e
        self._backoff = self.cfg.reconnect_backoff_s
        logger.info("Serial port open on %s (baud=%s)", self.cfg.port, self.cfg.baudrate)
        logger.debug("Data bits: %s", self._port.bytesize)
        logger.debug("Parity: %s", self._port.parity)
        logger.debug("Stop bits: %s", self._port.stopbits)
        logger.debug("Timeout: %s", self._port.timeout)

    def close(self) -> None:
        if self._port is None:
            return
        try:
            self._port.close()
        finally:
            self._port = None

    def _ensure_connected(self) -> serial.Serial:
        if self._port is not None and self._port.is_open:
            return self._port
        # one reopen attempt per call, bounded backoff on failure
        try:
            self.connect()
        except SourceError as e:
            logger.warning("Serial reopen failed: %s", e)
            time.sleep(self._backoff)
            self._backoff = min(self._backoff * 2, self.cfg.max_reconnect_backoff_s)
            raise
        return self._port

    def read(self) -> bytes:
        """
        Read one frame, blocking up to `timeout_s`. Raises SourceTimeoutError
        when nothing arrives and SourceError on I/O failures.
        """
        port = self._ensure_connected()
        try:
            data = port.read_until(b"\n", self.cfg.buffer_size)
        except serial.SerialException as e:
            # Mark disconnected so next call attempts reopen
            self.close()
            raise SourceError(f"Serial read error on {self.cfg.port}: {e}") from e

        if not data:
            raise SourceTimeoutError(f"No data on {self.cfg.port} within {self.cfg.timeout_s}s")
        if not data.endswith(b"\n") and len(data) >= self.cfg.buffer_size:
            raise SourceError(f"Frame exceeds {self.cfg.buffer_size} bytes on {self.cfg.port}")
        return data
