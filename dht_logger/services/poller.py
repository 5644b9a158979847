from __future__ import annotations
import logging
import threading
from typing import Optional

from ..domain.errors import DhtLoggerError
from ..domain.models import Snapshot
from .dispatch import DispatchSink
from .retry import RetryDriver

logger = logging.getLogger(__name__)

LOOP_RETRIES = 10


class Poller:
    """Runs poll cycles one after another: read with retries, then dispatch."""

    def __init__(
        self,
        driver: RetryDriver,
        sink: DispatchSink,
        retries: int = LOOP_RETRIES,
        poll_interval_s: float = 0.0,
    ) -> None:
        self._driver = driver
        self._sink = sink
        self._retries = retries
        self._poll_interval_s = poll_interval_s
        self.cycles = 0
        self.skipped = 0

    def poll_once(self) -> Optional[Snapshot]:
        self.cycles += 1
        try:
            snapshot = self._driver.read_with_retries(self._retries)
        except DhtLoggerError as e:
            self.skipped += 1
            logger.info("Skipping cycle %d after %d attempt(s): %s", self.cycles, max(1, self._retries), e)
            return None

        self._sink.dispatch(snapshot)
        return snapshot

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        stop = stop_event or threading.Event()
        logger.info(
            "Poll loop started (retries=%s poll_interval_s=%s)",
            self._retries,
            self._poll_interval_s,
        )
        try:
            while not stop.is_set():
                self.poll_once()
                if self._poll_interval_s > 0:
                    stop.wait(self._poll_interval_s)
        except KeyboardInterrupt:
            logger.info("Shutting down")
        logger.info("Poll loop stopped (cycles=%d skipped=%d)", self.cycles, self.skipped)
