from __future__ import annotations

import logging
import time
from typing import Callable

from ..domain.errors import DhtLoggerError
from ..domain.models import Snapshot
from .ingest import IngestPipeline

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_S = 0.1


class RetryDriver:
    """Bounded retry around IngestPipeline.read_cycle with a fixed backoff."""

    def __init__(
        self,
        pipeline: IngestPipeline,
        backoff_s: float = DEFAULT_BACKOFF_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._pipeline = pipeline
        self._backoff_s = backoff_s
        self._sleep = sleep

    @property
    def pipeline(self) -> IngestPipeline:
        return self._pipeline

    def read_with_retries(self, max_attempts: int) -> Snapshot:
        """
        Read until a snapshot is decoded or `max_attempts` reads have failed.
        A budget of 0 or 1 means a single attempt. When the budget is spent,
        the last error is re-raised unchanged.
        """
        budget = max(1, max_attempts)
        attempt = 0
        while True:
            try:
                return self._pipeline.read_cycle()
            except DhtLoggerError as err:
                attempt += 1
                logger.debug("Read attempt %d/%d failed: %s", attempt, budget, err)
                if attempt >= budget:
                    raise
                self._sleep(self._backoff_s)
