from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict

from pydantic import ValidationError

from ..core.timeutil import now_utc
from ..domain.errors import EmptyPayloadError, PayloadError, SourceError
from ..domain.interfaces import ByteSource
from ..domain.models import Failed, Reading, SensorData, SensorReading, Snapshot
from ..wire.schemas import RawMeasurement

logger = logging.getLogger(__name__)

ERROR_KEYS = ("error", "e")


class IngestPipeline:
    """
    Reads one raw payload from the source and turns it into a Snapshot.

    Raw payloads map each sensor label to either {"t", "h", "hi"} or a
    single-key error mapping. Sensors that report an error are logged and
    left out of the snapshot. Structural problems fail the whole cycle.
    """

    def __init__(self, source: ByteSource, error_key: str = "error") -> None:
        if error_key not in ERROR_KEYS:
            raise ValueError(f"Unsupported error key: {error_key!r}")
        self._source = source
        self._error_key = error_key

    @property
    def source(self) -> ByteSource:
        return self._source

    def read_cycle(self) -> Snapshot:
        """Block for one payload and decode it.

        Raises SourceError (including timeouts and empty payloads) or
        PayloadError. A cycle where every sensor errored still returns a
        Snapshot, with no entries.
        """
        try:
            payload = self._source.read()
        except OSError as e:
            raise SourceError(f"Source read failed: {e}") from e
        if not payload or not payload.strip():
            raise SourceError("No data to be read")
        timestamp = now_utc()

        raw = self._parse(payload)
        if not raw:
            raise EmptyPayloadError("Sensor payload contains no sensors")

        data: Dict[str, SensorData] = {}
        for label, entry in raw.items():
            reading = self.classify(label, entry)
            if isinstance(reading, Failed):
                logger.warning("Error reading '%s' sensor: %s", label, reading.error)
                continue
            data[label] = reading.data

        logger.debug("Decoded %d/%d sensors", len(data), len(raw))
        return Snapshot(timestamp=timestamp, data=data)

    @staticmethod
    def _parse(payload: bytes) -> Mapping[str, Any]:
        try:
            raw = json.loads(payload)
        except (UnicodeDecodeError, ValueError) as e:
            raise PayloadError(f"Sensor payload is not valid JSON: {e}") from e
        if not isinstance(raw, Mapping):
            raise PayloadError("DHT logger data must be a JSON mapping")
        return raw

    def classify(self, label: str, entry: Any) -> Reading:
        if not label:
            raise PayloadError("Sensor label must be a non-empty string")
        if not isinstance(entry, Mapping):
            raise PayloadError(f"Sensor value must be a JSON mapping, got value: {entry!r}")

        error_keys = [k for k in ERROR_KEYS if k in entry]
        if error_keys:
            if error_keys != [self._error_key]:
                raise PayloadError(
                    f"Sensor '{label}' uses unsupported error key(s) {error_keys}, "
                    f"expected {self._error_key!r}"
                )
            if len(entry) != 1:
                raise PayloadError(f"Error entry for sensor '{label}' has extra keys: {sorted(entry)}")
            error = entry[self._error_key]
            if not isinstance(error, str):
                raise PayloadError(f"Error value must be a string, got value: {error!r}")
            return SensorReading.new(error=error)

        try:
            fields = RawMeasurement.model_validate(entry)
        except ValidationError as e:
            raise PayloadError(f"Malformed reading for sensor '{label}': {e}") from e
        return SensorReading.new(data=SensorData.from_raw(fields.t, fields.h, fields.hi))
