from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Union

from .errors import InvalidReadingError


@dataclass(frozen=True)
class SensorData:
    """A single reading of one DHT sensor, in the sensor's native units."""

    temperature: float
    humidity: float
    heat_index: float

    @classmethod
    def from_raw(cls, t: float, h: float, hi: float) -> SensorData:
        return cls(temperature=float(t), humidity=float(h), heat_index=float(hi))


class SensorReading:
    """Result of reading one sensor: either `Measured` or `Failed`."""

    __slots__ = ()

    def __new__(cls, *args, **kwargs):
        if cls is SensorReading:
            raise InvalidReadingError("Build a Measured or Failed reading, or use SensorReading.new().")
        return super().__new__(cls)

    @staticmethod
    def new(data: Optional[SensorData] = None, error: Optional[str] = None) -> SensorReading:
        if (data is None) == (error is None):
            raise InvalidReadingError("Exactly one of data or error must be given.")
        if data is not None:
            return Measured(data)
        return Failed(error)

    def is_measurement(self) -> bool:
        return isinstance(self, Measured)

    def is_error(self) -> bool:
        return isinstance(self, Failed)


@dataclass(frozen=True)
class Measured(SensorReading):
    data: SensorData

    def __post_init__(self) -> None:
        if not isinstance(self.data, SensorData):
            raise InvalidReadingError(f"Measured reading needs SensorData, got {self.data!r}")


@dataclass(frozen=True)
class Failed(SensorReading):
    error: str

    def __post_init__(self) -> None:
        if not isinstance(self.error, str):
            raise InvalidReadingError(f"Failed reading needs an error message, got {self.error!r}")


Reading = Union[Measured, Failed]


@dataclass(frozen=True)
class Snapshot:
    """All successful sensor readings of one poll cycle."""

    timestamp: datetime
    data: Mapping[str, SensorData] = field(default_factory=dict)

    # unhashable: data is a dict
    __hash__ = None  # type: ignore[assignment]

    def labels(self) -> list[str]:
        return sorted(self.data)
