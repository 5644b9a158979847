from __future__ import annotations
from datetime import datetime
from typing import Annotated, Dict, List

from pydantic import AllowInfNan, BaseModel, ConfigDict, Strict

# Finite number; JSON bools and numeric strings are rejected
WireFloat = Annotated[float, Strict(), AllowInfNan(False)]


class RawMeasurement(BaseModel):
    """Compact JSON for one sensor as sent by the hardware over serial."""

    model_config = ConfigDict(strict=True, extra="ignore", allow_inf_nan=False)

    t: float
    h: float
    hi: float


class SensorDataDoc(BaseModel):
    temperature: float
    humidity: float
    heat_index: float


class SnapshotDoc(BaseModel):
    """Human-readable snapshot used for logging."""

    timestamp: datetime
    data: Dict[str, SensorDataDoc]


class CompactSnapshot(BaseModel):
    """Parallel-array wire form. Index i of every list refers to labels[i]."""

    model_config = ConfigDict(extra="forbid")

    timestamp: datetime
    labels: List[Annotated[str, Strict()]]
    temperature: List[WireFloat]
    humidity: List[WireFloat]
    heat_index: List[WireFloat]


class KeyedSnapshot(BaseModel):
    """Per-field mapping wire form, each mapping keyed by sensor label."""

    model_config = ConfigDict(extra="forbid")

    timestamp: datetime
    temperature: Dict[str, WireFloat]
    humidity: Dict[str, WireFloat]
    heat_index: Dict[str, WireFloat]
