from __future__ import annotations

import json
from typing import Literal, Union

from pydantic import ValidationError

from ..domain.errors import WireDecodeError
from ..domain.models import SensorData, Snapshot
from .schemas import CompactSnapshot, KeyedSnapshot, SensorDataDoc, SnapshotDoc

WireLayout = Literal["arrays", "keyed"]
WireForm = Union[CompactSnapshot, KeyedSnapshot]


class WireCodec:
    """
    Converts snapshots between the human-readable document and the compact
    wire form sent over UDP.

    The "arrays" layout carries one label list plus one list per field, all
    index-aligned. The "keyed" layout carries one {label: value} mapping per
    field. Decoding accepts either.
    """

    def __init__(self, layout: WireLayout = "arrays") -> None:
        if layout not in ("arrays", "keyed"):
            raise ValueError(f"Unsupported wire layout: {layout}")
        self.layout = layout

    # --- compact form ---

    def encode(self, snapshot: Snapshot) -> WireForm:
        labels = snapshot.labels()
        data = snapshot.data
        if self.layout == "keyed":
            return KeyedSnapshot(
                timestamp=snapshot.timestamp,
                temperature={k: data[k].temperature for k in labels},
                humidity={k: data[k].humidity for k in labels},
                heat_index={k: data[k].heat_index for k in labels},
            )
        return CompactSnapshot(
            timestamp=snapshot.timestamp,
            labels=labels,
            temperature=[data[k].temperature for k in labels],
            humidity=[data[k].humidity for k in labels],
            heat_index=[data[k].heat_index for k in labels],
        )

    def encode_bytes(self, snapshot: Snapshot) -> bytes:
        return self.encode(snapshot).model_dump_json().encode("utf-8")

    def decode(self, wire: WireForm) -> Snapshot:
        if isinstance(wire, KeyedSnapshot):
            return self._decode_keyed(wire)
        if isinstance(wire, CompactSnapshot):
            return self._decode_arrays(wire)
        raise WireDecodeError(f"Unsupported wire form: {type(wire).__name__}")

    def decode_bytes(self, payload: bytes) -> Snapshot:
        try:
            raw = json.loads(payload)
        except (UnicodeDecodeError, ValueError) as e:
            raise WireDecodeError(f"Wire payload is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise WireDecodeError("Wire payload must be a JSON mapping")

        model = CompactSnapshot if "labels" in raw else KeyedSnapshot
        try:
            wire = model.model_validate(raw)
        except ValidationError as e:
            raise WireDecodeError(f"Invalid {model.__name__}: {e}") from e
        return self.decode(wire)

    @staticmethod
    def _decode_arrays(wire: CompactSnapshot) -> Snapshot:
        n = len(wire.labels)
        lengths = {
            "temperature": len(wire.temperature),
            "humidity": len(wire.humidity),
            "heat_index": len(wire.heat_index),
        }
        mismatched = {k: v for k, v in lengths.items() if v != n}
        if mismatched:
            raise WireDecodeError(
                f"Sequence lengths differ from {n} labels: {mismatched}"
            )
        _check_labels(wire.labels)
        if len(set(wire.labels)) != n:
            raise WireDecodeError("Duplicate sensor labels in wire payload")

        data = {
            label: SensorData(temperature=t, humidity=h, heat_index=hi)
            for label, t, h, hi in zip(wire.labels, wire.temperature, wire.humidity, wire.heat_index)
        }
        return Snapshot(timestamp=wire.timestamp, data=data)

    @staticmethod
    def _decode_keyed(wire: KeyedSnapshot) -> Snapshot:
        keys = sorted(wire.temperature)
        if sorted(wire.humidity) != keys or sorted(wire.heat_index) != keys:
            raise WireDecodeError(
                "Field mappings have different sensor labels: "
                f"temperature={keys} humidity={sorted(wire.humidity)} "
                f"heat_index={sorted(wire.heat_index)}"
            )
        _check_labels(keys)

        data = {
            k: SensorData(
                temperature=wire.temperature[k],
                humidity=wire.humidity[k],
                heat_index=wire.heat_index[k],
            )
            for k in keys
        }
        return Snapshot(timestamp=wire.timestamp, data=data)

    # --- human-readable form ---

    @staticmethod
    def to_document(snapshot: Snapshot) -> SnapshotDoc:
        return SnapshotDoc(
            timestamp=snapshot.timestamp,
            data={
                k: SensorDataDoc(
                    temperature=v.temperature,
                    humidity=v.humidity,
                    heat_index=v.heat_index,
                )
                for k, v in sorted(snapshot.data.items())
            },
        )

    @staticmethod
    def from_document(doc: SnapshotDoc) -> Snapshot:
        return Snapshot(
            timestamp=doc.timestamp,
            data={
                k: SensorData(
                    temperature=v.temperature,
                    humidity=v.humidity,
                    heat_index=v.heat_index,
                )
                for k, v in doc.data.items()
            },
        )

    def pretty(self, snapshot: Snapshot) -> str:
        return self.to_document(snapshot).model_dump_json(indent=2)


def _check_labels(labels) -> None:
    if any(not label for label in labels):
        raise WireDecodeError("Sensor labels must be non-empty strings")
