from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from conftest import ScriptedSource, make_payload
from dht_logger.domain.errors import (
    EmptyPayloadError,
    PayloadError,
    SourceError,
    SourceTimeoutError,
)
from dht_logger.domain.models import SensorData
from dht_logger.services import ingest as ingest_module
from dht_logger.services.ingest import IngestPipeline


def test_read_cycle_keeps_every_valid_sensor() -> None:
    pipeline = IngestPipeline(ScriptedSource([make_payload(10)]))
    snap = pipeline.read_cycle()

    assert len(snap.data) == 10
    for i in range(10):
        assert snap.data[str(i)] == SensorData(float(i), float(i), float(i))


def test_error_entry_is_logged_and_dropped(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="dht_logger.services.ingest")
    payload = {"s1": {"t": 20.0, "h": 50.0, "hi": 20.0}, "s2": {"error": "disconnected"}}
    snap = IngestPipeline(ScriptedSource([payload])).read_cycle()

    assert dict(snap.data) == {"s1": SensorData(20.0, 50.0, 20.0)}
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "s2" in warnings[0].getMessage()
    assert "disconnected" in warnings[0].getMessage()


def test_all_sensors_errored_is_an_empty_snapshot() -> None:
    payload = {"a": {"error": "x"}, "b": {"error": "y"}}
    snap = IngestPipeline(ScriptedSource([payload])).read_cycle()
    assert dict(snap.data) == {}


def test_zero_sensors_is_a_read_failure() -> None:
    pipeline = IngestPipeline(ScriptedSource([{}]))
    with pytest.raises(EmptyPayloadError):
        pipeline.read_cycle()
    assert issubclass(EmptyPayloadError, SourceError)


def test_timeout_propagates() -> None:
    pipeline = IngestPipeline(ScriptedSource([SourceTimeoutError("timeout")]))
    with pytest.raises(SourceTimeoutError):
        pipeline.read_cycle()


def test_os_error_becomes_source_error() -> None:
    pipeline = IngestPipeline(ScriptedSource([OSError("device disconnected")]))
    with pytest.raises(SourceError):
        pipeline.read_cycle()


def test_empty_read_is_a_source_error() -> None:
    pipeline = IngestPipeline(ScriptedSource([b"", b"  \r\n"]))
    with pytest.raises(SourceError):
        pipeline.read_cycle()
    with pytest.raises(SourceError):
        pipeline.read_cycle()


def test_timestamp_is_taken_after_read(monkeypatch) -> None:
    stamp = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(ingest_module, "now_utc", lambda: stamp)
    snap = IngestPipeline(ScriptedSource([make_payload(1)])).read_cycle()
    assert snap.timestamp == stamp


def test_integer_fields_are_accepted() -> None:
    snap = IngestPipeline(ScriptedSource([{"s": {"t": 20, "h": 50, "hi": 21}}])).read_cycle()
    assert snap.data["s"] == SensorData(20.0, 50.0, 21.0)


def test_extra_fields_are_ignored() -> None:
    payload = {"s": {"t": 20.0, "h": 50.0, "hi": 20.0, "pin": 4}}
    snap = IngestPipeline(ScriptedSource([payload])).read_cycle()
    assert snap.data["s"] == SensorData(20.0, 50.0, 20.0)


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[1, 2, 3]",
        b'"text"',
        {"s": 1.5},
        {"s": [20.0, 50.0, 20.0]},
        {"s": {"t": 20.0, "h": 50.0}},
        {"s": {"t": "20.0", "h": 50.0, "hi": 20.0}},
        {"s": {"t": True, "h": 50.0, "hi": 20.0}},
        {"s": {"error": 42}},
        {"s": {"error": "x", "t": 20.0}},
        {"s": {}},
        b'{"s": {"t": NaN, "h": 50.0, "hi": 20.0}}',
        {"": {"t": 20.0, "h": 50.0, "hi": 20.0}},
    ],
)
def test_malformed_payload_fails_the_cycle(payload) -> None:
    pipeline = IngestPipeline(ScriptedSource([payload]))
    with pytest.raises(PayloadError):
        pipeline.read_cycle()


def test_one_malformed_entry_fails_the_whole_cycle() -> None:
    payload = {"good": {"t": 20.0, "h": 50.0, "hi": 20.0}, "bad": {"t": 20.0}}
    with pytest.raises(PayloadError):
        IngestPipeline(ScriptedSource([payload])).read_cycle()


def test_non_canonical_error_key_is_rejected() -> None:
    pipeline = IngestPipeline(ScriptedSource([{"s": {"e": "disconnected"}}]))
    with pytest.raises(PayloadError):
        pipeline.read_cycle()


def test_short_error_key_when_configured() -> None:
    source = ScriptedSource([{"s1": {"t": 1.0, "h": 2.0, "hi": 3.0}, "s2": {"e": "x"}}])
    snap = IngestPipeline(source, error_key="e").read_cycle()
    assert list(snap.data) == ["s1"]

    source = ScriptedSource([{"s": {"error": "x"}}])
    with pytest.raises(PayloadError):
        IngestPipeline(source, error_key="e").read_cycle()


def test_unknown_error_key_setting() -> None:
    with pytest.raises(ValueError):
        IngestPipeline(ScriptedSource([]), error_key="err")
