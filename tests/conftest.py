from __future__ import annotations

import json
import os
from collections import deque
from typing import Iterable, Optional, Union

import pytest

from dht_logger.domain.errors import SourceError, SourceTimeoutError


class ScriptedSource:
    """Byte source that replays a fixed script of payloads and failures."""

    def __init__(self, script: Iterable[Union[bytes, dict, Exception]]) -> None:
        self._script = deque(script)
        self.reads = 0
        self.closed = False

    @property
    def name(self) -> Optional[str]:
        return None

    def read(self) -> bytes:
        self.reads += 1
        if not self._script:
            raise SourceTimeoutError("script exhausted")
        item = self._script.popleft()
        if isinstance(item, Exception):
            raise item
        if isinstance(item, dict):
            return json.dumps(item).encode("utf-8")
        return item

    def close(self) -> None:
        self.closed = True


class FailingSource(ScriptedSource):
    """Byte source whose every read fails with the same error."""

    def __init__(self, error: Exception) -> None:
        super().__init__([])
        self.error = error

    def read(self) -> bytes:
        self.reads += 1
        raise self.error


class RecordingSender:
    """Datagram sender that records payloads and can fail for chosen addresses."""

    def __init__(self, fail_for: Iterable[tuple[str, int]] = ()) -> None:
        self.fail_for = set(fail_for)
        self.sent: list[tuple[bytes, tuple[str, int]]] = []

    def send(self, payload: bytes, address: tuple[str, int]) -> int:
        if address in self.fail_for:
            raise ConnectionRefusedError(f"refused by {address}")
        self.sent.append((payload, address))
        return len(payload)

    def close(self) -> None:
        pass


def make_payload(n: int) -> dict:
    return {str(i): {"t": float(i), "h": float(i), "hi": float(i)} for i in range(n)}


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # keep a developer's .env or DHT_* variables out of the tests
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("DHT_"):
            monkeypatch.delenv(key)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def source_error() -> SourceError:
    return SourceError("serial port disconnected")
