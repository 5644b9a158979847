from __future__ import annotations
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ByteSource(Protocol):
    """Blocking source of raw sensor payloads.

    `read` waits up to the source's configured timeout and raises
    SourceTimeoutError when nothing arrives, SourceError on other failures.
    """

    @property
    def name(self) -> Optional[str]:
        ...

    def read(self) -> bytes:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class DatagramSender(Protocol):
    def send(self, payload: bytes, address: tuple[str, int]) -> int:
        ...

    def close(self) -> None:
        ...
