"""Exceptions raised by the DHT logger."""


class DhtLoggerError(Exception):
    """Base class for recoverable errors of one poll cycle."""


class SourceError(DhtLoggerError):
    """The byte source failed to deliver a payload."""


class SourceTimeoutError(SourceError):
    """No data arrived before the source timeout."""


class EmptyPayloadError(SourceError):
    """A payload arrived but carried zero sensors."""


class PayloadError(DhtLoggerError):
    """A raw sensor payload is structurally malformed."""


class WireDecodeError(DhtLoggerError):
    """A compact wire payload is inconsistent or invalid."""


class InvalidReadingError(TypeError):
    """A SensorReading was built with both or neither of data and error.

    Signals a programming error. Not a DhtLoggerError, so the poll loop
    does not catch it.
    """
