"""
Exception hierarchy for the arena and the ``.cad`` codec.

Per-record anomalies (an index no hypothesis can place) are raised as
``MalformedRecord`` inside the loader and absorbed into the load report.
Everything deriving from ``CadLoadError`` aborts the current load or save.
"""

from __future__ import annotations


class CadError(Exception):
    """Base class for every error raised by iwacad."""


class CapacityExceeded(CadError):
    def __init__(self, table: str, capacity: int) -> None:
        super().__init__(f"{table} table is full ({capacity} records)")
        self.table = table
        self.capacity = capacity


class RecordNotFound(CadError, LookupError):
    def __init__(self, table: str, index: int) -> None:
        super().__init__(f"no valid {table} record at index {index}")
        self.table = table
        self.index = index


class MalformedRecord(CadError):
    def __init__(self, message: str, *, offset: int | None = None, tag: int | None = None, raw_index: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset
        self.tag = tag
        self.raw_index = raw_index


class FaceError(CadError, ValueError):
    """A face could not be built from the requested points."""


class CadLoadError(CadError):
    def __init__(self, message: str, *, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class IOFailure(CadLoadError):
    """The file could not be opened, read or written."""


class FormatMismatch(CadLoadError):
    """The stream is not in a format we understand."""

    def __init__(self, message: str, *, offset: int | None = None, tag: int | None = None, peek: bytes = b"") -> None:
        super().__init__(message, offset=offset)
        self.tag = tag
        self.peek = peek


class TruncatedStream(CadLoadError):
    """The stream ended inside a record."""
