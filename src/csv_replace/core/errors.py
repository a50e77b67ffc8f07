"""Domain errors raised by the search/replace engine."""

from __future__ import annotations

from collections.abc import Sequence


class CsvReplaceError(Exception):
    """Base class for engine errors."""


class RequestError(CsvReplaceError):
    """Request is missing something required to start processing."""


class AcquisitionError(CsvReplaceError):
    """File bytes could not be obtained."""


class ParseError(CsvReplaceError):
    """File content is not well-formed delimited text."""

    def __init__(self, message: str, *, details: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.details = list(details)


class FieldNotFoundError(CsvReplaceError):
    """Replace operation names fields absent from the file headers."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = list(fields)
        super().__init__(f"Fields not found in CSV headers: {', '.join(self.fields)}")


class PatternError(CsvReplaceError):
    """Search pattern is not a valid regular expression."""


__all__ = [
    "AcquisitionError",
    "CsvReplaceError",
    "FieldNotFoundError",
    "ParseError",
    "PatternError",
    "RequestError",
]
