"""Converter exception hierarchy.

Every failure an upload can produce maps to one of these types, so the
ingestion boundary can turn them into a visible status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import Dataset, ParseReport


class ConverterError(Exception):
    """Base exception for all conversion failures."""

    kind = "converter_error"


class InvalidFormat(ConverterError):
    """Raised when the upload's name and declared type are not CSV."""

    kind = "invalid_format"


class ParseFailure(ConverterError):
    """Raised for undecodable or malformed delimited text."""

    kind = "parse_failure"


class EmptyResult(ConverterError):
    """Raised when a well-formed file holds a header but no data rows."""

    kind = "empty_result"

    def __init__(self, dataset: "Dataset", report: "ParseReport"):
        super().__init__("File contains a header row but no records")
        self.dataset = dataset
        self.report = report
