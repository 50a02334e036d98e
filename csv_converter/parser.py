"""
Delimited text -> Dataset.

Responsibilities:
- upload validation (name / declared type)
- UTF-8 decoding, with an encoding guess when that fails
- dialect (delimiter) detection
- header extraction and blank-line skipping
- row length enforcement
- integer coercion
"""

from __future__ import annotations

import csv
import io
import logging
import re
from typing import Any, Dict, List, Optional

from charset_normalizer import from_bytes

from . import rules
from .errors import EmptyResult, InvalidFormat, ParseFailure
from .models import Dataset, ParseReport, ParseResult, ReportItem, ReportSummary

logger = logging.getLogger(__name__)

_INTEGER = re.compile(rules.INTEGER_PATTERN, re.ASCII)


def validate_upload(filename: Optional[str], content_type: Optional[str]) -> None:
    """
    Fail fast on uploads that are neither named nor declared as CSV.

    Either signal is enough: ``data.txt`` sent as ``text/csv`` is accepted.
    """
    name_ok = (filename or "").lower().endswith(rules.ACCEPTED_EXTENSION)
    mime = (content_type or "").split(";")[0].strip().lower()
    if name_ok or mime in rules.ACCEPTED_MIME_TYPES:
        return
    raise InvalidFormat(f"Only CSV files are supported (got {filename!r}, {content_type!r})")


def decode_utf8(raw: bytes) -> str:
    try:
        return raw.decode(rules.SOURCE_ENCODING)
    except UnicodeDecodeError as exc:
        match = from_bytes(raw).best()
        guess = match.encoding if match is not None else "unknown"
        raise ParseFailure(
            f"File is not valid UTF-8 (byte {exc.start}); detected encoding: {guess}"
        ) from exc


def detect_delimiter(text: str) -> str:
    sample = text[: rules.SNIFF_SAMPLE_CHARS]
    try:
        return csv.Sniffer().sniff(sample, delimiters=rules.SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return rules.DEFAULT_DELIMITER


def coerce_value(value: str) -> Any:
    """
    Canonical integers of at most 15 digits become ``int``; every other
    field stays a string.
    """
    if _INTEGER.fullmatch(value) and len(value.lstrip("-")) <= rules.MAX_INTEGER_DIGITS:
        return int(value)
    return value


def _is_blank(row: List[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def _check_header(header: List[str]) -> None:
    for position, name in enumerate(header, start=1):
        if not name:
            raise ParseFailure(f"Header column {position} has no name")
    seen = set()
    for name in header:
        if name in seen:
            raise ParseFailure(f"Duplicate header column {name!r}")
        seen.add(name)


def parse_csv_bytes(
    raw: bytes,
    *,
    delimiter: Optional[str] = None,
    coerce_numbers: bool = True,
    long_rows: str = rules.LONG_ROW_TRUNCATE,
) -> ParseResult:
    """
    Parse delimited text into a Dataset.

    Rules:
    - The first non-blank line is the header; it fixes column names and order.
    - Blank lines are skipped anywhere in the file.
    - Short rows are padded with None and reported.
    - Long rows are truncated and reported, or rejected when
      ``long_rows == "reject"``.
    - Header-only input raises EmptyResult, which carries the empty dataset.
    """
    if long_rows not in (rules.LONG_ROW_TRUNCATE, rules.LONG_ROW_REJECT):
        raise ValueError(f"Unknown long row policy: {long_rows!r}")

    text = decode_utf8(raw)
    delim = delimiter or detect_delimiter(text)

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delim, strict=True)
    header: Optional[List[str]] = None
    records: List[Dict[str, Any]] = []
    warnings: List[ReportItem] = []

    try:
        for row in reader:
            if _is_blank(row):
                continue

            if header is None:
                header = row
                _check_header(header)
                continue

            width = len(header)
            if len(row) < width:
                warnings.append(ReportItem(
                    line=reader.line_num,
                    column=header[len(row)],
                    issue="row_too_short",
                    value=str(len(row)),
                    action="padded_with_null",
                ))
            elif len(row) > width:
                if long_rows == rules.LONG_ROW_REJECT:
                    raise ParseFailure(
                        f"Line {reader.line_num} has {len(row)} fields, expected {width}"
                    )
                warnings.append(ReportItem(
                    line=reader.line_num,
                    issue="row_too_long",
                    value=str(len(row)),
                    action=f"truncated_to_{width}",
                ))
                row = row[:width]

            values = [coerce_value(v) if coerce_numbers else v for v in row]
            values.extend([None] * (width - len(values)))
            records.append(dict(zip(header, values)))
    except csv.Error as exc:
        raise ParseFailure(f"Malformed CSV near line {reader.line_num}: {exc}") from exc

    if header is None:
        raise ParseFailure("File has no header row")

    for item in warnings:
        logger.debug("line %s: %s (%s)", item.line, item.issue, item.action)

    dataset = Dataset(columns=tuple(header), records=tuple(records))
    report = ParseReport(
        summary=ReportSummary(
            rows=len(records),
            columns=len(header),
            delimiter=delim,
            warnings=len(warnings),
        ),
        warnings=warnings,
    )

    if dataset.is_empty:
        raise EmptyResult(dataset, report)

    logger.info("Parsed %d records with %d columns", len(records), len(header))
    return ParseResult(dataset=dataset, report=report)
