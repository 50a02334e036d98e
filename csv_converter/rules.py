"""
Deterministic conversion rules.

This file exists to make policies explicit and enforceable.
"""

from datetime import datetime

SOURCE_ENCODING = "utf-8-sig"  # UTF-8, BOM tolerated
ACCEPTED_EXTENSION = ".csv"
ACCEPTED_MIME_TYPES = frozenset({"text/csv", "application/csv", "text/x-csv"})

DEFAULT_DELIMITER = ","
SNIFF_DELIMITERS = [",", ";", "\t", "|"]
SNIFF_SAMPLE_CHARS = 4096

LONG_ROW_TRUNCATE = "truncate"
LONG_ROW_REJECT = "reject"

# Only canonical integers are coerced: no sign on zero, no leading zeros.
INTEGER_PATTERN = r"0|-?[1-9][0-9]*"
# Spreadsheets keep 15 significant digits; longer integers stay strings.
MAX_INTEGER_DIGITS = 15

SHEET_NAME = "Sheet1"
XML_ROOT_TAG = "root"
XML_RECORD_TAG = "record"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Pinned into workbook metadata and archive entries so exports are byte-stable.
WORKBOOK_TIMESTAMP = datetime(1980, 1, 1)

EXPORT_BASENAME = "converted"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
