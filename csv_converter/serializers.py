"""
Dataset -> JSON / XLSX / XML.

Every serializer is a pure function of the Dataset; serializing the same
Dataset twice yields identical output.
"""

from __future__ import annotations

import io
import json
import re
import xml.etree.ElementTree as ET
import zipfile
from enum import Enum
from typing import Dict, Iterable, Optional

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.xml.functions import tostring

from . import rules
from .models import Artifact, Dataset, Scalar

_XML_INVALID_NAME_CHARS = re.compile(r"[^\w.\-]")
_XML_NAME_START = re.compile(r"[^\W\d]")
# Characters outside the XML 1.0 Char production.
_XML_ILLEGAL_TEXT = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


class ExportFormat(str, Enum):
    json = "json"
    xlsx = "xlsx"
    xml = "xml"


def to_json(dataset: Dataset) -> str:
    return json.dumps([dict(record) for record in dataset.records], ensure_ascii=False, indent=2)


# --- workbook ---

def _cell_value(value: Scalar) -> Scalar:
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _append_row(sheet, values) -> None:
    """Append one row, keeping strings that look like formulas as plain text."""
    sheet.append([_cell_value(value) for value in values])
    for cell in sheet[sheet.max_row]:
        if cell.data_type == "f":
            cell.data_type = "s"


def _pin_archive(payload: bytes, workbook: Workbook) -> bytes:
    """Rewrite the saved archive with fixed entry and metadata timestamps."""
    props = workbook.properties
    props.created = rules.WORKBOOK_TIMESTAMP
    props.modified = rules.WORKBOOK_TIMESTAMP
    date_time = rules.WORKBOOK_TIMESTAMP.timetuple()[:6]

    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(payload)) as source, \
            zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            data = source.read(info.filename)
            if info.filename == "docProps/core.xml":
                data = tostring(props.to_tree())
            entry = zipfile.ZipInfo(info.filename, date_time=date_time)
            entry.compress_type = zipfile.ZIP_DEFLATED
            target.writestr(entry, data)
    return out.getvalue()


def to_xlsx(dataset: Dataset) -> bytes:
    """Single-sheet workbook: header row, then one row per record."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = rules.SHEET_NAME

    _append_row(sheet, dataset.columns)
    for record in dataset.records:
        _append_row(sheet, [record[name] for name in dataset.columns])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return _pin_archive(buffer.getvalue(), workbook)


# --- XML ---

def xml_element_name(column: str) -> str:
    """Map a column name to a well-formed XML element name."""
    name = _XML_INVALID_NAME_CHARS.sub("_", column)
    if not name or not _XML_NAME_START.match(name):
        name = "_" + name
    return name


def xml_element_names(columns: Iterable[str]) -> Dict[str, str]:
    """Sanitized, collision-free element name for every column, in column order."""
    taken: set = set()
    names: Dict[str, str] = {}
    for column in columns:
        base = xml_element_name(column)
        candidate, suffix = base, 1
        while candidate in taken:
            suffix += 1
            candidate = f"{base}_{suffix}"
        taken.add(candidate)
        names[column] = candidate
    return names


def _xml_text(value: Scalar) -> str:
    if value is None:
        return ""
    return _XML_ILLEGAL_TEXT.sub("", str(value))


def to_xml(dataset: Dataset) -> str:
    tags = xml_element_names(dataset.columns)
    root = ET.Element(rules.XML_ROOT_TAG)
    for index, record in enumerate(dataset.records, start=1):
        element = ET.SubElement(root, rules.XML_RECORD_TAG, id=str(index))
        for column in dataset.columns:
            ET.SubElement(element, tags[column]).text = _xml_text(record[column])
    body = ET.tostring(root, encoding="unicode", short_empty_elements=False)
    return rules.XML_DECLARATION + body


# --- downloads ---

_MEDIA_TYPES = {
    ExportFormat.json: "application/json",
    ExportFormat.xlsx: rules.XLSX_MEDIA_TYPE,
    ExportFormat.xml: "application/xml",
}


def export(dataset: Optional[Dataset], fmt: ExportFormat) -> Optional[Artifact]:
    """
    Build a downloadable artifact, or None when there is nothing to export.
    """
    if dataset is None or dataset.is_empty:
        return None

    fmt = ExportFormat(fmt)
    if fmt is ExportFormat.json:
        content = to_json(dataset).encode("utf-8")
    elif fmt is ExportFormat.xlsx:
        content = to_xlsx(dataset)
    else:
        content = to_xml(dataset).encode("utf-8")

    return Artifact(
        filename=f"{rules.EXPORT_BASENAME}.{fmt.value}",
        media_type=_MEDIA_TYPES[fmt],
        content=content,
    )
