from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Scalar = Union[int, float, str, None]


class Dataset(BaseModel):
    """
    Immutable, ordered collection of records sharing one column schema.

    Records are exposed as read-only mappings in header order.
    """

    model_config = ConfigDict(frozen=True)

    columns: Tuple[str, ...]
    records: Tuple[Dict[str, Scalar], ...] = ()

    @field_validator("columns")
    @classmethod
    def _columns_named_and_unique(cls, columns: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not name for name in columns):
            raise ValueError("column names must be non-empty")
        if len(set(columns)) != len(columns):
            raise ValueError("column names must be unique")
        return columns

    @field_validator("records")
    @classmethod
    def _records_read_only(cls, records: Tuple[Dict[str, Scalar], ...]) -> Tuple[Mapping[str, Scalar], ...]:
        return tuple(MappingProxyType(record) for record in records)

    @model_validator(mode="after")
    def _records_match_columns(self) -> "Dataset":
        for index, record in enumerate(self.records, start=1):
            if tuple(record) != self.columns:
                raise ValueError(f"record {index} keys do not match the header columns")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.records


class ReportItem(BaseModel):
    line: Optional[int] = None
    column: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class ReportSummary(BaseModel):
    rows: int = 0
    columns: int = 0
    delimiter: str = ","
    warnings: int = 0


class ParseReport(BaseModel):
    summary: ReportSummary = Field(default_factory=ReportSummary)
    warnings: List[ReportItem] = Field(default_factory=list)


class ParseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    dataset: Dataset
    report: ParseReport


# --- converter state: one tagged variant, read by preview and export alike ---

class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["idle"] = "idle"


class Parsing(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["parsing"] = "parsing"
    token: int
    filename: str
    previous: Optional[Dataset] = None


class Parsed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["parsed"] = "parsed"
    filename: str
    dataset: Dataset
    report: ParseReport


class Empty(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["empty"] = "empty"
    filename: str
    dataset: Dataset


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    error: Literal["invalid_format", "parse_failure"]
    reason: str
    filename: Optional[str] = None
    previous: Optional[Dataset] = None


ConverterState = Union[Idle, Parsing, Parsed, Empty, Failed]


# --- API envelopes ---

class StatusResponse(BaseModel):
    status: str
    message: str
    filename: Optional[str] = None
    error: Optional[str] = None
    rows: Optional[int] = Field(default=None, examples=[None])
    columns: List[str] = Field(default_factory=list)
    warnings: List[ReportItem] = Field(default_factory=list)


class PreviewPage(BaseModel):
    page: int = 1
    page_size: int
    page_count: int = 0
    total_records: int = 0
    columns: List[str] = Field(default_factory=list)
    records: List[Dict[str, Scalar]] = Field(default_factory=list)


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    media_type: str
    content: bytes


class HealthResponse(BaseModel):
    ok: bool = True
