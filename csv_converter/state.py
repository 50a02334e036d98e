"""
Converter state container.

The session owns exactly one ConverterState value and replaces it through
pure transition functions; preview and export read the dataset from it.
"""

from __future__ import annotations

import itertools
import logging
from contextlib import contextmanager
from typing import Awaitable, Callable, Optional, Union

from . import serializers
from .config import ConverterSettings, get_settings
from .errors import ConverterError, EmptyResult, InvalidFormat, ParseFailure
from .models import (
    Artifact,
    ConverterState,
    Dataset,
    Empty,
    Failed,
    Idle,
    Parsed,
    Parsing,
    ParseResult,
    PreviewPage,
    StatusResponse,
)
from .parser import parse_csv_bytes, validate_upload
from .preview import paginate

logger = logging.getLogger(__name__)

Outcome = Union[ParseResult, ConverterError]


def current_dataset(state: ConverterState) -> Optional[Dataset]:
    """The dataset preview and export should read for this state."""
    if isinstance(state, (Parsed, Empty)):
        return state.dataset
    if isinstance(state, (Parsing, Failed)):
        return state.previous
    return None


def start_parsing(state: ConverterState, token: int, filename: str) -> Parsing:
    return Parsing(token=token, filename=filename, previous=current_dataset(state))


def settle(state: ConverterState, token: int, outcome: Outcome) -> ConverterState:
    """
    Apply a finished parse to the state.

    Only the parse currently in flight may settle; an outcome carrying any
    other token was superseded by a newer upload and is dropped.
    """
    if not isinstance(state, Parsing) or state.token != token:
        logger.warning("Ignoring superseded parse (token %s)", token)
        return state

    if isinstance(outcome, ParseResult):
        return Parsed(filename=state.filename, dataset=outcome.dataset, report=outcome.report)
    if isinstance(outcome, EmptyResult):
        return Empty(filename=state.filename, dataset=outcome.dataset)
    if isinstance(outcome, (InvalidFormat, ParseFailure)):
        return Failed(
            error=outcome.kind,
            reason=str(outcome),
            filename=state.filename,
            previous=state.previous,
        )
    raise TypeError(f"Unsupported parse outcome: {outcome!r}")


def describe(state: ConverterState) -> StatusResponse:
    if isinstance(state, Parsed):
        return StatusResponse(
            status=state.status,
            message=f"Parsed {len(state.dataset.records)} records",
            filename=state.filename,
            rows=len(state.dataset.records),
            columns=list(state.dataset.columns),
            warnings=state.report.warnings,
        )
    if isinstance(state, Empty):
        return StatusResponse(
            status=state.status,
            message="File contains a header row but no records",
            filename=state.filename,
            rows=0,
            columns=list(state.dataset.columns),
        )
    if isinstance(state, Failed):
        return StatusResponse(
            status=state.status,
            message=state.reason,
            filename=state.filename,
            error=state.error,
        )
    if isinstance(state, Parsing):
        return StatusResponse(status=state.status, message=f"Parsing {state.filename}", filename=state.filename)
    return StatusResponse(status=state.status, message="No file loaded")


class ConverterSession:
    """Owns the converter state, the preview page index and the settings."""

    def __init__(self, settings: Optional[ConverterSettings] = None):
        self.settings = settings or get_settings()
        self._state: ConverterState = Idle()
        self._tokens = itertools.count(1)
        self._page = 1

    @property
    def state(self) -> ConverterState:
        return self._state

    @property
    def dataset(self) -> Optional[Dataset]:
        return current_dataset(self._state)

    def begin(self, filename: str) -> int:
        """Mark a new upload in flight; any earlier one is superseded."""
        token = next(self._tokens)
        self._state = start_parsing(self._state, token, filename)
        return token

    def complete(self, token: int, outcome: Outcome) -> ConverterState:
        before = self._state
        self._state = settle(before, token, outcome)
        if self._state is not before and isinstance(self._state, (Parsed, Empty)):
            self._page = 1
        if isinstance(self._state, Failed) and self._state is not before:
            logger.warning("Upload %r failed: %s", self._state.filename, self._state.reason)
        return self._state

    def parse(self, raw: bytes) -> Outcome:
        try:
            return parse_csv_bytes(
                raw,
                delimiter=self.settings.DELIMITER,
                coerce_numbers=self.settings.COERCE_NUMBERS,
                long_rows=self.settings.LONG_ROW_POLICY,
            )
        except ConverterError as exc:
            return exc

    @staticmethod
    def check(filename: Optional[str], content_type: Optional[str]) -> Optional[InvalidFormat]:
        try:
            validate_upload(filename, content_type)
        except InvalidFormat as exc:
            return exc
        return None

    @contextmanager
    def _settling(self, token: int):
        """Never leave an upload stuck in ``parsing`` when something unexpected raises."""
        try:
            yield
        except Exception as exc:
            self.complete(token, ParseFailure(f"Upload aborted: {exc}"))
            raise

    def ingest(self, filename: Optional[str], content_type: Optional[str], raw: bytes) -> ConverterState:
        """
        Ingest content that is already in memory.

        Classified failures become state; the dataset is never partially
        replaced.
        """
        token = self.begin(filename or "")
        with self._settling(token):
            outcome = self.check(filename, content_type) or self.parse(raw)
            return self.complete(token, outcome)

    async def ingest_upload(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        read: Callable[[], Awaitable[bytes]],
    ) -> ConverterState:
        """
        Single entry point for every upload, whether selected or dropped.

        The upload is marked in flight before anything is awaited, so a newer
        upload supersedes it even if this one finishes reading last. Content
        is read only once the name / type check has passed.
        """
        token = self.begin(filename or "")
        with self._settling(token):
            outcome = self.check(filename, content_type)
            if outcome is None:
                raw = await read()
                logger.info("Read %r (%s, %d bytes)", filename, content_type, len(raw))
                outcome = self.parse(raw)
            return self.complete(token, outcome)

    def status(self) -> StatusResponse:
        return describe(self._state)

    def preview(self, page: Optional[int] = None, page_size: Optional[int] = None) -> PreviewPage:
        result = paginate(
            self.dataset,
            self._page if page is None else page,
            page_size or self.settings.PAGE_SIZE,
        )
        self._page = result.page
        return result

    def export(self, fmt: serializers.ExportFormat) -> Optional[Artifact]:
        return serializers.export(self.dataset, fmt)
