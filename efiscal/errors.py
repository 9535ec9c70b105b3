"""
Exception hierarchy for workbook ingestion.

Fatal errors abort the whole upload; per-row problems are never raised,
they are collected as RowDropped entries on the IngestionResult.
"""
from __future__ import annotations

from typing import Any


class EFiscalError(Exception):
    """Base exception for ingestion errors.

    Attributes:
        details: Extra context for logs and API responses
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class StructureError(EFiscalError):
    """The first sheet is missing, empty, or lacks required headers."""

    def __init__(self, reason: str, missing_headers: list[str] | None = None):
        self.missing_headers = list(missing_headers or [])
        if self.missing_headers:
            reason = f"{reason}: {', '.join(self.missing_headers)}"
        super().__init__(reason, {"missing_headers": self.missing_headers})


class ParseError(EFiscalError):
    """The buffer is not a readable workbook, or the sheet has no data rows."""

    pass


class NoValidRecordsError(EFiscalError):
    """Every data row of an upload was dropped."""

    def __init__(self, rows_read: int, dropped: int):
        super().__init__(
            "No valid records found in file",
            {"rows_read": rows_read, "dropped": dropped},
        )
