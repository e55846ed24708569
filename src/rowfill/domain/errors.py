from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    INPUT_MALFORMED = "INPUT_MALFORMED"
    SELECTION_INVALID = "SELECTION_INVALID"
    IO_ERROR = "IO_ERROR"


class RowfillError(Exception):
    """Terminal error for a run; carries the data row where it happened, if known."""

    category: ErrorCategory = ErrorCategory.IO_ERROR

    def __init__(self, message: str, row_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.row_index = row_index

    def __str__(self) -> str:
        if self.row_index is None:
            return self.message
        return f"data row {self.row_index}: {self.message}"


class InputMalformed(RowfillError):
    category = ErrorCategory.INPUT_MALFORMED


class SelectionInvalid(RowfillError):
    category = ErrorCategory.SELECTION_INVALID
