"""Error taxonomy shared by the library, the CLI and the browser UI."""

from __future__ import annotations


class RosterDeskError(Exception):
    """Base class for every user-visible failure."""


class CsvParseError(RosterDeskError):
    """The uploaded file could not be read as a table with a header row."""


class InvalidStateError(RosterDeskError):
    """An ingestion action was requested in a state that does not accept it."""


class SubmissionValidationError(RosterDeskError):
    def __init__(self, message: str, missing_count: int = 0) -> None:
        super().__init__(message)
        self.missing_count = missing_count


class ScheduleServiceError(RosterDeskError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
