"""Exceptions raised outside the calculation core."""

from __future__ import annotations


class TimesheetError(Exception):
    """Base exception for all timesheet errors."""

    def __init__(self, message: str, user_message: str | None = None):
        self.message = message
        self.user_message = user_message or message
        super().__init__(self.message)


class ValidationError(TimesheetError):
    """Rejected day edit (bad time, missing project or absence type)."""


class RecordFormatError(TimesheetError):
    """A stored or imported day record has no recognisable shape."""


class BackupFormatError(TimesheetError):
    """A backup document is not one of the supported types."""
