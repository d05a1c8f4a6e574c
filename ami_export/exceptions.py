"""
Exceptions raised by the AMI export workflow.

Every terminal outcome other than success is an ExportError subclass, so
callers can catch the family and still tell "gave up waiting" apart from
"the export failed".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class ExportError(Exception):
    """Base class for export failures."""

    kind = "export"

    def __init__(self, message: str, task_id: Optional[str] = None):
        self.message = message
        self.task_id = task_id
        super().__init__(self._format())

    def _format(self) -> str:
        text = f"[{self.kind}] {self.message}"
        if self.task_id:
            text = f"{text} (task {self.task_id})"
        return text


@dataclass(frozen=True)
class FieldError:
    """One field-level validation failure."""

    field: str
    message: str

    def __str__(self):
        return f"{self.field}: {self.message}"


class ValidationErrors(ExportError):
    """Raised when the export configuration has one or more problems."""

    kind = "validation"

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"{len(self.errors)} configuration error(s): {details}")

    def __len__(self):
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    @property
    def fields(self) -> list[str]:
        """Field names in the order their errors were reported."""
        return [error.field for error in self.errors]


class SessionError(ExportError):
    """Raised when an authenticated EC2 client cannot be obtained."""

    kind = "session"


class SubmissionError(ExportError):
    """Raised when EC2 rejects the ExportImage request"""

    kind = "submission"

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        if error_code:
            message = f"{error_code}: {message}"
        super().__init__(message)


class PollTransientError(ExportError):
    """A single status query failed; the poll loop retries these."""

    kind = "poll-transient"


class PollExhaustedError(ExportError):
    """Raised when consecutive status query failures exceed the retry budget"""

    kind = "poll-exhausted"

    def __init__(self, task_id: str, attempts: int, last_error: str):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"status query failed {attempts} consecutive time(s); last error: {last_error}",
            task_id,
        )


class RemoteTaskFailedError(ExportError):
    """Raised when the export task itself reports failure."""

    kind = "remote-failed"

    def __init__(self, task_id: str, status_message: str):
        self.status_message = status_message
        super().__init__(status_message, task_id)


class RemoteTaskCancelledError(RemoteTaskFailedError):
    """Raised when the export task was deleted upstream."""

    kind = "remote-cancelled"


class ExportCancelledError(ExportError):
    """Raised when the caller cancels or the deadline passes while waiting."""

    kind = "cancelled"


class ExportWaitTimeoutError(ExportCancelledError):
    """Raised when the configured number of polls is used up before a terminal state"""

    kind = "wait-timeout"
