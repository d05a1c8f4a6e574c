"""Data model for export requests, remote export tasks and results"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .constants import DEFAULT_DESCRIPTION, DEFAULT_ROLE_NAME, SUPPORTED_DISK_FORMATS
from .exceptions import FieldError, ValidationErrors


class TaskState(Enum):
    """Lifecycle states of a remote export task"""

    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED)


# Status strings reported by DescribeExportImageTasks
EC2_STATUS_TO_STATE = {
    "active": TaskState.IN_PROGRESS,
    "completed": TaskState.COMPLETED,
    "failed": TaskState.FAILED,
    "deleting": TaskState.CANCELLED,
    "deleted": TaskState.CANCELLED,
}


@dataclass(frozen=True)
class S3Location:
    """Bucket and key of an exported disk image."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def __str__(self):
        return self.uri


@dataclass(frozen=True)
class ExportRequest:  # pylint: disable=too-many-instance-attributes
    """Validated, immutable description of one export operation.

    Build these with ``validation.validate``, which applies every rule and
    normalizes the values. Direct construction still rejects empty required
    fields and unsupported formats.
    """

    image_id: str
    disk_image_format: str
    s3_bucket_name: str
    s3_bucket_prefix: str = ""
    description: str = DEFAULT_DESCRIPTION
    client_token: str = ""
    role_name: str = DEFAULT_ROLE_NAME
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        errors = [
            FieldError(field_name, "no value provided; a non-empty string is required")
            for field_name in ("image_id", "s3_bucket_name")
            if not getattr(self, field_name)
        ]
        if self.disk_image_format not in SUPPORTED_DISK_FORMATS:
            allowed = ", ".join(SUPPORTED_DISK_FORMATS)
            errors.append(
                FieldError(
                    "disk_image_format",
                    f"invalid disk image format {self.disk_image_format!r}; allowed values are {allowed}",
                )
            )
        if errors:
            raise ValidationErrors(errors)

    @property
    def file_extension(self) -> str:
        return self.disk_image_format.lower()

    def expected_key(self, task_id: str) -> str:
        """S3 key EC2 writes the image to: <prefix><task id>.<format>."""
        return f"{self.s3_bucket_prefix}{task_id}.{self.file_extension}"


@dataclass(frozen=True)
class ExportTask:
    """Snapshot of a remote export task as observed by one status query."""

    task_id: str
    state: TaskState
    result_location: Optional[S3Location] = None
    status_message: str = ""
    progress: Optional[int] = None


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a successful export."""

    task_id: str
    location: S3Location
