"""
AMI export package.

Validate an export configuration, submit an EC2 ExportImage task once and
poll it until the disk image lands in S3 or the task fails.
"""

from .artifact import ExportArtifact
from .config import AccessConfig, PollingConfig
from .exceptions import (
    ExportCancelledError,
    ExportError,
    ExportWaitTimeoutError,
    FieldError,
    PollExhaustedError,
    PollTransientError,
    RemoteTaskCancelledError,
    RemoteTaskFailedError,
    SessionError,
    SubmissionError,
    ValidationErrors,
)
from .export_service import Ec2ExportService
from .models import ExportRequest, ExportResult, ExportTask, S3Location, TaskState
from .monitoring import CancelContext, wait_for_export
from .orchestrator import ExportOrchestrator
from .secret_filter import NoopSecretFilter, SecretFilter
from .session import SessionProvider
from .validation import ExportSettings, validate, validate_settings

__all__ = [
    "AccessConfig",
    "CancelContext",
    "Ec2ExportService",
    "ExportArtifact",
    "ExportCancelledError",
    "ExportError",
    "ExportOrchestrator",
    "ExportRequest",
    "ExportResult",
    "ExportSettings",
    "ExportTask",
    "ExportWaitTimeoutError",
    "FieldError",
    "NoopSecretFilter",
    "PollExhaustedError",
    "PollTransientError",
    "PollingConfig",
    "RemoteTaskCancelledError",
    "RemoteTaskFailedError",
    "S3Location",
    "SecretFilter",
    "SessionError",
    "SessionProvider",
    "SubmissionError",
    "TaskState",
    "ValidationErrors",
    "validate",
    "validate_settings",
    "wait_for_export",
]
