"""Export orchestration: connect, submit once, then poll to a terminal state"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .config import PollingConfig, env_override_warnings
from .exceptions import (
    ExportCancelledError,
    RemoteTaskCancelledError,
    RemoteTaskFailedError,
    SessionError,
    SubmissionError,
)
from .models import ExportRequest, ExportResult, ExportTask, S3Location, TaskState
from .monitoring import CancelContext, context_sleep, wait_for_export
from .secret_filter import SecretFilter
from .templating import render_description

logger = logging.getLogger(__name__)


def _describe_request(request: ExportRequest, session_provider) -> str:
    access = getattr(session_provider, "access", None)
    return (
        f"export config: image_id={request.image_id} format={request.disk_image_format} "
        f"bucket={request.s3_bucket_name} prefix={request.s3_bucket_prefix!r} "
        f"role={request.role_name} description={request.description!r} "
        f"client_token={request.client_token!r} tags={request.tags} access={access!r}"
    )


def _submission_error(error: Exception) -> SubmissionError:
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        return SubmissionError(details.get("Message", str(error)), details.get("Code"))
    return SubmissionError(str(error))


class ExportOrchestrator:
    """
    Drives one AMI export from submission to a terminal task state.

    The orchestrator keeps no per-export state on the instance, so a single
    instance can run concurrent exports from separate threads.
    """

    def __init__(
        self,
        session_provider,
        secret_filter: Optional[SecretFilter] = None,
        polling: Optional[PollingConfig] = None,
        sleeper: Callable[[CancelContext, float], None] = context_sleep,
    ):
        self.session_provider = session_provider
        self.secret_filter = secret_filter if secret_filter is not None else SecretFilter()
        self.polling = polling or PollingConfig()
        self.sleeper = sleeper

    def _connect(self):
        try:
            service = self.session_provider.connect()
        except SessionError:
            print("   ❌ Could not obtain an AWS session")
            raise
        secrets = getattr(self.session_provider, "secrets", None)
        if callable(secrets):
            self.secret_filter.add(*secrets())
        return service

    def _log_configuration(self, request: ExportRequest) -> None:
        logger.info(self.secret_filter.redact(_describe_request(request, self.session_provider)))
        for warning in env_override_warnings():
            logger.warning(self.secret_filter.redact(warning))

    def _submit(self, service, request: ExportRequest) -> str:
        description = render_description(request.description)
        print(f"   🔄 Exporting AMI {request.image_id} to S3 bucket {request.s3_bucket_name}...")
        try:
            task_id = service.submit_export(request, description)
        except (ClientError, BotoCoreError) as e:
            print(f"   ❌ Error exporting AMI {request.image_id}: {e}")
            raise _submission_error(e) from e
        print(f"   ✅ Started export task: {task_id}")
        return task_id

    @staticmethod
    def _result_from_task(request: ExportRequest, task: ExportTask) -> ExportResult:
        if task.state == TaskState.COMPLETED:
            location = task.result_location or S3Location(
                request.s3_bucket_name, request.expected_key(task.task_id)
            )
            print(f"   ✅ AWS reports export completed: {location}")
            return ExportResult(task_id=task.task_id, location=location)

        if task.state == TaskState.CANCELLED:
            print(f"   ⚠️  Export task {task.task_id} was deleted before completing")
            raise RemoteTaskCancelledError(task.task_id, task.status_message or "export task was deleted")

        print(f"   ❌ AWS reports export failed: {task.status_message}")
        raise RemoteTaskFailedError(task.task_id, task.status_message or "Unknown error")

    def export(self, request: ExportRequest, context: Optional[CancelContext] = None) -> ExportResult:
        """
        Export an AMI to S3 and wait for the task to finish.

        Args:
            request: Validated export request
            context: Cancellation context; a fresh one without deadline if omitted

        Returns:
            ExportResult: Task ID and S3 location of the exported image

        Raises:
            SessionError: No authenticated EC2 client could be created
            SubmissionError: EC2 rejected the export request (never retried)
            PollExhaustedError: Too many consecutive status query failures
            RemoteTaskFailedError: The task reported failure
            ExportCancelledError: The context was cancelled or timed out, or the
                wait was interrupted (KeyboardInterrupt) after submission
        """
        context = context or CancelContext()
        if context.cancelled:
            raise ExportCancelledError(context.reason())

        service = self._connect()
        self._log_configuration(request)
        task_id = self._submit(service, request)

        try:
            task = wait_for_export(
                service,
                task_id,
                context,
                self.polling,
                disk_format=request.disk_image_format,
                sleeper=self.sleeper,
            )
        except KeyboardInterrupt as e:
            context.cancel()
            raise ExportCancelledError("export wait was interrupted", task_id) from e
        return self._result_from_task(request, task)
