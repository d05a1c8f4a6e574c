"""EC2 ExportImage wrapper: submit an export and read back its status"""

from __future__ import annotations

from typing import Optional

from .constants import EXPORT_TASK_RESOURCE_TYPE
from .exceptions import PollTransientError
from .models import EC2_STATUS_TO_STATE, ExportRequest, ExportTask, S3Location, TaskState
from .templating import render_description


def build_export_params(request: ExportRequest, description: Optional[str] = None) -> dict:
    """Map an ExportRequest onto ExportImage keyword arguments."""
    params = {
        "ImageId": request.image_id,
        "DiskImageFormat": request.disk_image_format,
        "RoleName": request.role_name,
        "Description": description if description is not None else request.description,
        "S3ExportLocation": {"S3Bucket": request.s3_bucket_name},
        "DryRun": False,
    }
    if request.s3_bucket_prefix:
        params["S3ExportLocation"]["S3Prefix"] = request.s3_bucket_prefix
    if request.client_token:
        params["ClientToken"] = request.client_token
    if request.tags:
        params["TagSpecifications"] = [
            {
                "ResourceType": EXPORT_TASK_RESOURCE_TYPE,
                "Tags": [{"Key": key, "Value": value} for key, value in request.tags.items()],
            }
        ]
    return params


def _extract_location(task: dict, task_id: str, disk_format: str) -> Optional[S3Location]:
    """Extract the S3 location from an export task, handling both response shapes"""
    s3_export_location = task.get("S3ExportLocation")
    if not s3_export_location or "S3Bucket" not in s3_export_location:
        return None

    if "S3Key" in s3_export_location:
        s3_key = s3_export_location["S3Key"]
    else:
        s3_prefix = s3_export_location.get("S3Prefix", "")
        extension = (disk_format or "vmdk").lower()
        s3_key = f"{s3_prefix}{task_id}.{extension}"

    return S3Location(bucket=s3_export_location["S3Bucket"], key=s3_key)


def _parse_progress(raw_progress) -> Optional[int]:
    try:
        return int(raw_progress)
    except (TypeError, ValueError):
        return None


def task_from_response(task: dict, disk_format: str = "") -> ExportTask:
    """Convert one DescribeExportImageTasks entry into an ExportTask."""
    task_id = task["ExportImageTaskId"]
    status = task.get("Status", "")
    state = EC2_STATUS_TO_STATE.get(status, TaskState.IN_PROGRESS)

    location = None
    if state == TaskState.COMPLETED:
        location = _extract_location(task, task_id, disk_format)

    return ExportTask(
        task_id=task_id,
        state=state,
        result_location=location,
        status_message=task.get("StatusMessage", ""),
        progress=_parse_progress(task.get("Progress")),
    )


class Ec2ExportService:
    """
    Stateless wrapper around an EC2 client's export calls.

    The client is only read from, so one service can be shared by concurrent
    exports. botocore errors propagate to the caller unchanged.
    """

    def __init__(self, ec2_client):
        self.ec2_client = ec2_client

    def submit_export(self, request: ExportRequest, description: Optional[str] = None) -> str:
        """Start an ExportImage task and return its task ID."""
        if description is None:
            description = render_description(request.description)
        response = self.ec2_client.export_image(**build_export_params(request, description))
        return response["ExportImageTaskId"]

    def get_export_status(self, task_id: str, disk_format: str = "") -> ExportTask:
        """
        Fetch the current state of an export task.

        ``disk_format`` names the file extension used when EC2 reports only a
        prefix for the export location.

        Raises:
            PollTransientError: If EC2 does not (yet) list the task
            botocore.exceptions.ClientError: On API errors
        """
        response = self.ec2_client.describe_export_image_tasks(ExportImageTaskIds=[task_id])
        tasks = response.get("ExportImageTasks") or []
        if not tasks:
            raise PollTransientError("export task not found", task_id)
        return task_from_response(tasks[0], disk_format)
