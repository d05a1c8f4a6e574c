"""Constants shared by the AMI export modules."""

BUILDER_ID = "ami-export.s3"

SUPPORTED_DISK_FORMATS = ("VMDK", "RAW", "VHD")
DEFAULT_DESCRIPTION = "export-{timestamp}"
DEFAULT_ROLE_NAME = "vmimport"
DEFAULT_REGION = "us-east-1"

# Tag specifications on ExportImage must target this resource type
EXPORT_TASK_RESOURCE_TYPE = "export-image-task"

# Polling defaults mirror the EC2 waiter defaults used elsewhere (15s x 40 attempts)
DEFAULT_POLL_DELAY_SECONDS = 15
DEFAULT_POLL_MAX_ATTEMPTS = 40
DEFAULT_POLL_BACKOFF_MULTIPLIER = 1.0
DEFAULT_POLL_MAX_DELAY_SECONDS = 300

# Bounds each EC2 HTTP call; botocore retries are disabled so only the poll loop retries
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
CANCEL_CHECK_INTERVAL_SECONDS = 0.1

POLL_DELAY_ENV_VAR = "AWS_POLL_DELAY_SECONDS"
POLL_MAX_ATTEMPTS_ENV_VAR = "AWS_MAX_ATTEMPTS"

EXPORT_KEYS = (
    "image_id",
    "disk_image_format",
    "s3_bucket_name",
    "s3_bucket_prefix",
    "description",
    "client_token",
    "role_name",
    "tags",
)
ACCESS_KEYS = ("access_key", "secret_key", "token", "region", "profile")
POLLING_KEY = "aws_polling"
