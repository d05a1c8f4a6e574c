"""
Argument parsing for the ami-export CLI.

Flags are turned into the same raw configuration mapping the validator
accepts, so the CLI and library callers share one set of rules.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Optional, Sequence

from .exceptions import FieldError, ValidationErrors


def _parse_tag(value: str) -> tuple[str, str]:
    key, sep, tag_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"tag must look like KEY=VALUE, got {value!r}")
    return key, tag_value


def add_export_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the arguments describing what to export and where."""
    parser.add_argument("--image-id", help="AMI to export.")
    parser.add_argument("--format", dest="disk_image_format", help="Disk format: VMDK, RAW or VHD.")
    parser.add_argument("--bucket", dest="s3_bucket_name", help="Destination S3 bucket.")
    parser.add_argument("--prefix", dest="s3_bucket_prefix", help="Destination key prefix.")
    parser.add_argument("--description", help="Task description; {timestamp} and {isotime} are rendered.")
    parser.add_argument("--client-token", help="Idempotency token for the export request.")
    parser.add_argument("--role-name", help="IAM role EC2 assumes to write to S3 (default: vmimport).")
    parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        type=_parse_tag,
        metavar="KEY=VALUE",
        help="Tag for the export task; may be repeated.",
    )


def add_access_arguments(parser: argparse.ArgumentParser) -> None:
    """Add credential and region arguments."""
    parser.add_argument("--region", help="AWS region (default: AWS_DEFAULT_REGION or us-east-1).")
    parser.add_argument("--profile", help="Named AWS profile to use instead of .env credentials.")
    parser.add_argument("--env-file", help="Path to the .env file with AWS credentials.")


def add_polling_arguments(parser: argparse.ArgumentParser) -> None:
    """Add polling and timeout arguments."""
    parser.add_argument("--poll-delay", type=int, metavar="SECONDS", help="Seconds between status checks.")
    parser.add_argument(
        "--max-attempts",
        type=int,
        help="Consecutive failed status checks tolerated before giving up.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Stop waiting after SECONDS; the export task keeps running in AWS.",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ami-export",
        description="Export an AMI to S3 as a VMDK, RAW or VHD disk image.",
    )
    parser.add_argument("--config", type=Path, help="JSON file with export configuration.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    add_export_arguments(parser)
    add_access_arguments(parser)
    add_polling_arguments(parser)
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return create_parser().parse_args(argv)


def load_config_file(path: Path) -> dict:
    """Read a JSON configuration file; problems are reported as a ``config`` field error."""
    try:
        loaded = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ValidationErrors([FieldError("config", f"cannot read {path}: {e.strerror or e}")]) from e
    except ValueError as e:
        raise ValidationErrors([FieldError("config", f"{path} is not valid JSON: {e}")]) from e
    if not isinstance(loaded, dict):
        raise ValidationErrors(
            [FieldError("config", f"{path} must contain a JSON object, got {type(loaded).__name__}")]
        )
    return loaded


def build_raw_config(args: argparse.Namespace) -> dict:
    """
    Merge the --config file and command-line flags into a raw configuration.

    Flags take precedence over values from the file.

    Raises:
        ValidationErrors: If the --config file cannot be read or is not a JSON object
    """
    raw: dict = {}
    if args.config:
        raw.update(load_config_file(args.config))

    for key in (
        "image_id",
        "disk_image_format",
        "s3_bucket_name",
        "s3_bucket_prefix",
        "description",
        "client_token",
        "role_name",
        "region",
        "profile",
    ):
        value = getattr(args, key)
        if value is not None:
            raw[key] = value

    if args.tags:
        tags = dict(raw.get("tags") or {})
        tags.update(dict(args.tags))
        raw["tags"] = tags

    if args.poll_delay is not None or args.max_attempts is not None:
        polling = raw.get("aws_polling")
        polling = dict(polling) if isinstance(polling, dict) else {}
        if args.poll_delay is not None:
            polling["delay_seconds"] = args.poll_delay
        if args.max_attempts is not None:
            polling["max_attempts"] = args.max_attempts
        raw["aws_polling"] = polling

    return raw
