"""
Validation of raw export configuration.

Every rule runs on every call and the failures are collected, so a caller
sees all configuration problems in one report instead of one per attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .config import AccessConfig, PollingConfig, load_access_config, load_polling_config
from .constants import (
    ACCESS_KEYS,
    DEFAULT_DESCRIPTION,
    DEFAULT_ROLE_NAME,
    EXPORT_KEYS,
    POLLING_KEY,
    SUPPORTED_DISK_FORMATS,
)
from .exceptions import FieldError, ValidationErrors
from .models import ExportRequest

REQUIRED_FIELDS = ("image_id", "s3_bucket_name")
OPTIONAL_STRING_FIELDS = ("s3_bucket_prefix", "description", "client_token", "role_name")
KNOWN_KEYS = frozenset(EXPORT_KEYS + ACCESS_KEYS + (POLLING_KEY,))


@dataclass(frozen=True)
class ExportSettings:
    """Everything needed to run one export, validated together."""

    request: ExportRequest
    access: AccessConfig
    polling: PollingConfig


def _check_required(raw_config: Mapping, errors: list[FieldError]) -> dict[str, str]:
    values = {}
    for field_name in REQUIRED_FIELDS:
        value = raw_config.get(field_name)
        if value is not None and not isinstance(value, str):
            errors.append(FieldError(field_name, f"must be a string, got {type(value).__name__}"))
            continue
        if not value or not value.strip():
            errors.append(FieldError(field_name, "no value provided; a non-empty string is required"))
            continue
        values[field_name] = value.strip()
    return values


def _check_disk_format(raw_config: Mapping, errors: list[FieldError]) -> Optional[str]:
    value = raw_config.get("disk_image_format")
    normalized = value.strip().upper() if isinstance(value, str) else value
    if normalized not in SUPPORTED_DISK_FORMATS:
        allowed = ", ".join(SUPPORTED_DISK_FORMATS)
        errors.append(
            FieldError(
                "disk_image_format",
                f"invalid disk image format {value!r}; allowed values are {allowed}",
            )
        )
        return None
    return normalized


def _check_optional_strings(raw_config: Mapping, errors: list[FieldError]) -> dict[str, str]:
    values = {}
    for field_name in OPTIONAL_STRING_FIELDS:
        value = raw_config.get(field_name)
        if value is None:
            continue
        if not isinstance(value, str):
            errors.append(FieldError(field_name, f"must be a string, got {type(value).__name__}"))
            continue
        values[field_name] = value
    return values


def _check_tags(raw_config: Mapping, errors: list[FieldError]) -> dict[str, str]:
    tags = raw_config.get("tags")
    if tags is None:
        return {}
    if not isinstance(tags, Mapping):
        errors.append(FieldError("tags", "must be a mapping of string keys to string values"))
        return {}
    checked = {}
    for key, value in tags.items():
        if not isinstance(key, str) or not isinstance(value, str):
            errors.append(FieldError(f"tags.{key}", "tag keys and values must be strings"))
            continue
        checked[key] = value
    return checked


def _check_unknown_keys(raw_config: Mapping, errors: list[FieldError]) -> None:
    for key in raw_config:
        if key not in KNOWN_KEYS:
            errors.append(FieldError(str(key), "unknown configuration key"))


def _apply_defaults(values: dict[str, str]) -> None:
    """Fill description and role name only where they were left empty."""
    if not values.get("description"):
        values["description"] = DEFAULT_DESCRIPTION
    if not values.get("role_name"):
        values["role_name"] = DEFAULT_ROLE_NAME


def collect_errors(raw_config: Mapping) -> tuple[dict, list[FieldError]]:
    """Run every rule and return (normalized values, errors)."""
    errors: list[FieldError] = []
    if not isinstance(raw_config, Mapping):
        return {}, [FieldError("config", "configuration must be a mapping")]

    values: dict = {}
    values.update(_check_required(raw_config, errors))
    disk_format = _check_disk_format(raw_config, errors)
    if disk_format is not None:
        values["disk_image_format"] = disk_format
    values.update(_check_optional_strings(raw_config, errors))
    values["tags"] = _check_tags(raw_config, errors)
    _check_unknown_keys(raw_config, errors)
    _apply_defaults(values)
    return values, errors


def validate(raw_config: Mapping) -> ExportRequest:
    """
    Validate and normalize a raw export configuration.

    Args:
        raw_config: Mapping of configuration keys to raw values

    Returns:
        ExportRequest: The normalized request

    Raises:
        ValidationErrors: Carrying every problem found, in rule order
    """
    values, errors = collect_errors(raw_config)
    if errors:
        raise ValidationErrors(errors)
    return ExportRequest(**values)


def validate_settings(raw_config: Mapping, environ: Optional[Mapping[str, str]] = None) -> ExportSettings:
    """Validate the request, access and polling configuration in one pass."""
    values, errors = collect_errors(raw_config)
    if not isinstance(raw_config, Mapping):
        raise ValidationErrors(errors)

    polling, polling_errors = load_polling_config(raw_config.get(POLLING_KEY), environ)
    errors.extend(polling_errors)
    if errors:
        raise ValidationErrors(errors)

    return ExportSettings(
        request=ExportRequest(**values),
        access=load_access_config(raw_config),
        polling=polling,
    )
