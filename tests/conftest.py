"""Shared pytest fixtures for test files."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ami_export.validation import validate


@pytest.fixture(autouse=True)
def stub_boto3_session(monkeypatch):
    """Replace boto3.Session so tests never build a real AWS client."""
    session_factory = MagicMock(name="boto3.Session")
    monkeypatch.setattr("boto3.Session", session_factory)
    return session_factory


@pytest.fixture(name="raw_config")
def fixture_raw_config():
    """A raw configuration that passes validation."""
    return {
        "image_id": "ami-0123456789abcdef0",
        "disk_image_format": "vmdk",
        "s3_bucket_name": "export-bucket",
        "s3_bucket_prefix": "exports/",
    }


@pytest.fixture(name="export_request")
def fixture_export_request(raw_config):
    """Validated ExportRequest built from raw_config."""
    return validate(raw_config)


@pytest.fixture(name="ec2")
def fixture_ec2():
    """Create a mock EC2 client."""
    return MagicMock()
