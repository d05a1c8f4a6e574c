"""Pytest configuration and shared fixtures for the AMI export toolkit."""

# pylint: disable=wrong-import-position

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest


@pytest.fixture(autouse=True)
def mock_aws_env_file(tmp_path, monkeypatch):
    """Auto-use fixture that provides a mock .env file for tests requiring AWS credentials.

    This creates a temporary .env file with mock credentials and sets AWS_ENV_FILE
    to point to it, so nothing reads the developer's real ~/.env.
    """
    env_file = tmp_path / ".env"
    env_file.write_text("AWS_ACCESS_KEY_ID=test_key\nAWS_SECRET_ACCESS_KEY=test_secret\n")
    monkeypatch.setenv("AWS_ENV_FILE", str(env_file))
    yield str(env_file)


@pytest.fixture(autouse=True)
def clear_polling_overrides(monkeypatch):
    """Keep polling env overrides from the developer's shell out of tests."""
    monkeypatch.delenv("AWS_POLL_DELAY_SECONDS", raising=False)
    monkeypatch.delenv("AWS_MAX_ATTEMPTS", raising=False)
