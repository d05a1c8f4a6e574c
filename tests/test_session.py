"""Tests for ami_export/session.py"""

from __future__ import annotations

import pytest
from botocore.exceptions import NoRegionError

from ami_export.config import AccessConfig, PollingConfig
from ami_export.exceptions import SessionError
from ami_export.export_service import Ec2ExportService
from ami_export.session import SessionProvider, _resolve_env_path, load_credentials_from_env
from tests.assertions import assert_equal


@pytest.fixture(name="clean_aws_env")
def fixture_clean_aws_env(monkeypatch):
    """Remove credentials and region left in the process environment."""
    for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN", "AWS_DEFAULT_REGION"):
        # setenv records the original value so dotenv writes are undone
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_resolve_env_path_priority(monkeypatch):
    """Explicit path beats AWS_ENV_FILE, which beats ~/.env."""
    monkeypatch.setenv("AWS_ENV_FILE", "/tmp/from-env")

    assert_equal(_resolve_env_path("/tmp/explicit"), "/tmp/explicit")
    assert_equal(_resolve_env_path(), "/tmp/from-env")

    monkeypatch.delenv("AWS_ENV_FILE")
    assert _resolve_env_path().endswith(".env")


def test_static_credentials_are_used(stub_boto3_session, clean_aws_env):
    """Static keys in the access configuration go straight to boto3."""
    access = AccessConfig(access_key="AKIAEXAMPLE", secret_key="s3cr3t", token="tok", region="eu-west-2")

    service = SessionProvider(access).connect()

    assert isinstance(service, Ec2ExportService)
    stub_boto3_session.assert_called_once_with(
        region_name="eu-west-2",
        aws_access_key_id="AKIAEXAMPLE",
        aws_secret_access_key="s3cr3t",
        aws_session_token="tok",
    )
    stub_boto3_session.return_value.client.assert_called_once()
    assert_equal(stub_boto3_session.return_value.client.call_args.args, ("ec2",))


def test_profile_is_used_without_static_credentials(stub_boto3_session, clean_aws_env):
    """A named profile is passed through to the session."""
    SessionProvider(AccessConfig(profile="exports")).connect()

    stub_boto3_session.assert_called_once_with(region_name="us-east-1", profile_name="exports")


def test_env_file_credentials_are_loaded(stub_boto3_session, clean_aws_env, mock_aws_env_file):
    """Without keys or profile the .env file supplies credentials."""
    provider = SessionProvider(AccessConfig(region="us-west-2"), env_path=mock_aws_env_file)

    provider.connect()

    stub_boto3_session.assert_called_once_with(
        region_name="us-west-2",
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
    )
    assert_equal(provider.secrets(), ["test_key", "test_secret"])


def test_missing_credentials_raise_session_error(tmp_path, stub_boto3_session, clean_aws_env):
    """An env file without keys raises SessionError and no session is built."""
    empty_env = tmp_path / "empty.env"
    empty_env.write_text("")

    with pytest.raises(SessionError) as exc_info:
        SessionProvider(AccessConfig(), env_path=str(empty_env)).connect()

    assert str(empty_env) in str(exc_info.value)
    stub_boto3_session.assert_not_called()


def test_load_credentials_from_env_returns_token(tmp_path, clean_aws_env):
    """A session token in the env file is returned alongside the keys."""
    env_file = tmp_path / "token.env"
    env_file.write_text("AWS_ACCESS_KEY_ID=key\nAWS_SECRET_ACCESS_KEY=secret\nAWS_SESSION_TOKEN=token\n")

    assert_equal(load_credentials_from_env(str(env_file)), ("key", "secret", "token"))


def test_botocore_error_becomes_session_error(stub_boto3_session, clean_aws_env):
    """botocore failures while building the client raise SessionError."""
    stub_boto3_session.side_effect = NoRegionError()

    with pytest.raises(SessionError) as exc_info:
        SessionProvider(AccessConfig(profile="exports")).connect()

    assert isinstance(exc_info.value.__cause__, NoRegionError)


def test_region_falls_back_to_environment(stub_boto3_session, clean_aws_env, monkeypatch):
    """AWS_DEFAULT_REGION is used when no region is configured."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-southeast-2")

    SessionProvider(AccessConfig(profile="exports")).connect()

    assert_equal(stub_boto3_session.call_args.kwargs["region_name"], "ap-southeast-2")


def test_secrets_before_connect_come_from_access_config():
    """Configured keys are known as secrets before any connection."""
    provider = SessionProvider(AccessConfig(access_key="AKIAEXAMPLE", secret_key="s3cr3t"))

    assert_equal(provider.secrets(), ["AKIAEXAMPLE", "s3cr3t"])


def test_client_has_timeouts_and_no_botocore_retries(stub_boto3_session, clean_aws_env):
    """Each EC2 call is bounded by the request timeout and attempted once."""
    provider = SessionProvider(AccessConfig(profile="exports"), polling=PollingConfig(request_timeout_seconds=7))

    provider.connect()

    config = stub_boto3_session.return_value.client.call_args.kwargs["config"]
    assert_equal(config.connect_timeout, 7)
    assert_equal(config.read_timeout, 7)
    assert_equal(config.retries["total_max_attempts"], 1)


def test_client_config_defaults_to_polling_defaults():
    config = SessionProvider(AccessConfig()).client_config()

    assert_equal(config.read_timeout, PollingConfig().request_timeout_seconds)
