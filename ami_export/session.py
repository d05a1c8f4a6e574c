"""
Session provider for the EC2 export service.

Credentials are taken from the access configuration when given there,
otherwise from a profile, otherwise from the .env file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError
from dotenv import load_dotenv

from .config import AccessConfig, PollingConfig
from .constants import DEFAULT_REGION
from .exceptions import SessionError
from .export_service import Ec2ExportService


def _resolve_env_path(env_path: Optional[str] = None) -> str:
    """
    Determine which .env file should be used for AWS credentials.

    Priority order:
      1. Explicit parameter
      2. AWS_ENV_FILE environment variable
      3. ~/.env
    """
    if env_path:
        return env_path
    aws_env_file = os.environ.get("AWS_ENV_FILE")
    if aws_env_file:
        return aws_env_file
    return str(Path.home() / ".env")


def load_credentials_from_env(env_path: Optional[str] = None) -> tuple[str, str, Optional[str]]:
    """
    Load AWS credentials from a .env file.

    Returns:
        tuple: (aws_access_key_id, aws_secret_access_key, aws_session_token or None)

    Raises:
        SessionError: If credentials are not found in the .env file
    """
    resolved_path = _resolve_env_path(env_path)
    load_dotenv(resolved_path)

    aws_access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
    aws_secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
    aws_session_token = os.getenv("AWS_SESSION_TOKEN") or None
    if aws_access_key_id and aws_secret_access_key:
        logging.info("✅ AWS credentials loaded from %s", resolved_path)
        return aws_access_key_id, aws_secret_access_key, aws_session_token

    raise SessionError(f"AWS credentials not found in {resolved_path}")


class SessionProvider:  # pylint: disable=too-few-public-methods
    """Builds authenticated EC2 export services from an AccessConfig."""

    def __init__(
        self,
        access: AccessConfig,
        env_path: Optional[str] = None,
        polling: Optional[PollingConfig] = None,
    ):
        self.access = access
        self.env_path = env_path
        self.polling = polling or PollingConfig()
        self._loaded_secrets: tuple[str, ...] = ()

    def secrets(self) -> list[str]:
        """Credential strings known to this provider, for log redaction."""
        return self.access.secrets() + [secret for secret in self._loaded_secrets if secret]

    def client_config(self) -> Config:
        """
        botocore settings for the EC2 client.

        Each call is bounded by ``polling.request_timeout_seconds`` and made
        exactly once; retrying is left to the poll loop.
        """
        timeout = self.polling.request_timeout_seconds
        return Config(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"total_max_attempts": 1, "mode": "standard"},
        )

    def _region(self) -> str:
        return self.access.region or os.environ.get("AWS_DEFAULT_REGION") or DEFAULT_REGION

    def _session_kwargs(self) -> dict:
        if self.access.has_static_credentials:
            kwargs = {
                "aws_access_key_id": self.access.access_key,
                "aws_secret_access_key": self.access.secret_key,
            }
            if self.access.token:
                kwargs["aws_session_token"] = self.access.token
            return kwargs

        if self.access.profile:
            return {"profile_name": self.access.profile}

        access_key, secret_key, token = load_credentials_from_env(self.env_path)
        self._loaded_secrets = (access_key, secret_key, token or "")
        kwargs = {"aws_access_key_id": access_key, "aws_secret_access_key": secret_key}
        if token:
            kwargs["aws_session_token"] = token
        return kwargs

    def connect(self) -> Ec2ExportService:
        """
        Create an EC2 client and wrap it in an export service.

        Raises:
            SessionError: If credentials are missing or the client cannot be built
        """
        try:
            session = boto3.Session(region_name=self._region(), **self._session_kwargs())
            ec2_client = session.client("ec2", config=self.client_config())
        except BotoCoreError as e:
            raise SessionError(f"could not create EC2 client: {e}") from e
        return Ec2ExportService(ec2_client)
