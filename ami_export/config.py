"""
Access and polling configuration for AMI exports.

Credentials come either from the raw configuration or, when absent, from the
.env file resolved by ``session``. Polling settings can be overridden from the
environment with AWS_POLL_DELAY_SECONDS and AWS_MAX_ATTEMPTS.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    ACCESS_KEYS,
    DEFAULT_POLL_BACKOFF_MULTIPLIER,
    DEFAULT_POLL_DELAY_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_POLL_MAX_DELAY_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    POLL_DELAY_ENV_VAR,
    POLL_MAX_ATTEMPTS_ENV_VAR,
    POLLING_KEY,
)
from .exceptions import FieldError

POSITIVE_INT_MESSAGE = "must be a positive integer"


@dataclass(frozen=True)
class AccessConfig:
    """Credentials and region used to reach EC2."""

    access_key: str = ""
    secret_key: str = ""
    token: str = ""
    region: str = ""
    profile: str = ""

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)

    def secrets(self) -> list[str]:
        """Credential strings that must never appear in logs."""
        return [value for value in (self.access_key, self.secret_key, self.token) if value]

    def __repr__(self):
        # Keep credentials out of accidental reprs
        return f"AccessConfig(region={self.region!r}, profile={self.profile!r})"


@dataclass(frozen=True)
class PollingConfig:
    """How often and how long to poll an export task.

    ``max_attempts`` is the budget of consecutive failed status queries.
    ``max_polls`` optionally bounds the total number of status queries.
    A ``backoff_multiplier`` of 1.0 gives a fixed delay.
    ``request_timeout_seconds`` bounds the connect and read time of each EC2 call.
    """

    delay_seconds: float = DEFAULT_POLL_DELAY_SECONDS
    max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    backoff_multiplier: float = DEFAULT_POLL_BACKOFF_MULTIPLIER
    max_delay_seconds: float = DEFAULT_POLL_MAX_DELAY_SECONDS
    max_polls: Optional[int] = None
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    def delay_for(self, poll_number: int) -> float:
        """Delay before the poll following ``poll_number`` (0-based)."""
        delay = min(self.delay_seconds, self.max_delay_seconds)
        if self.backoff_multiplier == 1.0:
            return delay
        # Stops growing at the cap so long waits never overflow
        for _ in range(poll_number):
            if delay >= self.max_delay_seconds:
                break
            delay = min(delay * self.backoff_multiplier, self.max_delay_seconds)
        return delay


def _as_str(value) -> str:
    return "" if value is None else str(value)


def load_access_config(raw_config: Mapping) -> AccessConfig:
    """Pull the access keys out of a raw configuration mapping."""
    return AccessConfig(**{key: _as_str(raw_config.get(key)) for key in ACCESS_KEYS})


def _parse_positive_int(value, field_name: str, errors: list[FieldError]) -> Optional[int]:
    if isinstance(value, bool):
        errors.append(FieldError(field_name, f"{POSITIVE_INT_MESSAGE}, got {value!r}"))
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        errors.append(FieldError(field_name, f"{POSITIVE_INT_MESSAGE}, got {value!r}"))
        return None
    if parsed <= 0:
        errors.append(FieldError(field_name, f"{POSITIVE_INT_MESSAGE}, got {value!r}"))
        return None
    return parsed


def load_polling_config(
    raw_polling: Optional[Mapping] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> tuple[PollingConfig, list[FieldError]]:
    """
    Build a PollingConfig from the ``aws_polling`` mapping and the environment.

    Environment overrides win over the mapping. Bad values are reported as
    FieldErrors rather than raised, so the validator can aggregate them.

    Returns:
        tuple: (PollingConfig, list of FieldError)
    """
    environ = os.environ if environ is None else environ
    errors: list[FieldError] = []
    values: dict = {}

    if raw_polling is not None and not isinstance(raw_polling, Mapping):
        errors.append(FieldError(POLLING_KEY, "must be a mapping"))
        raw_polling = None
    raw_polling = raw_polling or {}

    sources = (
        ("delay_seconds", f"{POLLING_KEY}.delay_seconds", raw_polling.get("delay_seconds")),
        ("max_attempts", f"{POLLING_KEY}.max_attempts", raw_polling.get("max_attempts")),
        ("delay_seconds", POLL_DELAY_ENV_VAR, environ.get(POLL_DELAY_ENV_VAR)),
        ("max_attempts", POLL_MAX_ATTEMPTS_ENV_VAR, environ.get(POLL_MAX_ATTEMPTS_ENV_VAR)),
    )
    for attribute, field_name, value in sources:
        if value is None or value == "":
            continue
        parsed = _parse_positive_int(value, field_name, errors)
        if parsed is not None:
            values[attribute] = parsed

    if raw_polling.get("max_polls") is not None:
        parsed = _parse_positive_int(raw_polling["max_polls"], f"{POLLING_KEY}.max_polls", errors)
        if parsed is not None:
            values["max_polls"] = parsed

    # backoff_multiplier must be >= 1, the others must be > 0
    for attribute, in_range in (
        ("backoff_multiplier", lambda number: number >= 1.0),
        ("max_delay_seconds", lambda number: number > 0),
        ("request_timeout_seconds", lambda number: number > 0),
    ):
        value = raw_polling.get(attribute)
        if value is None:
            continue
        field_name = f"{POLLING_KEY}.{attribute}"
        try:
            parsed_number = float(value)
        except (TypeError, ValueError):
            errors.append(FieldError(field_name, f"must be a number, got {value!r}"))
            continue
        if not in_range(parsed_number):
            errors.append(FieldError(field_name, f"out of range, got {value!r}"))
            continue
        values[attribute] = parsed_number

    return PollingConfig(**values), errors


def env_override_warnings(environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Describe which polling settings the environment is overriding."""
    environ = os.environ if environ is None else environ
    warnings = []
    for env_var, attribute in (
        (POLL_DELAY_ENV_VAR, "delay_seconds"),
        (POLL_MAX_ATTEMPTS_ENV_VAR, "max_attempts"),
    ):
        value = environ.get(env_var)
        if value:
            warnings.append(f"{env_var}={value} overrides polling {attribute}")
    return warnings
