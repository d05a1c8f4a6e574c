"""
Secret redaction for log output.

A SecretFilter is handed to the orchestrator explicitly; there is no
process-wide registry. Tests pass NoopSecretFilter.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Iterable

REDACTED = "<sensitive>"


class SecretFilter(logging.Filter):
    """Redacts registered secret strings from text and log records."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self._secrets: set[str] = set()
        self._lock = Lock()
        self.add(*secrets)

    def add(self, *secrets: str) -> None:
        """Register secret values; empty values are ignored."""
        with self._lock:
            self._secrets.update(secret for secret in secrets if secret)

    def redact(self, text: str) -> str:
        """Return ``text`` with every registered secret replaced."""
        with self._lock:
            # Longest first so a secret containing another is fully masked
            secrets = sorted(self._secrets, key=len, reverse=True)
        for secret in secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redact(record.getMessage())
        record.args = None
        return True


class NoopSecretFilter(SecretFilter):
    """Filter that leaves text untouched."""

    def add(self, *secrets: str) -> None:
        return None

    def redact(self, text: str) -> str:
        return text
