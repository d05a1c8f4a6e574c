"""Artifact describing an exported disk image in S3."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import BUILDER_ID
from .models import ExportResult, S3Location


@dataclass(frozen=True)
class ExportArtifact:
    """S3 object produced by an export; the upstream AMI is not referenced."""

    location: S3Location
    task_id: str
    builder_id: str = BUILDER_ID

    @classmethod
    def from_result(cls, result: ExportResult) -> "ExportArtifact":
        return cls(location=result.location, task_id=result.task_id)

    @property
    def id(self) -> str:  # pylint: disable=invalid-name
        return self.location.uri

    @property
    def files(self) -> list[str]:
        return [self.location.uri]

    def __str__(self):
        return f"Disk image exported by task {self.task_id}: {self.location.uri}"
