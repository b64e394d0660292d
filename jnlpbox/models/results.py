"""Result models for pipeline stages and batch runs."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator

from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.models.base import JnlpboxBaseModel


logger = get_struct_logger(__name__)


class ArchiveState(str, Enum):
    """Position of an archive in the processing state machine."""

    RAW = "raw"
    STRIPPED = "stripped"
    ATTRS_INJECTED = "attrs_injected"
    NORMALIZED = "normalized"
    SIGNED = "signed"
    PACKED = "packed"


class OutcomeStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class ArtifactOutcome(JnlpboxBaseModel):
    """What one stage did to one artifact."""

    artifact_id: str
    version: str
    kind: str
    archive_path: Path
    status: OutcomeStatus
    state: ArchiveState | None = None
    message: str | None = None
    error_type: str | None = None


class BaseResult(JnlpboxBaseModel):
    """Base class for all operation results."""

    success: bool = True
    timestamp: datetime = Field(default_factory=datetime.now)
    errors: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_success_consistency(self) -> "BaseResult":
        """Ensure success flag is consistent with errors."""
        if self.errors and self.success:
            logger.warning("result_success_mismatch", error_count=len(self.errors))
            self.success = False
        return self

    def add_error(self, error: str) -> None:
        self.errors.append(error)
        self.success = False

    def is_success(self) -> bool:
        return self.success and not self.errors


class BatchResult(BaseResult):
    """Aggregate of one orchestrator walk over the artifact list."""

    stage: str
    outcomes: list[ArtifactOutcome] = Field(default_factory=list)

    def record(self, outcome: ArtifactOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == OutcomeStatus.FAILED:
            self.add_error(f"{outcome.archive_path}: {outcome.message}")

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def total_count(self) -> int:
        return len(self.outcomes)

    @property
    def processed_count(self) -> int:
        return self._count(OutcomeStatus.PROCESSED)

    @property
    def skipped_count(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def failures(self) -> list[ArtifactOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    def get_summary(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "success": self.is_success(),
            "total": self.total_count,
            "processed": self.processed_count,
            "skipped": self.skipped_count,
            "failed": self.failed_count,
        }


__all__ = [
    "ArchiveState",
    "ArtifactOutcome",
    "BaseResult",
    "BatchResult",
    "OutcomeStatus",
]
