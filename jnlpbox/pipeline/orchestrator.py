"""Batch execution of one stage over the artifact list."""

import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from jnlpbox.core.errors import BatchFailedError, PreconditionSkip
from jnlpbox.core.structlog_logger import StructlogMixin
from jnlpbox.models.artifact import Artifact
from jnlpbox.models.results import (
    ArchiveState,
    ArtifactOutcome,
    BatchResult,
    OutcomeStatus,
)
from jnlpbox.pipeline.stages import Stage, StageContext, run_stage


class Orchestrator(StructlogMixin):
    """Applies one stage to every artifact and aggregates the failures.

    A failing artifact is logged and recorded and the walk continues. Once
    every artifact was attempted, ``BatchFailedError`` is raised if any failed.
    Failed artifacts are not retried.

    With ``workers > 1`` artifacts are processed in parallel; each archive is
    a separate file and the result is only updated under a lock.
    """

    service_name = "orchestrator"

    def __init__(self, context: StageContext, workers: int = 1) -> None:
        super().__init__()
        self.context = context
        self.workers = max(1, workers)
        self._lock = threading.Lock()

    def run(self, stage: Stage, artifacts: Sequence[Artifact]) -> BatchResult:
        """Run ``stage`` over ``artifacts``.

        Returns:
            The batch result when no artifact failed

        Raises:
            BatchFailedError: Carrying the full result when any artifact failed
        """
        result = BatchResult(stage=stage.value)
        self.logger.info(
            "stage_started",
            stage=stage.value,
            artifacts=len(artifacts),
            workers=self.workers,
        )

        if self.workers == 1 or len(artifacts) <= 1:
            for artifact in artifacts:
                self._record(result, self._process(stage, artifact))
        else:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="jnlpbox"
            ) as executor:
                outcomes = executor.map(
                    lambda artifact: self._process(stage, artifact), artifacts
                )
                for outcome in outcomes:
                    self._record(result, outcome)

        self.logger.info("stage_finished", **result.get_summary())
        if result.failed_count:
            raise BatchFailedError(result)
        return result

    def _record(self, result: BatchResult, outcome: ArtifactOutcome) -> None:
        with self._lock:
            result.record(outcome)

    def _outcome(
        self,
        artifact: Artifact,
        status: OutcomeStatus,
        message: str | None = None,
        state: ArchiveState | None = None,
        error_type: str | None = None,
    ) -> ArtifactOutcome:
        return ArtifactOutcome(
            artifact_id=artifact.id,
            version=artifact.version,
            kind=artifact.kind.value,
            archive_path=artifact.archive_path,
            status=status,
            state=state,
            message=message,
            error_type=error_type,
        )

    def _process(self, stage: Stage, artifact: Artifact) -> ArtifactOutcome:
        archive = str(artifact.archive_path)
        self.logger.debug("artifact_started", stage=stage.value, archive=archive)
        try:
            report = run_stage(stage, artifact, self.context)
        except PreconditionSkip as skip:
            self.logger.info("artifact_skipped", archive=archive, reason=str(skip))
            return self._outcome(artifact, OutcomeStatus.SKIPPED, message=str(skip))
        except Exception as e:
            self.log_error_with_context(
                "artifact_failed", e, stage=stage.value, archive=archive
            )
            return self._outcome(
                artifact,
                OutcomeStatus.FAILED,
                message=str(e),
                error_type=type(e).__name__,
            )

        self.logger.info(
            "artifact_processed", archive=archive, state=report.state.value
        )
        return self._outcome(
            artifact,
            OutcomeStatus.PROCESSED,
            message=report.message,
            state=report.state,
        )


def create_orchestrator(context: StageContext, workers: int = 1) -> Orchestrator:
    """Factory function to create an Orchestrator instance."""
    return Orchestrator(context, workers)


__all__ = ["Orchestrator", "create_orchestrator"]
