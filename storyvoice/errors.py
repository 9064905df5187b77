"""Domain exceptions for pipeline and CLI diagnostics."""

from __future__ import annotations

CANCELLED_BY_USER = "Processing cancelled by user"


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    error_kind = "stage"

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class CapabilityNotRegisteredError(PipelineStageError):
    """Raised when a pipeline capability is resolved before being registered."""

    error_kind = "configuration"

    def __init__(self, capability: str) -> None:
        """Initialize a configuration error for one unbound capability."""

        super().__init__(
            stage="config",
            detail=f"{capability} not registered",
            hint="Register an implementation for this capability before starting a run.",
        )
        self.capability = capability


class UnresolvedSpeakerError(PipelineStageError):
    """Raised when a segment speaker has no voice assignment."""

    error_kind = "data_integrity"

    def __init__(self, speaker: str) -> None:
        """Initialize a data-integrity error naming the unresolved speaker."""

        super().__init__(
            stage="generating",
            detail=f"No voice assigned for character: {speaker}",
            hint="Ensure voice assignment covers every speaker found by text analysis.",
        )
        self.speaker = speaker


class RunCancelledError(PipelineStageError):
    """Raised at a checkpoint after cancellation was requested."""

    error_kind = "cancelled"

    def __init__(self, stage: str) -> None:
        """Initialize a cancellation error for the stage that observed it."""

        super().__init__(stage=stage, detail=CANCELLED_BY_USER)


class UnexpectedStageError(PipelineStageError):
    """Raised when a stage implementation raises instead of returning a failure."""

    error_kind = "unexpected"
