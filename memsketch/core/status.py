"""
Forward-only status machine for memory records.

``recorded -> transcribing -> extracting -> sketching -> complete``, with
``error`` reachable from every in-progress state. ``reset`` is the only way
back to ``recorded``.
"""

from memsketch.core.exceptions import InvalidStatusTransitionError
from memsketch.core.models import ProcessingStatus

_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.recorded: frozenset({ProcessingStatus.transcribing}),
    ProcessingStatus.transcribing: frozenset(
        {ProcessingStatus.extracting, ProcessingStatus.error}
    ),
    ProcessingStatus.extracting: frozenset({ProcessingStatus.sketching, ProcessingStatus.error}),
    ProcessingStatus.sketching: frozenset({ProcessingStatus.complete, ProcessingStatus.error}),
    ProcessingStatus.complete: frozenset(),
    ProcessingStatus.error: frozenset(),
}

IN_PROGRESS = frozenset(
    {ProcessingStatus.transcribing, ProcessingStatus.extracting, ProcessingStatus.sketching}
)
TERMINAL = frozenset({ProcessingStatus.complete, ProcessingStatus.error})

# UI step index per status (Record, Transcribe, Extract, Sketch, Complete)
_STEPS: dict[ProcessingStatus, int] = {
    ProcessingStatus.recorded: 0,
    ProcessingStatus.transcribing: 1,
    ProcessingStatus.extracting: 2,
    ProcessingStatus.sketching: 3,
    ProcessingStatus.complete: 4,
}

STATUS_LABELS: dict[ProcessingStatus, str] = {
    ProcessingStatus.recorded: "Recorded",
    ProcessingStatus.transcribing: "Transcribing...",
    ProcessingStatus.extracting: "Extracting scenes...",
    ProcessingStatus.sketching: "Generating art...",
    ProcessingStatus.complete: "Complete",
    ProcessingStatus.error: "Error",
}


def can_transition(current: str, target: str) -> bool:
    """Return True if *current* may move directly to *target*."""
    return ProcessingStatus(target) in _TRANSITIONS[ProcessingStatus(current)]


def check_transition(current: str, target: str) -> ProcessingStatus:
    """Validate a status change and return the target as an enum member.

    Raises:
        InvalidStatusTransitionError: If the change is not a legal forward step.
    """
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(str(current), str(target))
    return ProcessingStatus(target)


def can_reset(current: str) -> bool:
    """Only settled memories (complete or error) may be reset."""
    return ProcessingStatus(current) in TERMINAL


def pipeline_step(status: str, failed_at: str | None = None) -> int:
    """Project a status onto the UI step index.

    An ``error`` memory has no step of its own; pass the stage it failed in
    as *failed_at* to keep the progress bar where it stopped.
    """
    status = ProcessingStatus(status)
    if status is ProcessingStatus.error:
        return _STEPS.get(ProcessingStatus(failed_at), 0) if failed_at else 0
    return _STEPS[status]


def failed_stage(transcript: str | None, scene_count: int) -> ProcessingStatus:
    """Infer which stage an ``error`` memory stopped in from what it kept.

    Each stage persists its output before the next one runs, so a missing
    transcript means transcription failed and missing scenes mean extraction did.
    """
    if not transcript:
        return ProcessingStatus.transcribing
    if not scene_count:
        return ProcessingStatus.extracting
    return ProcessingStatus.sketching
