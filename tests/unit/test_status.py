"""Tests for the forward-only memory status machine and its UI projection."""

import pytest

from memsketch.core.exceptions import InvalidStatusTransitionError
from memsketch.core.models import ProcessingStatus
from memsketch.core.status import (
    IN_PROGRESS,
    STATUS_LABELS,
    can_reset,
    can_transition,
    check_transition,
    failed_stage,
    pipeline_step,
)

S = ProcessingStatus

HAPPY_PATH = [S.recorded, S.transcribing, S.extracting, S.sketching, S.complete]


class TestTransitions:
    """Only single forward steps and in-progress -> error are legal."""

    @pytest.mark.parametrize("current,target", list(zip(HAPPY_PATH, HAPPY_PATH[1:])))
    def test_forward_steps(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current", sorted(IN_PROGRESS))
    def test_in_progress_can_fail(self, current):
        assert can_transition(current, S.error)

    def test_recorded_cannot_fail_directly(self):
        assert not can_transition(S.recorded, S.error)

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.extracting, S.transcribing),
            (S.sketching, S.recorded),
            (S.complete, S.sketching),
            (S.error, S.transcribing),
            (S.recorded, S.extracting),
            (S.transcribing, S.transcribing),
        ],
    )
    def test_backward_or_skipping_rejected(self, current, target):
        assert not can_transition(current, target)

    def test_settled_states_are_terminal(self):
        for target in S:
            assert not can_transition(S.complete, target)
            assert not can_transition(S.error, target)

    def test_check_transition_returns_enum(self):
        assert check_transition("recorded", "transcribing") is S.transcribing

    def test_check_transition_raises_409(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            check_transition("complete", "recorded")
        assert exc_info.value.status_code == 409
        assert "complete" in exc_info.value.detail


class TestReset:
    @pytest.mark.parametrize("status", [S.complete, S.error])
    def test_settled_can_reset(self, status):
        assert can_reset(status)

    @pytest.mark.parametrize("status", [S.recorded, S.transcribing, S.extracting, S.sketching])
    def test_unsettled_cannot_reset(self, status):
        assert not can_reset(status)


class TestPipelineStep:
    """Status -> step index projection used by the progress indicator."""

    @pytest.mark.parametrize("index,status", list(enumerate(HAPPY_PATH)))
    def test_happy_path_steps(self, index, status):
        assert pipeline_step(status) == index

    def test_error_without_context_is_step_zero(self):
        assert pipeline_step(S.error) == 0

    def test_error_keeps_failed_step(self):
        assert pipeline_step(S.error, failed_at=S.extracting) == 2

    def test_every_status_has_a_label(self):
        assert set(STATUS_LABELS) == set(S)


class TestFailedStage:
    """Where an ``error`` memory stopped, inferred from what it kept."""

    def test_no_transcript_is_transcription(self):
        assert failed_stage(None, 0) is S.transcribing

    def test_transcript_without_scenes_is_extraction(self):
        assert failed_stage("we went fishing", 0) is S.extracting

    def test_scenes_kept_is_sketching(self):
        assert failed_stage("we went fishing", 2) is S.sketching

    def test_feeds_pipeline_step(self):
        assert pipeline_step(S.error, failed_at=failed_stage("we went fishing", 0)) == 2
