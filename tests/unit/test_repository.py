"""Tests for the MemoryRepository CRUD layer.

Exercises create / get / list / delete, user scoping, the stage save
helpers with their status transitions, and the explicit reset.
All tests use an in-memory SQLite database provided by the ``repository`` fixture.
"""

import pytest

from memsketch.core.exceptions import InvalidStatusTransitionError, MemoryNotFoundError
from memsketch.core.models import ProcessingStatus, Scene, Sketch
from memsketch.services.storage.models_db import Memory
from memsketch.services.storage.repository import MemoryRepository

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SCENES = [
    Scene(sentence="We went to the beach", description="A beach at noon", mood="happy"),
    Scene(sentence="The water was freezing", description="Kids in cold surf", mood="exciting"),
]


async def _memory_at(repo: MemoryRepository, status: ProcessingStatus) -> Memory:
    """Create a memory and walk it forward to *status*."""
    memory = await repo.create_memory("alice")
    path = [
        ProcessingStatus.transcribing,
        ProcessingStatus.extracting,
        ProcessingStatus.sketching,
        ProcessingStatus.complete,
    ]
    for step in path:
        if memory.processing_status == status.value:
            break
        await repo.transition(memory, step)
    return memory


# ===================================================================
# Create / read
# ===================================================================


class TestCreateMemory:
    async def test_defaults(self, repository: MemoryRepository) -> None:
        """A new memory starts recorded with no derived fields."""
        memory = await repository.create_memory("alice")
        assert memory.id
        assert memory.user_id == "alice"
        assert memory.processing_status == "recorded"
        assert memory.transcript is None
        assert memory.scene_list == []
        assert memory.sketch_list == []
        assert memory.created_at is not None

    async def test_with_title(self, repository: MemoryRepository) -> None:
        memory = await repository.create_memory("alice", title="Lake house")
        assert memory.title == "Lake house"


class TestGetMemory:
    async def test_existing(self, repository: MemoryRepository) -> None:
        created = await repository.create_memory("alice")
        fetched = await repository.get_memory(created.id, "alice")
        assert fetched.id == created.id

    async def test_not_found_raises(self, repository: MemoryRepository) -> None:
        with pytest.raises(MemoryNotFoundError):
            await repository.get_memory("missing", "alice")

    async def test_other_users_memory_is_not_found(self, repository: MemoryRepository) -> None:
        """Another user's memory is indistinguishable from a missing one."""
        created = await repository.create_memory("alice")
        with pytest.raises(MemoryNotFoundError):
            await repository.get_memory(created.id, "bob")


class TestListMemories:
    async def test_scoped_to_user(self, repository: MemoryRepository) -> None:
        await repository.create_memory("alice")
        await repository.create_memory("alice")
        await repository.create_memory("bob")
        rows = await repository.list_memories("alice")
        assert len(rows) == 2
        assert all(m.user_id == "alice" for m in rows)

    async def test_status_filter(self, repository: MemoryRepository) -> None:
        first = await repository.create_memory("alice")
        await repository.create_memory("alice")
        await repository.transition(first, ProcessingStatus.transcribing)
        rows = await repository.list_memories("alice", status="transcribing")
        assert [m.id for m in rows] == [first.id]

    async def test_limit(self, repository: MemoryRepository) -> None:
        for _ in range(3):
            await repository.create_memory("alice")
        rows = await repository.list_memories("alice", limit=2)
        assert len(rows) == 2


class TestDeleteMemory:
    async def test_delete_removes_row(self, repository: MemoryRepository) -> None:
        created = await repository.create_memory("alice")
        deleted = await repository.delete_memory(created.id, "alice")
        assert deleted.id == created.id
        with pytest.raises(MemoryNotFoundError):
            await repository.get_memory(created.id, "alice")

    async def test_cannot_delete_other_users_memory(self, repository: MemoryRepository) -> None:
        created = await repository.create_memory("alice")
        with pytest.raises(MemoryNotFoundError):
            await repository.delete_memory(created.id, "bob")


# ===================================================================
# Stage saves
# ===================================================================


class TestStageSaves:
    async def test_save_transcript_moves_to_extracting(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.transcribing)
        await repository.save_transcript(memory, "We went to the beach.")
        assert memory.transcript == "We went to the beach."
        assert memory.processing_status == "extracting"

    async def test_save_scenes_round_trips_order(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.extracting)
        await repository.save_scenes(memory, SCENES)
        fetched = await repository.get_memory(memory.id, "alice")
        assert fetched.processing_status == "sketching"
        assert [s.sentence for s in fetched.scene_list] == [s.sentence for s in SCENES]

    async def test_save_sketches_completes(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.sketching)
        sketches = [
            Sketch(scene_index=0, caption="A beach at noon", image_url="alice/x/sketch-0.png"),
            Sketch(scene_index=1, caption="Kids in cold surf", error="Generation failed"),
        ]
        await repository.save_sketches(memory, sketches)
        assert memory.processing_status == "complete"
        stored = memory.sketch_list
        assert stored[0].image_url == "alice/x/sketch-0.png"
        assert stored[1].failed

    async def test_sketches_stored_with_camel_case_keys(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.sketching)
        await repository.save_sketches(memory, [Sketch(scene_index=0, caption="c")])
        assert '"sceneIndex": 0' in memory.sketches

    async def test_mark_error_from_in_progress(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.extracting)
        await repository.mark_error(memory, "Scene extraction failed.")
        assert memory.processing_status == "error"
        assert memory.error_message == "Scene extraction failed."

    async def test_save_transcript_out_of_order_rejected(self, repository) -> None:
        """A recorded memory cannot jump straight to extracting."""
        memory = await repository.create_memory("alice")
        with pytest.raises(InvalidStatusTransitionError):
            await repository.save_transcript(memory, "text")
        assert memory.processing_status == "recorded"

    async def test_status_never_moves_backward(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.complete)
        for target in ProcessingStatus:
            with pytest.raises(InvalidStatusTransitionError):
                await repository.transition(memory, target)
        assert memory.processing_status == "complete"


# ===================================================================
# Reset
# ===================================================================


class TestReset:
    async def test_reset_clears_derived_fields(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.extracting)
        await repository.set_audio_url(memory, "alice/m.webm")
        memory.transcript = "text"
        await repository.mark_error(memory, "boom")

        await repository.reset_memory(memory)

        assert memory.processing_status == "recorded"
        assert memory.transcript is None
        assert memory.scene_list == []
        assert memory.sketch_list == []
        assert memory.error_message is None
        assert memory.audio_url == "alice/m.webm"

    async def test_reset_in_progress_rejected(self, repository) -> None:
        memory = await _memory_at(repository, ProcessingStatus.sketching)
        with pytest.raises(InvalidStatusTransitionError):
            await repository.reset_memory(memory)
