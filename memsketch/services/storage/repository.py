"""
CRUD repository for memory records.

``MemoryRepository`` receives an ``AsyncSession`` and is the only place
that touches the ``memories`` table. It calls ``flush()`` rather than
``commit()`` so transaction boundaries are controlled by the caller
(typically :func:`get_session`). Every read is scoped to the owning user;
someone else's memory is indistinguishable from a missing one.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memsketch.core.exceptions import InvalidStatusTransitionError, MemoryNotFoundError
from memsketch.core.models import ProcessingStatus, Scene, Sketch
from memsketch.core.status import can_reset, check_transition
from memsketch.services.storage.models_db import Memory

logger = logging.getLogger(__name__)


class MemoryRepository:
    """Data-access layer for ``memories``.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Create / read / delete
    # ------------------------------------------------------------------

    async def create_memory(self, user_id: str, title: str | None = None) -> Memory:
        """Create and return a new memory with status *recorded*."""
        memory = Memory(
            user_id=user_id,
            title=title,
            processing_status=ProcessingStatus.recorded.value,
        )
        self._session.add(memory)
        await self._session.flush()
        return memory

    async def get_memory(self, memory_id: str, user_id: str) -> Memory:
        """Return the caller's memory or raise :class:`MemoryNotFoundError`."""
        stmt = select(Memory).where(Memory.id == memory_id, Memory.user_id == user_id)
        result = await self._session.execute(stmt)
        memory = result.scalar_one_or_none()
        if memory is None:
            raise MemoryNotFoundError(memory_id)
        return memory

    async def list_memories(
        self,
        user_id: str,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Memory]:
        """Return the caller's memories, newest first."""
        stmt = (
            select(Memory)
            .where(Memory.user_id == user_id)
            .order_by(Memory.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        if status is not None:
            stmt = stmt.where(Memory.processing_status == status)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete_memory(self, memory_id: str, user_id: str) -> Memory:
        """Delete the caller's memory and return the detached row."""
        memory = await self.get_memory(memory_id, user_id)
        await self._session.delete(memory)
        await self._session.flush()
        return memory

    # ------------------------------------------------------------------
    # Field updates
    # ------------------------------------------------------------------

    async def set_audio_url(self, memory: Memory, audio_url: str) -> Memory:
        """Point the memory at its stored audio object."""
        memory.audio_url = audio_url
        await self._session.flush()
        return memory

    async def transition(self, memory: Memory, status: ProcessingStatus) -> Memory:
        """Advance *memory* to *status*, refusing any non-forward move."""
        target = check_transition(memory.processing_status, status)
        logger.info(
            "Memory %s: %s -> %s", memory.id, memory.processing_status, target.value
        )
        memory.processing_status = target.value
        await self._session.flush()
        return memory

    async def save_transcript(self, memory: Memory, transcript: str) -> Memory:
        """Store the transcript and move to *extracting*."""
        memory.transcript = transcript
        return await self.transition(memory, ProcessingStatus.extracting)

    async def save_scenes(self, memory: Memory, scenes: list[Scene]) -> Memory:
        """Store scenes in transcript order and move to *sketching*."""
        memory.scene_list = scenes
        return await self.transition(memory, ProcessingStatus.sketching)

    async def save_sketches(self, memory: Memory, sketches: list[Sketch]) -> Memory:
        """Store sketches and move to *complete*."""
        memory.sketch_list = sketches
        return await self.transition(memory, ProcessingStatus.complete)

    async def mark_error(self, memory: Memory, message: str) -> Memory:
        """Record a terminal failure message."""
        memory.error_message = message
        return await self.transition(memory, ProcessingStatus.error)

    async def reset_memory(self, memory: Memory) -> Memory:
        """Explicitly return a settled memory to *recorded*.

        Clears everything the pipeline derived; the stored audio stays.

        Raises:
            InvalidStatusTransitionError: If the memory is still in progress.
        """
        if not can_reset(memory.processing_status):
            raise InvalidStatusTransitionError(
                memory.processing_status, ProcessingStatus.recorded.value
            )
        memory.processing_status = ProcessingStatus.recorded.value
        memory.transcript = None
        memory.scenes = None
        memory.sketches = None
        memory.error_message = None
        await self._session.flush()
        return memory
