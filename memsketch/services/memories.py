"""Memory record lifecycle outside the pipeline: upload, reset, delete."""

import logging

from memsketch.core.config import get_settings
from memsketch.core.exceptions import (
    AudioTooLargeError,
    InvalidStatusTransitionError,
    MemorySketchError,
)
from memsketch.core.models import ProcessingStatus
from memsketch.services.storage.blob_store import (
    AUDIO_BUCKET,
    SKETCH_BUCKET,
    BlobStore,
    audio_path,
    extension_for,
)
from memsketch.services.storage.database import get_session
from memsketch.services.storage.models_db import Memory
from memsketch.services.storage.repository import MemoryRepository

logger = logging.getLogger(__name__)


async def create_memory(user_id: str, title: str | None = None) -> Memory:
    """Create a memory record in status *recorded*."""
    async with get_session() as session:
        memory = await MemoryRepository(session).create_memory(user_id=user_id, title=title)
    logger.info("Created memory %s for user %s", memory.id, user_id)
    return memory


async def attach_audio(
    memory_id: str,
    user_id: str,
    data: bytes,
    content_type: str | None = None,
    store: BlobStore | None = None,
) -> Memory:
    """Store an uploaded recording and point the memory at it.

    The object lands at ``{user_id}/{memory_id}.{ext}`` in the audio bucket.
    Only a *recorded* memory accepts audio, so a transcript always derives
    from the stored recording. Reset a settled memory to record it again.

    Raises:
        MemoryNotFoundError: Unknown memory or not owned by *user_id*.
        InvalidStatusTransitionError: The memory has already been processed.
        AudioTooLargeError: *data* exceeds ``settings.max_audio_bytes``.
    """
    limit = get_settings().max_audio_bytes
    if len(data) > limit:
        raise AudioTooLargeError(len(data), limit)
    if not data:
        raise MemorySketchError(detail="Audio body is empty", code="EMPTY_AUDIO", status_code=400)

    store = store or BlobStore(AUDIO_BUCKET)
    async with get_session() as session:
        repo = MemoryRepository(session)
        memory = await repo.get_memory(memory_id, user_id)
        if memory.processing_status != ProcessingStatus.recorded.value:
            raise InvalidStatusTransitionError(
                memory.processing_status, ProcessingStatus.recorded.value
            )
        previous = memory.audio_url
        path = audio_path(user_id, memory.id, extension_for(content_type))
        await store.upload(path, data)
        await repo.set_audio_url(memory, path)
    if previous and previous != path:
        await store.remove([previous])
        logger.info("Replaced audio %s with %s", previous, path)
    return memory


async def reset_memory(memory_id: str, user_id: str) -> Memory:
    """Return a settled memory to *recorded* and drop its sketch images."""
    async with get_session() as session:
        repo = MemoryRepository(session)
        memory = await repo.get_memory(memory_id, user_id)
        await repo.reset_memory(memory)
    await BlobStore(SKETCH_BUCKET).remove_prefix(f"{user_id}/{memory_id}")
    return memory


async def delete_memory(memory_id: str, user_id: str) -> int:
    """Delete a memory with its audio and sketch images.

    Returns:
        Number of stored objects removed.
    """
    async with get_session() as session:
        memory = await MemoryRepository(session).delete_memory(memory_id, user_id)

    removed = 0
    if memory.audio_url:
        removed += await BlobStore(AUDIO_BUCKET).remove([memory.audio_url])
    removed += await BlobStore(SKETCH_BUCKET).remove_prefix(f"{user_id}/{memory_id}")
    logger.info("Deleted memory %s (%d stored objects removed)", memory_id, removed)
    return removed
