"""
Memory REST endpoints.

Create, upload audio, list, fetch, reset and delete memory records, and
serve their stored audio and sketch images. Everything is scoped to the
authenticated user.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse, RedirectResponse

from memsketch.api.middleware.auth import current_user_id
from memsketch.core.config import get_settings
from memsketch.core.exceptions import AudioNotFoundError, AudioTooLargeError, MemorySketchError
from memsketch.core.models import (
    DeleteMemoryResponse,
    MemoryCreate,
    MemoryResponse,
    ProcessingStatus,
)
from memsketch.services import memories
from memsketch.services.storage.blob_store import (
    AUDIO_BUCKET,
    SKETCH_BUCKET,
    BlobStore,
    media_type_for,
)
from memsketch.services.storage.database import get_session
from memsketch.services.storage.models_db import Memory
from memsketch.services.storage.repository import MemoryRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/memories", tags=["memories"])


def _to_response(memory: Memory) -> MemoryResponse:
    """Convert an ORM Memory into its API response model."""
    return MemoryResponse(
        id=memory.id,
        user_id=memory.user_id,
        title=memory.title,
        processing_status=ProcessingStatus(memory.processing_status),
        transcript=memory.transcript,
        scenes=memory.scene_list,
        sketches=memory.sketch_list,
        audio_url=memory.audio_url,
        error_message=memory.error_message,
        created_at=memory.created_at,
        updated_at=memory.updated_at,
    )


@router.post("", response_model=MemoryResponse)
async def create_memory(
    body: MemoryCreate | None = None,
    user_id: str = Depends(current_user_id),
):
    """Create a memory record in status ``recorded``."""
    memory = await memories.create_memory(user_id, title=body.title if body else None)
    return _to_response(memory)


@router.get("", response_model=list[MemoryResponse])
async def list_memories(
    status: ProcessingStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(current_user_id),
):
    """List the caller's memories, newest first."""
    async with get_session() as session:
        repo = MemoryRepository(session)
        rows = await repo.list_memories(
            user_id, status=status.value if status else None, limit=limit, offset=offset
        )
    return [_to_response(m) for m in rows]


@router.get("/{memory_id}", response_model=MemoryResponse)
async def get_memory(memory_id: str, user_id: str = Depends(current_user_id)):
    """Get one memory, including its status, transcript, scenes and sketches."""
    async with get_session() as session:
        memory = await MemoryRepository(session).get_memory(memory_id, user_id)
    return _to_response(memory)


@router.put("/{memory_id}/audio", response_model=MemoryResponse)
async def upload_audio(
    memory_id: str,
    request: Request,
    user_id: str = Depends(current_user_id),
):
    """Store the raw request body as the memory's audio.

    The body is the encoded recording; ``Content-Type`` picks the extension
    (``audio/webm`` when absent).
    """
    limit = get_settings().max_audio_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise AudioTooLargeError(int(declared), limit)

    # chunked uploads carry no length; stop reading once past the limit
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise AudioTooLargeError(len(body), limit)
    data = bytes(body)
    memory = await memories.attach_audio(
        memory_id, user_id, data, content_type=request.headers.get("content-type")
    )
    return _to_response(memory)


@router.get("/{memory_id}/audio")
async def get_audio(memory_id: str, user_id: str = Depends(current_user_id)):
    """Serve the stored audio blob."""
    async with get_session() as session:
        memory = await MemoryRepository(session).get_memory(memory_id, user_id)
    if not memory.audio_url:
        raise AudioNotFoundError()
    path = BlobStore(AUDIO_BUCKET).local_path(memory.audio_url)
    return FileResponse(path=path, media_type=media_type_for(memory.audio_url))


@router.get("/{memory_id}/sketches/{scene_index}/image")
async def get_sketch_image(
    memory_id: str,
    scene_index: int,
    user_id: str = Depends(current_user_id),
):
    """Serve the image generated for one scene."""
    async with get_session() as session:
        memory = await MemoryRepository(session).get_memory(memory_id, user_id)

    sketch = next((s for s in memory.sketch_list if s.scene_index == scene_index), None)
    if sketch is None or not sketch.image_url:
        raise MemorySketchError(
            detail=f"No image for scene {scene_index}",
            code="IMAGE_NOT_FOUND",
            status_code=404,
        )
    if sketch.image_url.startswith(("http://", "https://")):
        return RedirectResponse(sketch.image_url)
    path = BlobStore(SKETCH_BUCKET).local_path(sketch.image_url)
    return FileResponse(path=path, media_type=media_type_for(sketch.image_url))


@router.post("/{memory_id}/reset", response_model=MemoryResponse)
async def reset_memory(memory_id: str, user_id: str = Depends(current_user_id)):
    """Return a complete or failed memory to ``recorded`` so it can be reprocessed."""
    memory = await memories.reset_memory(memory_id, user_id)
    return _to_response(memory)


@router.delete("/{memory_id}", response_model=DeleteMemoryResponse)
async def delete_memory(memory_id: str, user_id: str = Depends(current_user_id)):
    """Delete a memory together with its stored audio and images."""
    removed = await memories.delete_memory(memory_id, user_id)
    return DeleteMemoryResponse(memory_id=memory_id, blobs_removed=removed)
