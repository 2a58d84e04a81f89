"""Memory processing pipeline.

Two independent entry points, one per HTTP stage handler:

- :func:`process_memory` — transcription, then scene extraction.
- :func:`generate_sketches` — one sketch per stored scene.

Nothing is shared in-process between them. Every intermediate result is
committed before the next step reads it back, and any failure is recorded
on the memory (``processing_status="error"`` plus ``error_message``)
before it propagates.

Usage::

    from memsketch.services import pipeline

    result = await pipeline.process_memory(memory_id, user_id)
    sketches = await pipeline.generate_sketches(memory_id, user_id)
"""

import logging
from pathlib import Path

from memsketch.core.config import get_settings
from memsketch.core.exceptions import (
    AudioNotFoundError,
    BlobNotFoundError,
    EmptyTranscriptError,
    MemorySketchError,
    NoScenesToSketchError,
    TranscriptionError,
    UpstreamError,
    UpstreamPaymentRequiredError,
    UpstreamRateLimitedError,
)
from memsketch.core.models import (
    GenerateSketchesResponse,
    ProcessingStatus,
    ProcessMemoryResponse,
)
from memsketch.core.status import check_transition
from memsketch.services.llm import create_llm
from memsketch.services.llm.gateway import GatewayClient
from memsketch.services.scenes import SceneExtractor
from memsketch.services.sketches import SketchGenerator
from memsketch.services.storage.blob_store import AUDIO_BUCKET, SKETCH_BUCKET, BlobStore
from memsketch.services.storage.database import get_session
from memsketch.services.storage.repository import MemoryRepository
from memsketch.services.transcription import BaseSTT, create_stt

logger = logging.getLogger(__name__)

UNEXPECTED_FAILURE = "Processing failed unexpectedly."


async def _fail(memory_id: str, user_id: str, message: str) -> None:
    """Move the memory to *error* with a human-readable message."""
    try:
        async with get_session() as session:
            repo = MemoryRepository(session)
            memory = await repo.get_memory(memory_id, user_id)
            await repo.mark_error(memory, message)
        logger.warning("Memory %s failed: %s", memory_id, message)
    except MemorySketchError:
        logger.exception("Could not record failure for memory %s", memory_id)


def _audio_format(audio_url: str) -> str:
    return Path(audio_url).suffix.lstrip(".").lower() or "webm"


async def _transcribe(stt: BaseSTT, audio: bytes, audio_format: str) -> str:
    """Run STT and map generic upstream failures to a transcription error."""
    try:
        transcript = await stt.transcribe(audio, audio_format)
    except (UpstreamRateLimitedError, UpstreamPaymentRequiredError):
        raise
    except UpstreamError as exc:
        raise TranscriptionError() from exc
    transcript = (transcript or "").strip()
    if not transcript:
        raise EmptyTranscriptError()
    return transcript


async def process_memory(
    memory_id: str,
    user_id: str,
    *,
    stt: BaseSTT | None = None,
    extractor: SceneExtractor | None = None,
    audio_store: BlobStore | None = None,
) -> ProcessMemoryResponse:
    """Transcribe a memory's audio and extract its scenes.

    Status path: ``recorded -> transcribing -> extracting -> sketching``,
    or ``error`` at the step that failed.

    Args:
        memory_id: The memory to process.
        user_id: The caller; memories of other users are not found.
        stt: Optional STT provider override (tests).
        extractor: Optional scene extractor override (tests).
        audio_store: Optional audio bucket override (tests).

    Raises:
        MemoryNotFoundError: Unknown memory or not owned by *user_id*.
        AudioNotFoundError: The memory has no stored audio.
        InvalidStatusTransitionError: The memory is not in *recorded*.
        MemorySketchError: Any stage failure, already recorded on the memory.
    """
    settings = get_settings()
    audio_store = audio_store or BlobStore(AUDIO_BUCKET)

    async with get_session() as session:
        repo = MemoryRepository(session)
        memory = await repo.get_memory(memory_id, user_id)
        if not memory.audio_url:
            raise AudioNotFoundError()
        check_transition(memory.processing_status, ProcessingStatus.transcribing)
        audio_url = memory.audio_url

    try:
        audio = await audio_store.download(audio_url)
    except BlobNotFoundError as exc:
        raise AudioNotFoundError("Failed to download audio file") from exc

    async with get_session() as session:
        repo = MemoryRepository(session)
        memory = await repo.get_memory(memory_id, user_id)
        await repo.transition(memory, ProcessingStatus.transcribing)

    gateway = None
    if stt is None or extractor is None:
        gateway = GatewayClient()
    try:
        stt = stt or create_stt("gateway", client=gateway)
        extractor = extractor or SceneExtractor(
            create_llm(settings.scene_provider, gateway=gateway),
            drop_unverified=settings.drop_unverified_scenes,
        )

        # -- Stage 1: transcription --
        transcript = await _transcribe(stt, audio, _audio_format(audio_url))
        async with get_session() as session:
            repo = MemoryRepository(session)
            memory = await repo.get_memory(memory_id, user_id)
            await repo.save_transcript(memory, transcript)
        logger.info("Memory %s transcribed (%d chars)", memory_id, len(transcript))

        # -- Stage 2: scene extraction --
        scenes = await extractor.extract(transcript)
        async with get_session() as session:
            repo = MemoryRepository(session)
            memory = await repo.get_memory(memory_id, user_id)
            await repo.save_scenes(memory, scenes)
        logger.info("Memory %s: %d scenes extracted", memory_id, len(scenes))

    except MemorySketchError as exc:
        await _fail(memory_id, user_id, exc.detail)
        raise
    except Exception:
        logger.exception("Processing crashed for memory %s", memory_id)
        await _fail(memory_id, user_id, UNEXPECTED_FAILURE)
        raise
    finally:
        if gateway is not None:
            await gateway.aclose()

    return ProcessMemoryResponse(memory_id=memory_id, transcript=transcript, scenes=scenes)


async def generate_sketches(
    memory_id: str,
    user_id: str,
    *,
    generator: SketchGenerator | None = None,
) -> GenerateSketchesResponse:
    """Generate one sketch per stored scene and complete the memory.

    Per-scene failures become placeholders; the memory still ends up
    *complete*.

    Raises:
        MemoryNotFoundError: Unknown memory or not owned by *user_id*.
        NoScenesToSketchError: The memory has no stored scenes.
        InvalidStatusTransitionError: The memory is not in *sketching*.
    """
    async with get_session() as session:
        repo = MemoryRepository(session)
        memory = await repo.get_memory(memory_id, user_id)
        scenes = memory.scene_list
        if not scenes:
            raise NoScenesToSketchError()
        check_transition(memory.processing_status, ProcessingStatus.complete)

    gateway = None
    if generator is None:
        gateway = GatewayClient()
        generator = SketchGenerator(gateway, store=BlobStore(SKETCH_BUCKET))
    try:
        sketches = await generator.generate(scenes, user_id=user_id, memory_id=memory_id)
        async with get_session() as session:
            repo = MemoryRepository(session)
            memory = await repo.get_memory(memory_id, user_id)
            await repo.save_sketches(memory, sketches)
    except MemorySketchError as exc:
        await _fail(memory_id, user_id, exc.detail)
        raise
    except Exception:
        logger.exception("Sketch generation crashed for memory %s", memory_id)
        await _fail(memory_id, user_id, UNEXPECTED_FAILURE)
        raise
    finally:
        if gateway is not None:
            await gateway.aclose()

    logger.info("Memory %s complete with %d sketches", memory_id, len(sketches))
    return GenerateSketchesResponse(sketches=sketches)
