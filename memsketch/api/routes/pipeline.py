"""
Pipeline stage handlers.

``POST /process-memory`` transcribes and extracts scenes;
``POST /generate-sketches`` renders them. Both accept ``{"memoryId": ...}``
and delegate to :mod:`memsketch.services.pipeline`.
"""

from fastapi import APIRouter, Depends

from memsketch.api.middleware.auth import current_user_id
from memsketch.core.models import GenerateSketchesResponse, ProcessMemoryResponse, StageRequest
from memsketch.services import pipeline

router = APIRouter(tags=["pipeline"])


@router.post("/process-memory", response_model=ProcessMemoryResponse)
async def process_memory(body: StageRequest, user_id: str = Depends(current_user_id)):
    """Transcribe the memory's audio and extract its scenes."""
    return await pipeline.process_memory(body.memory_id, user_id)


@router.post("/generate-sketches", response_model=GenerateSketchesResponse)
async def generate_sketches(body: StageRequest, user_id: str = Depends(current_user_id)):
    """Generate one sketch per extracted scene and complete the memory."""
    return await pipeline.generate_sketches(body.memory_id, user_id)
