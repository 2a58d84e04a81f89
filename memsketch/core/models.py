"""
Pydantic v2 request / response models used across the API and pipeline.

Wire JSON is camelCase (``memoryId``, ``sceneIndex``); Python attributes
stay snake_case. Models accept either spelling on input.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Memory status
# ---------------------------------------------------------------------------


class ProcessingStatus(StrEnum):
    """Lifecycle of a memory as it moves through the pipeline."""

    recorded = "recorded"
    transcribing = "transcribing"
    extracting = "extracting"
    sketching = "sketching"
    complete = "complete"
    error = "error"


# ---------------------------------------------------------------------------
# Scenes & sketches
# ---------------------------------------------------------------------------


class Scene(CamelModel):
    """A unit of visual meaning tied to a transcript excerpt."""

    sentence: str
    description: str
    mood: str = ""


class Sketch(CamelModel):
    """The artifact (or placeholder) generated for one scene."""

    scene_index: int
    caption: str
    sentence: str | None = None
    mood: str | None = None
    image_url: str | None = None
    generated_description: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


# ---------------------------------------------------------------------------
# Memory records
# ---------------------------------------------------------------------------


class MemoryCreate(CamelModel):
    """POST /memories request body (optional fields)."""

    title: str | None = None


class MemoryResponse(CamelModel):
    """Standard memory representation returned by the API."""

    id: str
    user_id: str
    title: str | None = None
    processing_status: ProcessingStatus
    transcript: str | None = None
    scenes: list[Scene] = Field(default_factory=list)
    sketches: list[Sketch] = Field(default_factory=list)
    audio_url: str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class DeleteMemoryResponse(CamelModel):
    """DELETE /memories/{id} response."""

    memory_id: str
    deleted: bool = True
    blobs_removed: int = 0


# ---------------------------------------------------------------------------
# Stage handlers
# ---------------------------------------------------------------------------


class StageRequest(CamelModel):
    """Body accepted by both stage handlers."""

    memory_id: str = Field(min_length=1)


class ProcessMemoryResponse(CamelModel):
    """Result of the transcription + scene extraction handler."""

    success: bool = True
    memory_id: str
    transcript: str
    scenes: list[Scene] = Field(default_factory=list)


class GenerateSketchesResponse(CamelModel):
    """Result of the sketch generation handler."""

    success: bool = True
    sketches: list[Sketch] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    success: bool = False
    error: str
    code: str
    timestamp: str
