"""
Memory Sketches exception hierarchy.

All application-specific exceptions inherit from MemorySketchError so the
API layer can turn any of them into the same JSON error envelope.
"""

from datetime import UTC, datetime


class MemorySketchError(Exception):
    """Base exception for all Memory Sketches errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "MEMSKETCH_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class AuthenticationError(MemorySketchError):
    """Raised when the bearer credential is missing or unknown."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(detail=detail, code="AUTH_REQUIRED", status_code=401)


class ConfigurationError(MemorySketchError):
    """Raised when a required setting (e.g. an API key) is empty."""

    def __init__(self, setting: str) -> None:
        super().__init__(
            detail=f"{setting.upper()} is not configured",
            code="CONFIGURATION_ERROR",
            status_code=500,
        )


# ---------------------------------------------------------------------------
# Missing resources
# ---------------------------------------------------------------------------


class MemoryNotFoundError(MemorySketchError):
    """Raised when a memory does not exist or belongs to another user."""

    def __init__(self, memory_id: str) -> None:
        super().__init__(
            detail=f"Memory not found: {memory_id}",
            code="MEMORY_NOT_FOUND",
            status_code=404,
        )


class AudioNotFoundError(MemorySketchError):
    """Raised when a memory has no stored audio object."""

    def __init__(self, detail: str = "No audio file found for this memory") -> None:
        super().__init__(detail=detail, code="AUDIO_NOT_FOUND", status_code=404)


class BlobNotFoundError(MemorySketchError):
    """Raised when a storage path does not resolve to a stored object."""

    def __init__(self, path: str) -> None:
        super().__init__(
            detail=f"Stored object not found: {path}",
            code="BLOB_NOT_FOUND",
            status_code=404,
        )


# ---------------------------------------------------------------------------
# Upstream AI services
# ---------------------------------------------------------------------------


class UpstreamError(MemorySketchError):
    """Raised when an external AI call fails for any non-quota reason."""

    def __init__(
        self,
        detail: str = "Upstream AI request failed",
        code: str = "UPSTREAM_ERROR",
        status_code: int = 502,
    ) -> None:
        super().__init__(detail=detail, code=code, status_code=status_code)


class UpstreamConnectError(UpstreamError):
    """The AI service could not be reached; no request was processed."""

    def __init__(self, detail: str = "Could not reach the AI service") -> None:
        super().__init__(detail=detail, code="UPSTREAM_UNREACHABLE", status_code=502)


class UpstreamRateLimitedError(UpstreamError):
    """Upstream answered 429."""

    def __init__(self, detail: str = "Rate limit exceeded. Please try again later.") -> None:
        super().__init__(detail=detail, code="RATE_LIMITED", status_code=429)


class UpstreamPaymentRequiredError(UpstreamError):
    """Upstream answered 402 (credits exhausted)."""

    def __init__(self, detail: str = "AI credits exhausted.") -> None:
        super().__init__(detail=detail, code="PAYMENT_REQUIRED", status_code=402)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


class TranscriptionError(MemorySketchError):
    """Raised when the transcription stage fails for a generic reason."""

    def __init__(self, detail: str = "Transcription failed.") -> None:
        super().__init__(detail=detail, code="TRANSCRIPTION_ERROR", status_code=500)


class EmptyTranscriptError(MemorySketchError):
    """Raised when the model returns no text for the recording."""

    def __init__(self) -> None:
        super().__init__(
            detail="No speech detected in the recording.",
            code="EMPTY_TRANSCRIPT",
            status_code=400,
        )


class SceneExtractionError(MemorySketchError):
    """Raised when the scene extraction call fails or returns garbage."""

    def __init__(self, detail: str = "Scene extraction failed.") -> None:
        super().__init__(detail=detail, code="SCENE_EXTRACTION_ERROR", status_code=500)


class NoScenesExtractedError(MemorySketchError):
    """Raised when extraction yields an empty scene list."""

    def __init__(self) -> None:
        super().__init__(
            detail="Could not extract any scenes from transcript.",
            code="NO_SCENES",
            status_code=400,
        )


class NoScenesToSketchError(MemorySketchError):
    """Raised when the sketch stage finds no stored scenes."""

    def __init__(self) -> None:
        super().__init__(detail="No scenes to sketch", code="NO_SCENES", status_code=400)


class InvalidStatusTransitionError(MemorySketchError):
    """Raised when a status change would move a memory backward or sideways."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            detail=f"Cannot move memory from '{current}' to '{target}'",
            code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class AudioTooLargeError(MemorySketchError):
    """Raised when an uploaded audio blob exceeds ``max_audio_bytes``."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            detail=f"Audio is {size} bytes; the limit is {limit}",
            code="AUDIO_TOO_LARGE",
            status_code=413,
        )
