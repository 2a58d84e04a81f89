"""
Abstract base class for Speech-to-Text providers.

Implementations receive the stored audio bytes and return plain text; the
pipeline decides what an empty result means.
"""

from abc import ABC, abstractmethod


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    @abstractmethod
    async def transcribe(self, audio: bytes, audio_format: str = "webm") -> str:
        """Transcribe an encoded audio blob to text.

        Args:
            audio: Encoded audio exactly as uploaded.
            audio_format: Container/codec hint, e.g. ``webm`` or ``wav``.

        Returns:
            The transcript, trimmed. Empty if no speech was recognized.
        """
