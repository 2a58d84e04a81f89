"""Transcription through a multimodal model on the AI gateway.

The audio is sent inline as a base64 ``input_audio`` content part together
with a verbatim-only instruction; the model's text reply is the transcript.
"""

import base64
import logging

from memsketch.core.config import get_settings
from memsketch.services.llm.gateway import GatewayClient, message_content
from memsketch.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a transcription assistant. Your ONLY job is to transcribe the audio "
    "exactly as spoken. Output ONLY the transcription text, nothing else. "
    "No commentary, no formatting, no timestamps. Just the exact words spoken."
)

USER_INSTRUCTION = (
    "Transcribe this audio recording exactly as spoken. Output only the transcription."
)


class GatewaySTT(BaseSTT):
    """Speech-to-text via a multimodal chat model.

    Args:
        client: A shared :class:`GatewayClient`.
        model: Model identifier (defaults to ``settings.transcription_model``).
    """

    def __init__(self, client: GatewayClient, model: str | None = None) -> None:
        self._client = client
        self._model = model or get_settings().transcription_model

    @staticmethod
    def build_messages(audio: bytes, audio_format: str) -> list[dict]:
        encoded = base64.b64encode(audio).decode("ascii")
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {
                        "type": "input_audio",
                        "input_audio": {"data": encoded, "format": audio_format},
                    },
                    {"type": "text", "text": USER_INSTRUCTION},
                ],
            },
        ]

    async def transcribe(self, audio: bytes, audio_format: str = "webm") -> str:
        """Transcribe *audio* and return the trimmed text ("" if none)."""
        logger.info(
            "Transcribing %d bytes of %s audio with %s", len(audio), audio_format, self._model
        )
        data = await self._client.chat(self._model, self.build_messages(audio, audio_format))
        return (message_content(data) or "").strip()
