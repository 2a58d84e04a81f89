"""
Scene extraction service.

Turns a transcript into an ordered list of :class:`Scene` objects by forcing
the model to call an ``extract_scenes`` tool. Each scene's ``sentence``
must quote the transcript; the prompt demands it and ``check_excerpts``
reports the scenes that do not.
"""

import json
import logging

from pydantic import ValidationError

from memsketch.core.exceptions import (
    NoScenesExtractedError,
    SceneExtractionError,
    UpstreamError,
    UpstreamPaymentRequiredError,
    UpstreamRateLimitedError,
)
from memsketch.core.models import Scene
from memsketch.core.utils import is_excerpt
from memsketch.services.llm.base import BaseLLM, ToolSpec

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You extract visual scenes from a spoken memory transcript. Rules:\n"
    "1. ONLY extract scenes from what is explicitly mentioned in the transcript\n"
    "2. Do NOT add characters, places, events, or details not spoken\n"
    "3. Each scene maps to a specific sentence or phrase from the transcript\n"
    "4. Describe each scene as a sketch prompt: what to draw, the mood, the setting\n"
    "5. Keep descriptions faithful to the original words"
)

EXTRACT_SCENES_TOOL = ToolSpec(
    name="extract_scenes",
    description="Extract visual scenes from the transcript",
    parameters={
        "type": "object",
        "properties": {
            "scenes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "sentence": {
                            "type": "string",
                            "description": "The exact sentence or phrase from the "
                            "transcript this scene is derived from",
                        },
                        "description": {
                            "type": "string",
                            "description": "A sketch prompt describing what to draw "
                            "for this scene",
                        },
                        "mood": {
                            "type": "string",
                            "description": "The emotional tone: nostalgic, happy, sad, "
                            "peaceful, exciting, etc.",
                        },
                    },
                    "required": ["sentence", "description", "mood"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["scenes"],
        "additionalProperties": False,
    },
)


def build_user_prompt(transcript: str) -> str:
    return (
        "Extract visual scenes from this memory transcript. "
        f'Each scene must map to a specific sentence:\n\n"{transcript}"'
    )


def check_excerpts(scenes: list[Scene], transcript: str) -> list[int]:
    """Return indices of scenes whose sentence is not found in *transcript*."""
    return [i for i, scene in enumerate(scenes) if not is_excerpt(scene.sentence, transcript)]


class SceneExtractor:
    """Extracts scenes from a transcript with an LLM provider.

    Args:
        llm: Any provider implementing :class:`BaseLLM`.
        drop_unverified: Discard scenes that do not quote the transcript.
    """

    def __init__(self, llm: BaseLLM, drop_unverified: bool = False) -> None:
        self._llm = llm
        self._drop_unverified = drop_unverified

    @staticmethod
    def _parse(arguments: dict) -> list[Scene]:
        raw = arguments.get("scenes") or []
        if not isinstance(raw, list):
            raise SceneExtractionError()
        try:
            return [Scene.model_validate(item) for item in raw]
        except ValidationError as exc:
            logger.warning("Scene extraction returned malformed scenes: %s", exc)
            raise SceneExtractionError() from exc

    async def extract(self, transcript: str) -> list[Scene]:
        """Extract scenes in transcript order.

        Args:
            transcript: The stored transcript.

        Returns:
            A non-empty list of scenes.

        Raises:
            UpstreamRateLimitedError: Upstream answered 429.
            UpstreamPaymentRequiredError: Upstream answered 402.
            SceneExtractionError: Any other upstream or parsing failure.
            NoScenesExtractedError: The model returned no scenes.
        """
        try:
            arguments = await self._llm.extract(
                build_user_prompt(transcript),
                EXTRACT_SCENES_TOOL,
                system=SYSTEM_PROMPT,
            )
        except (UpstreamRateLimitedError, UpstreamPaymentRequiredError):
            raise
        except UpstreamError as exc:
            logger.warning("Scene extraction call failed: %s", exc.detail)
            raise SceneExtractionError() from exc
        except json.JSONDecodeError as exc:
            logger.warning("Scene extraction returned invalid JSON: %s", exc)
            raise SceneExtractionError() from exc

        scenes = self._parse(arguments)

        unverified = check_excerpts(scenes, transcript)
        if unverified:
            logger.warning(
                "%d of %d scenes do not quote the transcript: %s",
                len(unverified),
                len(scenes),
                unverified,
            )
            if self._drop_unverified:
                dropped = set(unverified)
                scenes = [s for i, s in enumerate(scenes) if i not in dropped]

        if not scenes:
            raise NoScenesExtractedError()
        return scenes
