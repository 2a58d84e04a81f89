"""
Sketch generation service.

Fans out one image-model request per scene and joins them. A scene that
fails becomes a placeholder sketch carrying an error marker; the batch as a
whole never fails. Results are placed by scene index, so completion order
is irrelevant.
"""

import asyncio
import logging

from memsketch.core.config import get_settings
from memsketch.core.models import Scene, Sketch
from memsketch.services.llm.gateway import GatewayClient, message_content, message_images
from memsketch.services.storage.blob_store import (
    BlobStore,
    decode_data_url,
    extension_for,
    sketch_path,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_ERROR = "Generation failed"


def build_sketch_prompt(scene: Scene) -> str:
    """Prompt for one scene in the memory-journal sketch style."""
    mood = scene.mood or "nostalgic"
    return (
        "Create a warm, nostalgic watercolor and pencil sketch illustration of: "
        f"{scene.description}. The mood is {mood}. Style: hand-drawn pencil sketch "
        "with soft watercolor washes in sepia and warm amber tones. The scene should "
        "feel like a page from a memory journal."
    )


def placeholder(index: int, scene: Scene, error: str = PLACEHOLDER_ERROR) -> Sketch:
    return Sketch(
        scene_index=index,
        caption=scene.description,
        sentence=scene.sentence,
        mood=scene.mood,
        image_url=None,
        error=error,
    )


class SketchGenerator:
    """Generates one sketch per scene, concurrently.

    Args:
        client: A shared :class:`GatewayClient`.
        store: Bucket for generated images. Without one, image data is
            discarded and only text is kept.
        model: Image model (defaults to ``settings.sketch_model``).
        max_concurrent: Upper bound on in-flight requests.
    """

    def __init__(
        self,
        client: GatewayClient,
        store: BlobStore | None = None,
        model: str | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._store = store
        self._model = model or settings.sketch_model
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.sketch_max_concurrent)

    async def _store_image(
        self, url: str, user_id: str, memory_id: str, index: int
    ) -> str | None:
        """Persist a data-URL image and return its storage path.

        Remote URLs are kept as they are.
        """
        if not url.startswith("data:"):
            return url
        if self._store is None:
            return None
        decoded = decode_data_url(url)
        if decoded is None:
            logger.warning("Scene %s: undecodable image data URL", index)
            return None
        data, mime = decoded
        path = sketch_path(user_id, memory_id, index, extension_for(mime, default="png"))
        return await self._store.upload(path, data)

    async def _generate_one(
        self, index: int, scene: Scene, user_id: str, memory_id: str
    ) -> Sketch:
        async with self._semaphore:
            data = await self._client.chat(
                self._model,
                [{"role": "user", "content": build_sketch_prompt(scene)}],
                modalities=["image", "text"],
            )

        content = message_content(data)
        images = message_images(data)
        image_url = None
        if images:
            image_url = await self._store_image(images[0], user_id, memory_id, index)

        return Sketch(
            scene_index=index,
            caption=scene.description,
            sentence=scene.sentence,
            mood=scene.mood,
            image_url=image_url,
            generated_description=content if content else scene.description,
        )

    async def _settle(self, index: int, scene: Scene, user_id: str, memory_id: str) -> Sketch:
        """Run one scene and turn any failure into a placeholder."""
        try:
            return await self._generate_one(index, scene, user_id, memory_id)
        except Exception as exc:
            logger.warning(
                "Sketch generation failed for memory=%s scene=%s (non-fatal): %s",
                memory_id,
                index,
                exc,
            )
            return placeholder(index, scene)

    async def generate(self, scenes: list[Scene], user_id: str, memory_id: str) -> list[Sketch]:
        """Generate sketches for *scenes* and return them in scene order.

        The returned list has exactly ``len(scenes)`` entries and
        ``sketches[i].scene_index == i``.
        """
        sketches = await asyncio.gather(
            *(self._settle(i, scene, user_id, memory_id) for i, scene in enumerate(scenes))
        )
        failed = sum(1 for s in sketches if s.failed)
        if failed:
            logger.warning(
                "Memory %s: %d of %d sketches are placeholders", memory_id, failed, len(scenes)
            )
        return list(sketches)
