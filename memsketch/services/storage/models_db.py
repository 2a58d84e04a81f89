"""
SQLAlchemy ORM models.

One table, ``memories``. Scenes and sketches are embedded as JSON-encoded
text so each record stays a single denormalized row.
"""

import json
import uuid
from datetime import UTC, datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from memsketch.core.models import ProcessingStatus, Scene, Sketch
from memsketch.services.storage.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class Memory(Base):
    """A recorded memory and everything the pipeline derived from it."""

    __tablename__ = "memories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    processing_status: Mapped[str] = mapped_column(
        String(20), default=ProcessingStatus.recorded.value, index=True
    )
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
    scenes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sketches: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now)
    updated_at: Mapped[datetime | None] = mapped_column(default=_now, onupdate=_now)

    # -- embedded collections ------------------------------------------------

    @property
    def scene_list(self) -> list[Scene]:
        if not self.scenes:
            return []
        return [Scene.model_validate(s) for s in json.loads(self.scenes)]

    @scene_list.setter
    def scene_list(self, value: list[Scene]) -> None:
        self.scenes = json.dumps([s.model_dump(by_alias=True) for s in value])

    @property
    def sketch_list(self) -> list[Sketch]:
        if not self.sketches:
            return []
        return [Sketch.model_validate(s) for s in json.loads(self.sketches)]

    @sketch_list.setter
    def sketch_list(self, value: list[Sketch]) -> None:
        self.sketches = json.dumps([s.model_dump(by_alias=True) for s in value])

    def __repr__(self) -> str:
        return f"<Memory id={self.id} status={self.processing_status!r}>"
