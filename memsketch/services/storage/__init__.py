"""
Storage module - Database records and object storage.
"""

from memsketch.services.storage.blob_store import AUDIO_BUCKET, SKETCH_BUCKET, BlobStore
from memsketch.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from memsketch.services.storage.models_db import Memory
from memsketch.services.storage.repository import MemoryRepository

__all__ = [
    "AUDIO_BUCKET",
    "Base",
    "BlobStore",
    "Memory",
    "MemoryRepository",
    "SKETCH_BUCKET",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
