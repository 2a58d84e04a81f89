"""
Scenes module - Transcript to visual scene extraction.
"""

from .extractor import EXTRACT_SCENES_TOOL, SceneExtractor, check_excerpts

__all__ = ["EXTRACT_SCENES_TOOL", "SceneExtractor", "check_excerpts"]
