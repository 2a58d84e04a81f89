"""
Sketches module - Per-scene image generation.
"""

from .generator import PLACEHOLDER_ERROR, SketchGenerator, build_sketch_prompt

__all__ = ["PLACEHOLDER_ERROR", "SketchGenerator", "build_sketch_prompt"]
