"""Shared utility functions for Memory Sketches."""

import re

_WS = re.compile(r"\s+")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON from LLM responses."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


def normalize_text(text: str) -> str:
    """Lower-case and collapse whitespace so excerpts compare loosely."""
    return _WS.sub(" ", text).strip().casefold()


def is_excerpt(sentence: str, transcript: str) -> bool:
    """True if *sentence* appears in *transcript*, ignoring case and spacing.

    Trailing punctuation on the sentence is ignored, since models often add
    or drop a final period when quoting.
    """
    needle = normalize_text(sentence).rstrip(".!?,;:")
    if not needle:
        return False
    return needle in normalize_text(transcript)
