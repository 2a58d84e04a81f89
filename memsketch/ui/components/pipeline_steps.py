"""
Pipeline progress indicator.

Renders the five steps (Record, Transcribe, Extract, Sketch, Complete) with
the current one highlighted. Step indices come from
:func:`memsketch.core.status.pipeline_step`.
"""

import streamlit as st

STEP_NAMES = ["Record", "Transcribe", "Extract", "Sketch", "Complete"]


def step_marker(index: int, current: int, failed: bool = False) -> str:
    """Return the marker shown in front of step *index*."""
    if index < current:
        return "✅"
    if index == current:
        if failed:
            return "❌"
        return "✅" if current == len(STEP_NAMES) - 1 else "⏳"
    return "⚪"


def render_pipeline_steps(current: int, failed: bool = False) -> None:
    """Render the step row with *current* highlighted."""
    current = max(0, min(current, len(STEP_NAMES) - 1))
    cols = st.columns(len(STEP_NAMES))
    for i, (col, name) in enumerate(zip(cols, STEP_NAMES)):
        marker = step_marker(i, current, failed)
        label = f"**{name}**" if i == current else name
        col.markdown(f"{marker} {label}")
    st.progress(current / (len(STEP_NAMES) - 1))
