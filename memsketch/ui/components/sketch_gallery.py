"""
Scene and sketch display components.
"""

import streamlit as st

from memsketch.ui.api_client import APIClient


def render_scenes(scenes: list[dict]) -> None:
    """Render extracted scenes as expandable cards."""
    if not scenes:
        return
    st.subheader(f"Scenes ({len(scenes)})")
    for i, scene in enumerate(scenes):
        title = f"{i + 1}. {scene.get('sentence', '')}"
        with st.expander(title):
            st.markdown(scene.get("description", ""))
            if scene.get("mood"):
                st.caption(f"Mood: {scene['mood']}")


def render_sketch_gallery(memory_id: str | None, sketches: list[dict], client: APIClient) -> None:
    """Render sketches in a grid; failed scenes show their placeholder text."""
    if not sketches:
        return
    st.subheader("Sketches")
    cols = st.columns(min(3, len(sketches)))
    for i, sketch in enumerate(sorted(sketches, key=lambda s: s.get("sceneIndex", 0))):
        with cols[i % len(cols)]:
            with st.container(border=True):
                image = None
                if memory_id and sketch.get("imageUrl"):
                    image = client.download_sketch_image(memory_id, sketch["sceneIndex"])
                if image:
                    st.image(image, use_container_width=True)
                else:
                    st.warning(sketch.get("error") or "No image")
                st.markdown(f"*{sketch.get('caption', '')}*")
                if sketch.get("mood"):
                    st.caption(sketch["mood"])
