"""
Recorder component — handles the full recording state machine.

States: idle -> processing -> completed (or error)
"""

import logging

import streamlit as st

from memsketch.ui.api_client import APIError, get_api_client
from memsketch.ui.components.pipeline_steps import render_pipeline_steps
from memsketch.ui.components.sketch_gallery import render_scenes, render_sketch_gallery

logger = logging.getLogger(__name__)

# st.audio_input records WAV
_AUDIO_CONTENT_TYPE = "audio/wav"


def _process_audio(audio_bytes: bytes) -> None:
    """Run the captured audio through both pipeline stages."""
    client = get_api_client(st.session_state.api_base_url, st.session_state.api_token)
    title = st.session_state.recording_title or None

    steps = st.empty()
    message = st.empty()

    def on_step(step: int, text: str) -> None:
        st.session_state.pipeline_step = step
        with steps.container():
            render_pipeline_steps(step)
        message.info(text)

    on_step(0, "Uploading your recording...")
    try:
        st.session_state.pipeline_result = client.record_memory(
            audio_bytes,
            content_type=_AUDIO_CONTENT_TYPE,
            title=title,
            on_step=on_step,
        )
        st.session_state.pipeline_status = "completed"
    except APIError as exc:
        logger.warning("Pipeline failed (%s): %s", exc.category, exc.message)
        st.session_state.pipeline_error = exc.message
        st.session_state.pipeline_status = "error"


def render_recorder() -> None:
    """Render the recording UI based on current session state."""
    status = st.session_state.pipeline_status

    if status == "idle":
        _render_idle()
    elif status == "processing":
        _render_processing()
    elif status == "completed":
        _render_completed()
    elif status == "error":
        _render_error()


def _render_idle() -> None:
    """Show title input and the audio recorder."""
    st.session_state.recording_title = st.text_input(
        "Title (optional)",
        value=st.session_state.recording_title,
        placeholder="e.g. Grandma's kitchen, summer 1994",
    )
    render_pipeline_steps(0)

    audio = st.audio_input("Tell a memory")

    if audio is not None:
        st.session_state.pipeline_status = "processing"
        st.session_state._pending_audio = audio.getvalue()
        st.rerun()


def _render_processing() -> None:
    """Process the captured audio with a spinner."""
    audio_bytes = st.session_state.pop("_pending_audio", None)
    if audio_bytes is None:
        st.session_state.pipeline_status = "idle"
        st.rerun()
        return

    with st.spinner("Working on your memory..."):
        _process_audio(audio_bytes)

    st.rerun()


def _render_completed() -> None:
    """Show transcript, scenes and sketches for the finished memory."""
    result = st.session_state.pipeline_result or {}
    render_pipeline_steps(4)
    st.success("Your memory has been preserved as sketches!")

    transcript = result.get("transcript")
    if transcript:
        st.subheader("Transcript")
        st.markdown(f"> {transcript}")

    render_scenes(result.get("scenes", []))

    client = get_api_client(st.session_state.api_base_url, st.session_state.api_token)
    render_sketch_gallery(result.get("memoryId"), result.get("sketches", []), client)

    if st.button("Record another memory"):
        _reset_state()
        st.rerun()


def _render_error() -> None:
    render_pipeline_steps(st.session_state.pipeline_step, failed=True)
    st.error(st.session_state.pipeline_error or "Something went wrong.")
    if st.button("Try again"):
        _reset_state()
        st.rerun()


def _reset_state() -> None:
    st.session_state.pipeline_status = "idle"
    st.session_state.pipeline_step = 0
    st.session_state.pipeline_error = None
    st.session_state.pipeline_result = None
    st.session_state.recording_title = ""
