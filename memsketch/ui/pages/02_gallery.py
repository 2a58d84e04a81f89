"""
Gallery page — browse, replay and delete saved memories.
"""

import streamlit as st

from memsketch.core.models import ProcessingStatus
from memsketch.core.status import STATUS_LABELS, can_reset, failed_stage, pipeline_step
from memsketch.ui.api_client import APIError, get_api_client
from memsketch.ui.components.pipeline_steps import render_pipeline_steps
from memsketch.ui.components.sketch_gallery import render_scenes, render_sketch_gallery

st.header("Your memories")

client = get_api_client(st.session_state.api_base_url, st.session_state.api_token)

try:
    memories = client.list_memories()
except APIError as exc:
    st.error(f"Failed to load memories: {exc.message}")
    st.stop()

if not memories:
    st.info("No memories yet. Record one on the Record page.")
    st.stop()

col_list, col_detail = st.columns([1, 2])

with col_list:
    for m in memories:
        label = STATUS_LABELS.get(ProcessingStatus(m["processingStatus"]), m["processingStatus"])
        title = m.get("title") or m["createdAt"][:16].replace("T", " ")
        with st.container(border=True):
            st.markdown(f"**{title}**")
            st.caption(label)
            c1, c2 = st.columns(2)
            if c1.button("Open", key=f"open_{m['id']}", use_container_width=True):
                st.session_state.selected_memory_id = m["id"]
            if c2.button("Delete", key=f"del_{m['id']}", use_container_width=True):
                try:
                    client.delete_memory(m["id"])
                    if st.session_state.selected_memory_id == m["id"]:
                        st.session_state.selected_memory_id = None
                    st.toast("Memory deleted")
                except APIError as exc:
                    st.toast(f"Failed to delete: {exc.message}")
                st.rerun()

with col_detail:
    selected = next(
        (m for m in memories if m["id"] == st.session_state.selected_memory_id), None
    )
    if selected is None:
        st.caption("Select a memory to see its sketches.")
    else:
        status = selected["processingStatus"]
        failed = status == ProcessingStatus.error
        failed_at = (
            failed_stage(selected.get("transcript"), len(selected.get("scenes", [])))
            if failed
            else None
        )
        render_pipeline_steps(pipeline_step(status, failed_at=failed_at), failed=failed)
        audio = client.download_audio(selected["id"]) if selected.get("audioUrl") else None
        if audio:
            st.audio(audio)
        if selected.get("errorMessage"):
            st.error(selected["errorMessage"])
        if can_reset(selected["processingStatus"]) and st.button("Reset for reprocessing"):
            try:
                client.reset_memory(selected["id"])
                st.toast("Memory reset")
            except APIError as exc:
                st.toast(f"Failed to reset: {exc.message}")
            st.rerun()
        if selected.get("transcript"):
            st.subheader("Transcript")
            st.markdown(f"> {selected['transcript']}")
        render_scenes(selected.get("scenes", []))
        render_sketch_gallery(selected["id"], selected.get("sketches", []), client)
