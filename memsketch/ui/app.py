"""
Memory Sketches Streamlit UI — main entry point.

Run with: ``streamlit run memsketch/ui/app.py``
"""

import streamlit as st

from memsketch.core.config import get_settings
from memsketch.ui.api_client import get_api_client

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Memory Sketches",
    page_icon="✏️",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_settings = get_settings()
_DEFAULTS = {
    "api_base_url": _settings.api_base_url,
    "api_token": _settings.api_token,
    "recording_title": "",
    "pipeline_step": 0,
    "pipeline_status": "idle",
    "pipeline_error": None,
    "pipeline_result": None,
    "selected_memory_id": None,
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("✏️ Memory Sketches")
    st.caption("Speak a memory, keep it as sketches")
    st.divider()
    st.session_state.api_base_url = st.text_input(
        "Backend API URL",
        value=st.session_state.api_base_url,
    )
    st.session_state.api_token = st.text_input(
        "Access token",
        value=st.session_state.api_token,
        type="password",
    )

    _client = get_api_client(st.session_state.api_base_url, st.session_state.api_token)
    _conn_ok, _conn_msg = _client.check_connection()
    if _conn_ok:
        st.success(f"Backend: {_conn_msg}")
    else:
        st.error(f"Backend: {_conn_msg}")

# ---------------------------------------------------------------------------
# Navigation (multipage)
# ---------------------------------------------------------------------------
record_page = st.Page("pages/01_record.py", title="Record", icon="\U0001f3a4", default=True)
gallery_page = st.Page("pages/02_gallery.py", title="Gallery", icon="\U0001f5bc️")

st.navigation([record_page, gallery_page]).run()
