"""
Record page — capture a spoken memory and run it through the pipeline.

UX flow: idle -> processing -> completed
"""

import streamlit as st

from memsketch.ui.components.recorder import render_recorder

st.header("Record a memory")
render_recorder()
