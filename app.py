# /app.py
import logging

import streamlit as st
from config import Config

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="Rummy Scores", page_icon="🃏", layout="wide")

# ---- Card-table theme ----
def _inject_site_theme():
    st.markdown(
        """
        <style>
        :root{
          --bg:#0b3d2e; --panel:#0e4b38; --sidebar:#0a2f24;
          --accent:#d4a017; --accent2:#b8860b; --text:#e6f4ea;
        }
        .stApp { background: var(--bg); color: var(--text); }

        [data-testid="stSidebar"] { background: var(--sidebar); color: var(--text); }
        header[data-testid="stHeader"] {
          background: var(--bg);
          border-bottom: 1px solid rgba(255,255,255,0.06);
        }

        .block-container { padding-top: 2.4rem; }

        h1, .stMarkdown h1 { margin-top: 0.25rem; margin-bottom: 1.0rem; }

        div[data-testid="stButton"] > button,
        div[data-testid="stFormSubmitButton"] > button {
          background: linear-gradient(180deg, var(--accent) 0%, var(--accent2) 100%);
          color: white; border: 0; border-radius: 12px;
          font-weight: 700;
          box-shadow: 0 4px 16px rgba(0,0,0,0.25);
        }
        div[data-testid="stButton"] > button:hover {
          filter: brightness(1.08); transform: translateY(-1px);
        }
        </style>
        """,
        unsafe_allow_html=True,
    )

_inject_site_theme()

st.sidebar.title("Rummy Scores")

from games.rummy_app import render as render_rummy  # noqa: E402
render_rummy()
