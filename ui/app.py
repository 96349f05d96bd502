"""Mi Super Diario de Notas — Streamlit interface.

Run with:
    streamlit run ui/app.py
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the project root is on sys.path so `ui.*` and `diary.*` imports
# resolve regardless of the working directory Streamlit uses.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

st.set_page_config(
    page_title="Mi Super Diario de Notas",
    page_icon="📝",
    layout="centered",
)

from diary.errors import ConfigurationError  # noqa: E402
from diary.session import View  # noqa: E402
from ui import runtime  # noqa: E402
from ui.components import auth, notes  # noqa: E402

try:
    settings = runtime.get_settings()
except ConfigurationError as exc:
    st.error(str(exc))
    st.stop()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
runtime.start_metrics_server(settings.metrics_port)

controller = runtime.get_controller(settings)

if controller.view is View.LOADING:
    with st.spinner("Cargando..."):
        runtime.run(controller.start())

# Exactly one of the two views is shown
if controller.view is View.WORKSPACE:
    runtime.drop_authenticator()
    notes.render(runtime.get_workspace(settings, controller))
else:
    runtime.drop_workspace()
    auth.render(runtime.get_authenticator(settings, controller))
