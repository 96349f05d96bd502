"""Glue between Streamlit reruns and the async views.

Each browser session keeps its own backend client, session controller
and views in ``st.session_state``. Streamlit reruns are synchronous, so
every view operation is driven to completion with ``asyncio.run``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

import streamlit as st
from prometheus_client import start_http_server

from diary.auth import Authenticator
from diary.backend import SupabaseBackend
from diary.config import Settings, load_settings
from diary.session import SessionController
from diary.workspace import NotesWorkspace

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run(awaitable: Awaitable[T]) -> T:
    """Run one view operation to completion."""

    async def _main() -> T:
        return await awaitable

    return asyncio.run(_main())


@st.cache_resource
def get_settings() -> Settings:
    """Process-wide settings. Raises ``ConfigurationError`` when incomplete."""
    return load_settings()


@st.cache_resource
def start_metrics_server(port: Optional[int]) -> bool:
    """Expose Prometheus metrics once per process when a port is configured."""
    if port is None:
        return False
    start_http_server(port)
    logger.info("Prometheus metrics served on port %d", port)
    return True


# ---------------------------------------------------------------------------
# Per-browser-session objects
# ---------------------------------------------------------------------------


def get_controller(settings: Settings) -> SessionController:
    if "controller" not in st.session_state:
        backend = SupabaseBackend.from_settings(settings)
        st.session_state.controller = SessionController(backend)
    return st.session_state.controller


def get_authenticator(settings: Settings, controller: SessionController) -> Authenticator:
    if "authenticator" not in st.session_state:
        st.session_state.authenticator = Authenticator(
            controller.backend,
            controller,
            require_email_confirmation=settings.require_email_confirmation,
        )
    return st.session_state.authenticator


def get_workspace(settings: Settings, controller: SessionController) -> NotesWorkspace:
    if "workspace" not in st.session_state:
        st.session_state.workspace = NotesWorkspace(
            controller.backend,
            controller,
            locale=settings.display_locale,
            tz=settings.timezone,
        )
    return st.session_state.workspace


def drop_authenticator() -> None:
    authenticator = st.session_state.pop("authenticator", None)
    if authenticator is not None:
        authenticator.close()


def drop_workspace() -> None:
    workspace = st.session_state.pop("workspace", None)
    if workspace is not None:
        workspace.close()
    for key in ("draft", "pending_delete"):
        st.session_state.pop(key, None)
