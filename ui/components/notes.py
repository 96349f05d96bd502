"""Notes page: create form, note list and delete confirmation."""

from __future__ import annotations

from typing import Optional

import streamlit as st

from diary.models import Note
from diary.workspace import NotesWorkspace, WorkspaceState
from ui import runtime

_CONFIRM_TEXT = "¿Estás seguro de que quieres eliminar esta nota?"


def _create(workspace: NotesWorkspace) -> None:
    """Submit the draft; the text area keeps its text if the call fails."""
    runtime.run(workspace.create(st.session_state.get("draft", "")))
    st.session_state.draft = workspace.draft


def _ask_delete(note_id: str) -> None:
    st.session_state["pending_delete"] = note_id


def _take_pending(workspace: NotesWorkspace) -> Optional[Note]:
    """Consume the delete request made on the previous run.

    The request is cleared as soon as the dialog opens, so a dialog closed
    with X, Esc or a click outside is not shown again on later reruns.
    """
    pending = st.session_state.pop("pending_delete", None)
    if pending is None:
        return None
    return next((n for n in workspace.notes if n.id == pending), None)


def _logout(workspace: NotesWorkspace) -> None:
    runtime.run(workspace.logout())
    runtime.drop_workspace()


@st.dialog("Eliminar nota")
def _confirm_delete(workspace: NotesWorkspace, note: Note) -> None:
    """Ask before deleting; the delete cannot be undone."""
    st.write(_CONFIRM_TEXT)
    st.caption(note.content[:120])
    col_yes, col_no = st.columns(2)
    if col_yes.button("🗑️ Eliminar", type="primary", use_container_width=True):
        runtime.run(workspace.delete(note.id, confirm=lambda _note: True))
        st.rerun()
    if col_no.button("Cancelar", use_container_width=True):
        st.rerun()


def _render_header(workspace: NotesWorkspace) -> None:
    col_title, col_logout = st.columns([3, 1])
    with col_title:
        st.title("📒 Mis Notas")
        st.caption(f"👤 {workspace.user_email}")
    with col_logout:
        st.button(
            "Cerrar Sesión",
            on_click=_logout,
            args=(workspace,),
            use_container_width=True,
        )


def _render_error(workspace: NotesWorkspace) -> None:
    """Inline, dismissible error banner."""
    if not workspace.error:
        return
    col_msg, col_close = st.columns([12, 1])
    col_msg.error(workspace.error)
    col_close.button("✕", key="dismiss_error", on_click=workspace.dismiss_error)


def _render_create_form(workspace: NotesWorkspace) -> None:
    submitting = workspace.state is WorkspaceState.SUBMITTING
    with st.container(border=True):
        st.subheader("➕ Nueva Nota")
        st.text_area(
            "Nueva nota",
            key="draft",
            placeholder="Escribe tu nota aquí...",
            height=100,
            label_visibility="collapsed",
        )
        st.button(
            "Guardando..." if submitting else "Crear Nota",
            on_click=_create,
            args=(workspace,),
            disabled=submitting,
            type="primary",
        )


def _render_notes(workspace: NotesWorkspace) -> None:
    if workspace.empty:
        st.info(
            "**No tienes notas aún**\n\n"
            "Crea tu primera nota usando el formulario de arriba"
        )
        return

    for note in workspace.notes:
        with st.container(border=True):
            col_body, col_delete = st.columns([12, 1])
            with col_body:
                st.text(note.content)
                st.caption(f"📅 {workspace.format_date(note)}")
            col_delete.button(
                "🗑️",
                key=f"delete_{note.id}",
                help="Eliminar nota",
                on_click=_ask_delete,
                args=(note.id,),
            )


def render(workspace: NotesWorkspace) -> None:
    """Render the notes workspace."""
    if workspace.state is WorkspaceState.LOADING:
        with st.spinner("Cargando..."):
            runtime.run(workspace.mount())

    _render_header(workspace)
    _render_error(workspace)
    _render_create_form(workspace)
    _render_notes(workspace)

    st.caption(workspace.footer())

    note = _take_pending(workspace)
    if note is not None:
        _confirm_delete(workspace, note)
