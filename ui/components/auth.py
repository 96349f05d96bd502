"""Login / sign-up page."""

from __future__ import annotations

import streamlit as st

from diary.auth import AuthMode, Authenticator
from ui import runtime

_TITLES: dict[AuthMode, tuple[str, str, str]] = {
    # (subtitle, submit label, toggle prompt)
    AuthMode.LOGIN: (
        "Inicia sesión para gestionar tus notas",
        "🔑 Iniciar Sesión",
        "¿No tienes cuenta? Regístrate",
    ),
    AuthMode.REGISTER: (
        "Regístrate para comenzar a crear notas",
        "👤 Registrarse",
        "¿Ya tienes cuenta? Inicia sesión",
    ),
}


def _submit(authenticator: Authenticator) -> None:
    """Form callback: runs before the next rerun renders."""
    with st.spinner("Procesando..."):
        runtime.run(
            authenticator.submit(
                st.session_state.get("auth_email", ""),
                st.session_state.get("auth_password", ""),
            )
        )


def render(authenticator: Authenticator) -> None:
    """Render the authentication form."""
    subtitle, submit_label, toggle_label = _TITLES[authenticator.mode]

    st.title("Mi Super Diario de Notas 🚀")
    st.caption(subtitle)

    if authenticator.error:
        col_msg, col_close = st.columns([12, 1])
        col_msg.error(authenticator.error)
        col_close.button(
            "✕", key="dismiss_auth_error", on_click=authenticator.dismiss_error
        )
    if authenticator.message:
        st.success(authenticator.message)

    with st.form("auth_form"):
        st.text_input(
            "Correo electrónico",
            key="auth_email",
            placeholder="tu@email.com",
        )
        st.text_input(
            "Contraseña",
            key="auth_password",
            type="password",
            placeholder="••••••••",
        )
        st.form_submit_button(
            submit_label,
            on_click=_submit,
            args=(authenticator,),
            disabled=authenticator.busy,
            type="primary",
            use_container_width=True,
        )

    st.button(toggle_label, on_click=authenticator.toggle_mode, type="tertiary")

    st.divider()
    st.caption("Aplicación segura con Supabase")
