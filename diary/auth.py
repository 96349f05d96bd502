"""Authenticator: the login / sign-up form."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

import pydantic
from pydantic import EmailStr, TypeAdapter

from diary.backend import Backend
from diary.errors import CollaboratorError, ValidationError
from diary.lifetime import Lifetime, ViewClosed
from diary.session import SessionController

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

_EMAIL = TypeAdapter(EmailStr)

CONFIRM_EMAIL_MESSAGE = "¡Registro exitoso! Revisa tu email para confirmar tu cuenta."


class AuthMode(str, Enum):
    LOGIN = "login"
    REGISTER = "register"


class AuthOutcome(str, Enum):
    """What a submit ended in."""

    SIGNED_IN = "signed_in"
    CONFIRMATION_REQUIRED = "confirmation_required"
    FAILED = "failed"
    IGNORED = "ignored"  # busy, or the form was closed mid-request


def validate_credentials(email: str, password: str) -> None:
    """Raise ``ValidationError`` for input the form would not submit."""
    try:
        _EMAIL.validate_python(email.strip())
    except pydantic.ValidationError as exc:
        raise ValidationError("Introduce un correo electrónico válido.") from exc
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres."
        )


class Authenticator:
    """Collects credentials and signs the user in or up.

    Sign-in success is reported to the session context. Sign-up shows a
    confirmation message and stays on the form, unless email confirmation
    is switched off and the service already issued a session.
    """

    def __init__(
        self,
        backend: Backend,
        context: SessionController,
        require_email_confirmation: bool = True,
    ) -> None:
        self.backend = backend
        self.context = context
        self.require_email_confirmation = require_email_confirmation
        self.mode = AuthMode.LOGIN
        self.busy = False
        self.error: Optional[str] = None
        self.message: Optional[str] = None
        self._lifetime = Lifetime("authenticator")

    def toggle_mode(self) -> None:
        """Switch between login and register, clearing old messages."""
        self.mode = AuthMode.REGISTER if self.mode is AuthMode.LOGIN else AuthMode.LOGIN
        self.error = None
        self.message = None

    def dismiss_error(self) -> None:
        self.error = None

    async def submit(self, email: str, password: str) -> AuthOutcome:
        if self.busy:
            return AuthOutcome.IGNORED

        self.error = None
        self.message = None
        email = email.strip()
        try:
            validate_credentials(email, password)
        except ValidationError as exc:
            self.error = exc.message
            return AuthOutcome.FAILED

        self.busy = True
        try:
            if self.mode is AuthMode.LOGIN:
                return await self._sign_in(email, password)
            return await self._sign_up(email, password)
        except ViewClosed:
            return AuthOutcome.IGNORED
        except CollaboratorError as exc:
            self.error = exc.message
            return AuthOutcome.FAILED
        finally:
            self.busy = False

    def close(self) -> None:
        self._lifetime.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _sign_in(self, email: str, password: str) -> AuthOutcome:
        session = await self._lifetime.run(
            self.backend.sign_in_with_password(email, password)
        )
        logger.info("Signed in user %s", session.user.id)
        self.context.notify_signed_in(session)
        return AuthOutcome.SIGNED_IN

    async def _sign_up(self, email: str, password: str) -> AuthOutcome:
        result = await self._lifetime.run(self.backend.sign_up(email, password))
        if result.session is not None and not self.require_email_confirmation:
            self.backend.set_session(result.session)
            logger.info("Signed up and signed in user %s", result.session.user.id)
            self.context.notify_signed_in(result.session)
            return AuthOutcome.SIGNED_IN

        logger.info("Sign-up pending email confirmation")
        self.message = CONFIRM_EMAIL_MESSAGE
        return AuthOutcome.CONFIRMATION_REQUIRED
