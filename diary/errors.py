"""Error taxonomy shared by the backend client and the views.

Backend failures are classified into an ``ErrorKind`` at the client
boundary, so the views never show raw service text to the user. The raw
text is kept on ``CollaboratorError.detail`` for logging.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of every failure the application can surface."""

    VALIDATION = "validation"
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    ALREADY_REGISTERED = "already_registered"
    WEAK_PASSWORD = "weak_password"
    NOT_AUTHENTICATED = "not_authenticated"
    SESSION_EXPIRED = "session_expired"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


# User-facing text per kind
MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Los datos introducidos no son válidos.",
    ErrorKind.INVALID_CREDENTIALS: "Correo o contraseña incorrectos.",
    ErrorKind.EMAIL_NOT_CONFIRMED: "Debes confirmar tu email antes de iniciar sesión.",
    ErrorKind.ALREADY_REGISTERED: "Ya existe una cuenta con ese correo.",
    ErrorKind.WEAK_PASSWORD: "La contraseña es demasiado débil.",
    ErrorKind.NOT_AUTHENTICATED: "Tu sesión no está iniciada.",
    ErrorKind.SESSION_EXPIRED: "Tu sesión ha caducado. Vuelve a iniciar sesión.",
    ErrorKind.ACCESS_DENIED: "No tienes permiso para realizar esta acción.",
    ErrorKind.NOT_FOUND: "La nota ya no existe.",
    ErrorKind.RATE_LIMITED: "Demasiados intentos. Espera un momento y vuelve a probar.",
    ErrorKind.NETWORK: "No se pudo conectar con el servidor. Revisa tu conexión.",
    ErrorKind.SERVICE_UNAVAILABLE: "El servicio no está disponible en este momento.",
    ErrorKind.UNKNOWN: "Ocurrió un error",
}


class DiaryError(Exception):
    """Base class for all application errors."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        self.message = message or MESSAGES[kind]
        super().__init__(self.message)


class ValidationError(DiaryError):
    """Input rejected client-side; no backend call was made."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.VALIDATION, message)


class CollaboratorError(DiaryError):
    """Any failure reported by (or while reaching) the hosted backend."""

    def __init__(
        self,
        kind: ErrorKind,
        detail: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(kind)
        self.detail = detail
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"CollaboratorError(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, detail={self.detail!r})"
        )


class ConfigurationError(Exception):
    """Required settings are missing or invalid. Fatal at startup."""


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

# Substrings of the auth service's error text, checked in order
_DETAIL_HINTS: list[tuple[str, ErrorKind]] = [
    ("refresh token", ErrorKind.SESSION_EXPIRED),
    ("refresh_token", ErrorKind.SESSION_EXPIRED),
    ("invalid login credentials", ErrorKind.INVALID_CREDENTIALS),
    ("invalid_credentials", ErrorKind.INVALID_CREDENTIALS),
    ("invalid_grant", ErrorKind.INVALID_CREDENTIALS),
    ("email not confirmed", ErrorKind.EMAIL_NOT_CONFIRMED),
    ("email_not_confirmed", ErrorKind.EMAIL_NOT_CONFIRMED),
    ("already registered", ErrorKind.ALREADY_REGISTERED),
    ("user_already_exists", ErrorKind.ALREADY_REGISTERED),
    ("weak_password", ErrorKind.WEAK_PASSWORD),
    ("password should be", ErrorKind.WEAK_PASSWORD),
    ("jwt expired", ErrorKind.SESSION_EXPIRED),
    ("row-level security", ErrorKind.ACCESS_DENIED),
    ("permission denied", ErrorKind.ACCESS_DENIED),
]


def classify(status_code: int, detail: str) -> ErrorKind:
    """Map an HTTP status and the service's error text to an ``ErrorKind``."""
    lowered = detail.lower()
    for hint, kind in _DETAIL_HINTS:
        if hint in lowered:
            return kind

    if status_code == 401:
        return ErrorKind.NOT_AUTHENTICATED
    if status_code == 403:
        return ErrorKind.ACCESS_DENIED
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ErrorKind.SERVICE_UNAVAILABLE
    return ErrorKind.UNKNOWN
