"""Client for the hosted backend: identity service and notes table.

``Backend`` is the contract the views depend on. ``SupabaseBackend``
implements it over the GoTrue auth REST API and the PostgREST table API
of a Supabase project. Row-level security on the server is what keeps
each user's notes private; the client only sends the user's token.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Optional

import httpx
import pydantic

from diary.config import Settings
from diary.errors import CollaboratorError, ErrorKind, classify
from diary.metrics import AUTH_EVENTS, BACKEND_CALLS, BACKEND_DURATION
from diary.models import AuthEvent, Note, Session, SignUpResult, User, new_note_row

logger = logging.getLogger(__name__)

AuthHandler = Callable[[AuthEvent, Optional[Session]], None]
Unsubscribe = Callable[[], None]

# Server replies meaning the session is already gone
_GONE_SESSION_KINDS = {
    ErrorKind.NOT_AUTHENTICATED,
    ErrorKind.SESSION_EXPIRED,
    ErrorKind.NOT_FOUND,
}


class Backend(ABC):
    """Contract of the hosted backend as seen by the application.

    Every call raises ``CollaboratorError`` on failure. Session changes
    are pushed to subscribers synchronously, in subscription order.
    """

    def __init__(self) -> None:
        self._handlers: list[AuthHandler] = []

    # ------------------------------------------------------------------
    # Session-change notifications
    # ------------------------------------------------------------------

    def subscribe(self, handler: AuthHandler) -> Unsubscribe:
        """Register *handler* for session changes. Returns its unsubscribe."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def _emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        AUTH_EVENTS.labels(event=event.value).inc()
        logger.info("Auth event %s", event.value)
        for handler in list(self._handlers):
            try:
                handler(event, session)
            except Exception:
                logger.exception("Session handler failed on %s", event.value)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_current_session(self) -> Optional[Session]:
        """Return the live session, or None when signed out."""

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Start a session with email + password."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Register an account. Does not adopt any returned session."""

    @abstractmethod
    def set_session(self, session: Session) -> None:
        """Adopt *session* as the current one."""

    @abstractmethod
    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new session."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""

    @abstractmethod
    async def get_current_user(self) -> Optional[User]:
        """Return the signed-in user, or None when signed out."""

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_notes(self, owner_id: str) -> list[Note]:
        """All notes of *owner_id*, newest first."""

    @abstractmethod
    async def create_note(
        self, owner_id: str, content: str, created_at: datetime
    ) -> Note:
        """Insert a note and return the stored row."""

    @abstractmethod
    async def delete_note(self, note_id: str) -> None:
        """Delete a note by id."""

    @abstractmethod
    async def update_note(self, note_id: str, content: str) -> Note:
        """Replace the content of a note and return the stored row."""


def _error_detail(resp: httpx.Response) -> str:
    """Pull the most descriptive error text out of a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or ""
    if isinstance(data, dict):
        parts = [
            str(data[key])
            for key in ("error_code", "error", "msg", "message", "error_description")
            if data.get(key)
        ]
        if parts:
            return ": ".join(parts)
    return resp.text or ""


class SupabaseBackend(Backend):
    """Backend implementation for a Supabase project."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        notes_table: str = "notas",
        timeout: float = 10.0,
    ) -> None:
        super().__init__()
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self._table_path = f"/rest/v1/{notes_table}"
        self._timeout = timeout
        self._session: Optional[Session] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseBackend":
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            notes_table=settings.notes_table,
            timeout=settings.request_timeout,
        )

    @property
    def session(self) -> Optional[Session]:
        """The locally held session, without any expiry check."""
        return self._session

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def get_current_session(self) -> Optional[Session]:
        if self._session is None:
            return None
        if not self._session.expired:
            return self._session

        if not self._session.refresh_token:
            self._drop_session()
            return None
        try:
            return await self.refresh_session()
        except CollaboratorError as exc:
            if exc.kind not in _GONE_SESSION_KINDS:
                raise
            self._drop_session()
            return None

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        resp = await self._request(
            "sign_in",
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._parse_session(resp.json())
        self._session = session
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        resp = await self._request(
            "sign_up",
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password},
        )
        data = resp.json()
        # Auto-confirmed projects answer with a full token payload
        if data.get("access_token"):
            session = self._parse_session(data)
            return SignUpResult(user=session.user, session=session)
        user_data = data.get("user") or data
        try:
            user = User.model_validate(user_data) if user_data.get("id") else None
        except pydantic.ValidationError as exc:
            raise CollaboratorError(ErrorKind.UNKNOWN, str(exc)) from exc
        return SignUpResult(user=user, session=None)

    def set_session(self, session: Session) -> None:
        self._session = session
        self._emit(AuthEvent.SIGNED_IN, session)

    async def refresh_session(self) -> Session:
        if self._session is None or not self._session.refresh_token:
            raise CollaboratorError(ErrorKind.NOT_AUTHENTICATED, "no refresh token")
        resp = await self._request(
            "refresh_session",
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        session = self._parse_session(resp.json())
        self._session = session
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def sign_out(self) -> None:
        session = self._session
        if session is None:
            return
        try:
            await self._request(
                "sign_out",
                "POST",
                "/auth/v1/logout",
                token=session.access_token,
            )
        except CollaboratorError as exc:
            if exc.kind not in _GONE_SESSION_KINDS:
                raise
            logger.info("Session already invalid on the server (%s)", exc.kind.value)
        finally:
            self._drop_session()

    async def get_current_user(self) -> Optional[User]:
        session = await self.get_current_session()
        if session is None:
            return None
        resp = await self._request(
            "get_user", "GET", "/auth/v1/user", token=session.access_token
        )
        try:
            return User.model_validate(resp.json())
        except pydantic.ValidationError as exc:
            raise CollaboratorError(ErrorKind.UNKNOWN, str(exc)) from exc

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def list_notes(self, owner_id: str) -> list[Note]:
        token = await self._access_token()
        resp = await self._request(
            "list_notes",
            "GET",
            self._table_path,
            params={
                "select": "*",
                "user_id": f"eq.{owner_id}",
                "order": "fecha.desc",
            },
            token=token,
        )
        return self._parse_notes(resp.json())

    async def create_note(
        self, owner_id: str, content: str, created_at: datetime
    ) -> Note:
        token = await self._access_token()
        resp = await self._request(
            "create_note",
            "POST",
            self._table_path,
            json=[new_note_row(owner_id, content, created_at)],
            headers={"Prefer": "return=representation"},
            token=token,
        )
        notes = self._parse_notes(resp.json())
        if not notes:
            raise CollaboratorError(ErrorKind.UNKNOWN, "insert returned no row")
        return notes[0]

    async def delete_note(self, note_id: str) -> None:
        token = await self._access_token()
        await self._request(
            "delete_note",
            "DELETE",
            self._table_path,
            params={"id": f"eq.{note_id}"},
            token=token,
        )

    async def update_note(self, note_id: str, content: str) -> Note:
        token = await self._access_token()
        resp = await self._request(
            "update_note",
            "PATCH",
            self._table_path,
            params={"id": f"eq.{note_id}"},
            json={"contenido": content},
            headers={"Prefer": "return=representation"},
            token=token,
        )
        notes = self._parse_notes(resp.json())
        if not notes:
            raise CollaboratorError(ErrorKind.NOT_FOUND, f"no note with id {note_id}")
        return notes[0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _drop_session(self) -> None:
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT, None)

    async def _access_token(self) -> str:
        session = await self.get_current_session()
        if session is None:
            raise CollaboratorError(ErrorKind.NOT_AUTHENTICATED, "no active session")
        return session.access_token

    @staticmethod
    def _parse_session(data: dict[str, Any]) -> Session:
        try:
            return Session.from_token_response(data)
        except pydantic.ValidationError as exc:
            raise CollaboratorError(ErrorKind.UNKNOWN, str(exc)) from exc

    @staticmethod
    def _parse_notes(rows: Any) -> list[Note]:
        if not isinstance(rows, list):
            raise CollaboratorError(ErrorKind.UNKNOWN, f"expected a list of rows, got {rows!r}")
        try:
            return [Note.model_validate(row) for row in rows]
        except pydantic.ValidationError as exc:
            raise CollaboratorError(ErrorKind.UNKNOWN, str(exc)) from exc

    def _headers(
        self, token: Optional[str], extra: Optional[dict[str, str]]
    ) -> dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {token or self._anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
        token: Optional[str] = None,
    ) -> httpx.Response:
        """Send one request, classify failures, and record metrics.

        Without *token* only the public key is sent, as the auth endpoints
        expect before a session exists.
        """
        start = time.perf_counter()
        try:
            try:
                async with httpx.AsyncClient(
                    base_url=self._url, timeout=self._timeout
                ) as client:
                    resp = await client.request(
                        method,
                        path,
                        params=params,
                        json=json,
                        headers=self._headers(token, headers),
                    )
            except httpx.RequestError as exc:
                raise CollaboratorError(ErrorKind.NETWORK, str(exc)) from exc

            if resp.status_code >= 400:
                detail = _error_detail(resp)
                kind = classify(resp.status_code, detail)
                # A user or session the auth service no longer knows means signed out
                if kind is ErrorKind.NOT_FOUND and path.startswith("/auth/"):
                    kind = ErrorKind.NOT_AUTHENTICATED
                raise CollaboratorError(kind, detail, resp.status_code)
        except CollaboratorError as exc:
            BACKEND_CALLS.labels(operation=operation, status=exc.kind.value).inc()
            logger.warning(
                "%s failed — %s (status=%s): %s",
                operation,
                exc.kind.value,
                exc.status_code,
                exc.detail,
            )
            raise
        finally:
            BACKEND_DURATION.labels(operation=operation).observe(
                time.perf_counter() - start
            )

        BACKEND_CALLS.labels(operation=operation, status="ok").inc()
        logger.info(
            "%s ok — status=%d, %.0f ms",
            operation,
            resp.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return resp
