"""Shared fixtures: an in-memory backend that behaves like the hosted one."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime
from typing import Optional

import pytest

from diary.backend import Backend
from diary.errors import CollaboratorError, ErrorKind
from diary.models import AuthEvent, Note, Session, SignUpResult, User
from diary.session import SessionController


class FakeBackend(Backend):
    """In-memory stand-in for the hosted backend.

    Rows are filtered by the signed-in user the way row-level security
    does. ``fail[operation]`` makes that operation raise; ``gates`` make
    an operation wait until the test releases it.
    """

    def __init__(self) -> None:
        super().__init__()
        self.accounts: dict[str, tuple[User, str, bool]] = {}
        self.rows: list[Note] = []
        self.current: Optional[Session] = None
        self.calls: list[str] = []
        self.fail: dict[str, CollaboratorError] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.auto_confirm = False

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def add_account(self, email: str, password: str, confirmed: bool = True) -> User:
        user = User(id=f"user-{len(self.accounts) + 1}", email=email)
        self.accounts[email] = (user, password, confirmed)
        return user

    def add_row(self, owner: User, content: str, created_at: datetime) -> Note:
        note = Note(
            id=str(uuid.uuid4()),
            owner_id=owner.id,
            content=content,
            created_at=created_at,
        )
        self.rows.append(note)
        return note

    def sign_in_as(self, user: User) -> Session:
        self.current = Session(access_token=f"token-{user.id}", user=user)
        return self.current

    def calls_to(self, operation: str) -> int:
        return self.calls.count(operation)

    async def _call(self, operation: str) -> None:
        self.calls.append(operation)
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        if operation in self.fail:
            raise self.fail[operation]

    def _require_user(self) -> User:
        if self.current is None:
            raise CollaboratorError(ErrorKind.NOT_AUTHENTICATED, "no active session", 401)
        return self.current.user

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def get_current_session(self) -> Optional[Session]:
        await self._call("get_current_session")
        return self.current

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        await self._call("sign_in")
        account = self.accounts.get(email)
        if account is None or account[1] != password:
            raise CollaboratorError(
                ErrorKind.INVALID_CREDENTIALS, "Invalid login credentials", 400
            )
        user, _, confirmed = account
        if not confirmed:
            raise CollaboratorError(ErrorKind.EMAIL_NOT_CONFIRMED, "Email not confirmed", 400)
        session = self.sign_in_as(user)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        await self._call("sign_up")
        if email in self.accounts:
            raise CollaboratorError(
                ErrorKind.ALREADY_REGISTERED, "User already registered", 422
            )
        user = self.add_account(email, password, confirmed=self.auto_confirm)
        session = Session(access_token=f"token-{user.id}", user=user) if self.auto_confirm else None
        return SignUpResult(user=user, session=session)

    def set_session(self, session: Session) -> None:
        self.current = session
        self._emit(AuthEvent.SIGNED_IN, session)

    async def refresh_session(self) -> Session:
        await self._call("refresh_session")
        self._require_user()
        self._emit(AuthEvent.TOKEN_REFRESHED, self.current)
        return self.current

    async def sign_out(self) -> None:
        await self._call("sign_out")
        self.current = None
        self._emit(AuthEvent.SIGNED_OUT, None)

    async def get_current_user(self) -> Optional[User]:
        await self._call("get_current_user")
        return self.current.user if self.current else None

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def list_notes(self, owner_id: str) -> list[Note]:
        await self._call("list_notes")
        user = self._require_user()
        visible = [n for n in self.rows if n.owner_id == owner_id == user.id]
        return sorted(visible, key=lambda n: n.created_at, reverse=True)

    async def create_note(self, owner_id: str, content: str, created_at: datetime) -> Note:
        await self._call("create_note")
        user = self._require_user()
        if owner_id != user.id:
            raise CollaboratorError(
                ErrorKind.ACCESS_DENIED, "new row violates row-level security policy", 403
            )
        return self.add_row(user, content, created_at)

    async def delete_note(self, note_id: str) -> None:
        await self._call("delete_note")
        user = self._require_user()
        self.rows = [n for n in self.rows if not (n.id == note_id and n.owner_id == user.id)]

    async def update_note(self, note_id: str, content: str) -> Note:
        await self._call("update_note")
        user = self._require_user()
        for i, note in enumerate(self.rows):
            if note.id == note_id and note.owner_id == user.id:
                self.rows[i] = note.model_copy(update={"content": content})
                return self.rows[i]
        raise CollaboratorError(ErrorKind.NOT_FOUND, f"no note with id {note_id}")


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def alice(backend: FakeBackend) -> User:
    return backend.add_account("alice@example.com", "secret1")


@pytest.fixture()
def bob(backend: FakeBackend) -> User:
    return backend.add_account("bob@example.com", "hunter22")


@pytest.fixture()
def controller(backend: FakeBackend) -> SessionController:
    return SessionController(backend)
