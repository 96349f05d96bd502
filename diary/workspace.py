"""Notes workspace: the signed-in user's list of notes.

State machine over ``loading → ready ⇄ submitting``. The notes list is a
``NoteCache`` patched from the rows the backend returns; it is never
mutated before the backend has confirmed a change.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Callable, Optional

from diary.backend import Backend
from diary.cache import NoteCache
from diary.errors import CollaboratorError
from diary.formatting import count_label, format_timestamp
from diary.lifetime import Lifetime, ViewClosed
from diary.metrics import NOTE_OPERATIONS
from diary.models import Note, User
from diary.session import SessionController

logger = logging.getLogger(__name__)

ConfirmDelete = Callable[[Note], bool]


class WorkspaceState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"


class NotesWorkspace:
    """Lists, creates and deletes the current user's notes."""

    def __init__(
        self,
        backend: Backend,
        context: SessionController,
        locale: str = "es",
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.backend = backend
        self.context = context
        self.locale = locale
        self.tz = tz
        self.state = WorkspaceState.LOADING
        self.user: Optional[User] = None
        self.error: Optional[str] = None
        self.draft = ""
        self._cache = NoteCache()
        self._lifetime = Lifetime("notes-workspace")

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def notes(self) -> list[Note]:
        return self._cache.notes

    @property
    def empty(self) -> bool:
        return len(self._cache) == 0

    @property
    def can_submit(self) -> bool:
        return bool(self.draft.strip()) and self.state is WorkspaceState.READY

    @property
    def user_email(self) -> str:
        return (self.user.email or "") if self.user else ""

    def format_date(self, note: Note) -> str:
        return format_timestamp(note.created_at, self.locale, self.tz)

    def footer(self) -> str:
        return count_label(len(self._cache), self.locale)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def mount(self) -> None:
        """Resolve the current user and load their notes.

        Always ends in ``ready``; a failure only fills the error slot.
        """
        self.state = WorkspaceState.LOADING
        try:
            user = await self._lifetime.run(self.backend.get_current_user())
            if user is not None:
                self.user = user
                notes = await self._lifetime.run(self.backend.list_notes(user.id))
                self._cache.replace(notes)
                logger.info("Loaded %d notes for user %s", len(self._cache), user.id)
            else:
                logger.warning("Workspace mounted without a signed-in user")
        except ViewClosed:
            return
        except CollaboratorError as exc:
            self.error = exc.message
        self.state = WorkspaceState.READY

    async def create(self, content: Optional[str] = None) -> Optional[Note]:
        """Store a new note from *content* (or the current draft).

        Blank text is ignored without calling the backend. On success the
        stored row goes to the front of the list and the draft is cleared;
        on failure the draft is kept for another try.
        """
        if self.state is not WorkspaceState.READY or self.user is None:
            NOTE_OPERATIONS.labels(operation="create", result="skipped").inc()
            return None
        if content is not None:
            self.draft = content
        text = self.draft.strip()
        if not text:
            NOTE_OPERATIONS.labels(operation="create", result="skipped").inc()
            return None

        self.state = WorkspaceState.SUBMITTING
        self.error = None
        try:
            note = await self._lifetime.run(
                self.backend.create_note(self.user.id, text, datetime.now(UTC))
            )
        except ViewClosed:
            return None
        except CollaboratorError as exc:
            self.error = exc.message
            self.state = WorkspaceState.READY
            NOTE_OPERATIONS.labels(operation="create", result="failed").inc()
            return None

        self._cache.prepend(note)
        self.draft = ""
        self.state = WorkspaceState.READY
        NOTE_OPERATIONS.labels(operation="create", result="ok").inc()
        logger.info("Created note %s", note.id)
        return note

    async def delete(self, note_id: str, confirm: ConfirmDelete) -> bool:
        """Delete a listed note once *confirm* approves it.

        Ids that are not in the list are never sent to the backend.
        """
        note = self._cache.get(note_id)
        if note is None or not confirm(note):
            NOTE_OPERATIONS.labels(operation="delete", result="skipped").inc()
            return False

        try:
            await self._lifetime.run(self.backend.delete_note(note_id))
        except ViewClosed:
            return False
        except CollaboratorError as exc:
            self.error = exc.message
            NOTE_OPERATIONS.labels(operation="delete", result="failed").inc()
            return False

        self._cache.remove(note_id)
        NOTE_OPERATIONS.labels(operation="delete", result="ok").inc()
        logger.info("Deleted note %s", note_id)
        return True

    async def logout(self) -> None:
        """Sign out and hand control back to the session context."""
        try:
            await self._lifetime.run(self.backend.sign_out())
        except ViewClosed:
            return
        except CollaboratorError as exc:
            logger.warning("Sign-out failed (%s); leaving the workspace anyway", exc.kind.value)
        self.close()
        self.context.notify_signed_out()

    def dismiss_error(self) -> None:
        self.error = None

    def close(self) -> None:
        """Tear down: pending calls are cancelled and their results dropped."""
        self._lifetime.close()
