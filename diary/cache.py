"""Local cache of the signed-in user's notes.

The hosted table is authoritative; this list mirrors it so that creates
and deletes can be applied without a refetch. The cache is only patched
with rows the backend has echoed back, and it keeps notes ordered by
``created_at`` newest first at all times.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from diary.models import Note

logger = logging.getLogger(__name__)


class NoteCache:
    """Newest-first list of notes keyed by id."""

    def __init__(self, notes: Iterable[Note] = ()) -> None:
        self._notes: list[Note] = []
        self.replace(notes)

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(list(self._notes))

    def __contains__(self, note_id: object) -> bool:
        return any(n.id == note_id for n in self._notes)

    @property
    def notes(self) -> list[Note]:
        """A copy of the cached notes, newest first."""
        return list(self._notes)

    def get(self, note_id: str) -> Optional[Note]:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def replace(self, notes: Iterable[Note]) -> None:
        """Load a fresh fetch from the backend."""
        fetched = list(notes)
        ordered = sorted(fetched, key=lambda n: n.created_at, reverse=True)
        if ordered != fetched:
            logger.warning("Fetched notes were not newest-first; reordered %d notes", len(ordered))
        self._notes = ordered

    def prepend(self, note: Note) -> None:
        """Add a row the backend just stored.

        A new note normally sorts first. A row older than the current head
        (client clock skew) is slotted into its sorted position instead.
        """
        if note.id in self:
            logger.warning("Note %s already cached; replacing it", note.id)
            self.remove(note.id)

        if not self._notes or note.created_at >= self._notes[0].created_at:
            self._notes.insert(0, note)
            return

        logger.info("Note %s is older than the newest cached note; inserting in order", note.id)
        index = next(
            (i for i, n in enumerate(self._notes) if n.created_at <= note.created_at),
            len(self._notes),
        )
        self._notes.insert(index, note)

    def remove(self, note_id: str) -> bool:
        """Drop a note by id. Returns False when it was not cached."""
        for i, note in enumerate(self._notes):
            if note.id == note_id:
                del self._notes[i]
                return True
        return False

    def clear(self) -> None:
        self._notes = []
