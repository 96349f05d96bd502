"""Tests for diary.models — wire format of notes and sessions."""

from __future__ import annotations

import time
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from diary.models import Note, Session, SignUpResult, User, new_note_row

ROW = {
    "id": "7d0c3c6e-1",
    "user_id": "u1",
    "contenido": "Hola",
    "fecha": "2024-05-01T10:15:00+00:00",
}


class TestNote:
    def test_parses_table_row(self):
        note = Note.model_validate(ROW)

        assert note.owner_id == "u1"
        assert note.content == "Hola"
        assert note.created_at == datetime(2024, 5, 1, 10, 15, tzinfo=UTC)

    def test_to_row_uses_column_names(self):
        row = Note.model_validate(ROW).to_row()

        assert set(row) == {"id", "user_id", "contenido", "fecha"}
        assert row["contenido"] == "Hola"

    def test_extra_columns_ignored(self):
        note = Note.model_validate({**ROW, "created_by": "trigger"})
        assert note.id == ROW["id"]

    def test_empty_content_rejected(self):
        with pytest.raises(ValidationError):
            Note.model_validate({**ROW, "contenido": ""})

    def test_notes_are_immutable(self):
        note = Note.model_validate(ROW)
        with pytest.raises(ValidationError):
            note.content = "otro"

    def test_new_note_row(self):
        stamp = datetime(2024, 5, 1, 10, 15, tzinfo=UTC)

        row = new_note_row("u1", "Hola", stamp)

        assert row == {"user_id": "u1", "contenido": "Hola", "fecha": stamp.isoformat()}

    def test_new_note_row_defaults_to_now(self):
        row = new_note_row("u1", "Hola")
        stamp = datetime.fromisoformat(row["fecha"])
        assert abs((datetime.now(UTC) - stamp).total_seconds()) < 5


class TestSession:
    def test_from_token_response_derives_expiry(self):
        before = int(time.time())

        session = Session.from_token_response(
            {
                "access_token": "at",
                "refresh_token": "rt",
                "expires_in": 3600,
                "token_type": "bearer",
                "user": {"id": "u1", "email": "a@b.com", "aud": "authenticated"},
            }
        )

        assert before + 3600 <= session.expires_at <= int(time.time()) + 3600
        assert session.user == User(id="u1", email="a@b.com")
        assert session.expired is False

    def test_explicit_expires_at_is_kept(self):
        session = Session.from_token_response(
            {"access_token": "at", "expires_at": 123, "expires_in": 3600, "user": {"id": "u1"}}
        )
        assert session.expires_at == 123
        assert session.expired is True

    def test_expiry_margin(self):
        session = Session(access_token="at", expires_at=int(time.time()) + 5, user=User(id="u1"))
        assert session.expired is True

    def test_no_expiry_never_expires(self):
        session = Session(access_token="at", user=User(id="u1"))
        assert session.expired is False


class TestSignUpResult:
    def test_without_session_needs_confirmation(self):
        assert SignUpResult(user=User(id="u1")).confirmation_required is True

    def test_with_session(self):
        result = SignUpResult(
            user=User(id="u1"), session=Session(access_token="at", user=User(id="u1"))
        )
        assert result.confirmation_required is False
