"""Seed a user's diary with sample notes for screenshots.

Signs in with an existing, confirmed account and inserts a handful of
notes a few minutes apart so the list shows a realistic ordering.
Reads SUPABASE_URL / SUPABASE_ANON_KEY from the environment or .env.

Usage:
    python scripts/seed_data.py --email a@b.com --password secret1
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from diary.backend import SupabaseBackend  # noqa: E402
from diary.config import load_settings  # noqa: E402
from diary.errors import CollaboratorError, ConfigurationError  # noqa: E402

# Oldest first; each note is stamped a few minutes after the previous one
NOTES: list[str] = [
    "Comprar pan, leche y café para el fin de semana.",
    "Llamar a Marta para confirmar la cena del jueves.",
    "Idea: escribir cada mañana tres cosas por las que estoy agradecido.",
    "Reunión de equipo: revisar el plan del trimestre y repartir tareas.",
    "Terminar el capítulo 4 de 'Cien años de soledad'.",
    "Renovar el pasaporte antes de agosto.",
]

_SPACING = timedelta(minutes=7)


async def seed(email: str, password: str, dry_run: bool) -> int:
    """Insert the sample notes. Returns the number of notes created."""
    backend = SupabaseBackend.from_settings(load_settings())
    session = await backend.sign_in_with_password(email, password)
    user_id = session.user.id
    print(f"  Signed in as {session.user.email} ({user_id})")

    existing = await backend.list_notes(user_id)
    print(f"  Existing notes: {len(existing)}\n")

    start = datetime.now(UTC) - _SPACING * len(NOTES)
    created = 0
    for i, content in enumerate(NOTES, 1):
        stamp = start + _SPACING * i
        print(f"  [{i}/{len(NOTES)}] {content[:60]}{'...' if len(content) > 60 else ''}")
        if dry_run:
            continue
        t0 = time.time()
        try:
            note = await backend.create_note(user_id, content, stamp)
        except CollaboratorError as e:
            print(f"         ERROR:   {e.message} ({e.detail})")
            continue
        created += 1
        print(f"         Id:      {note.id}")
        print(f"         Time:    {time.time() - t0:.2f}s")

    await backend.sign_out()
    return created


def main() -> None:
    """Parse arguments and run the seeding."""
    parser = argparse.ArgumentParser(description="Seed sample notes for a user")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--password", required=True, help="Account password")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Sign in and list notes without inserting anything",
    )
    args = parser.parse_args()

    print("\n  Seeding sample notes")
    print("  " + "=" * 58)
    try:
        created = asyncio.run(seed(args.email, args.password, args.dry_run))
    except ConfigurationError as e:
        print(f"  FAIL: {e}")
        sys.exit(1)
    except CollaboratorError as e:
        print(f"  FAIL: {e.message} ({e.detail})")
        sys.exit(1)

    print("  " + "=" * 58)
    print(f"  Done! {created} notes created.")
    print("  Open the app with: streamlit run ui/app.py")
    print()


if __name__ == "__main__":
    main()
