"""Session controller: the top-level authentication state.

The controller is the auth context handed to both views. It owns the
only long-lived resource of the application, the subscription to the
backend's session-change notifications, and releases it on ``stop``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from diary.backend import Backend, Unsubscribe
from diary.errors import CollaboratorError
from diary.lifetime import Lifetime, ViewClosed
from diary.metrics import ACTIVE_CONTROLLERS
from diary.models import AuthEvent, Session, User

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class View(str, Enum):
    """Which screen the application should show."""

    LOADING = "loading"
    AUTH = "auth"
    WORKSPACE = "workspace"


class SessionController:
    """Tracks whether someone is signed in and picks the view to render."""

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self.state = SessionState.LOADING
        self.user: Optional[User] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._lifetime = Lifetime("session-controller")

    @property
    def view(self) -> View:
        if self.state is SessionState.LOADING:
            return View.LOADING
        if self.state is SessionState.AUTHENTICATED:
            return View.WORKSPACE
        return View.AUTH

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    async def start(self) -> None:
        """Subscribe to session changes, then check for an existing session.

        A failed check counts as "no session"; there is no retry.
        """
        if self.running:
            return
        if self._lifetime.closed:
            self._lifetime = Lifetime("session-controller")
        self.state = SessionState.LOADING
        self._unsubscribe = self.backend.subscribe(self._on_auth_change)
        ACTIVE_CONTROLLERS.inc()

        try:
            session = await self._lifetime.run(self.backend.get_current_session())
        except ViewClosed:
            return
        except CollaboratorError as exc:
            logger.warning("Initial session check failed (%s); assuming signed out", exc.kind.value)
            session = None

        # An event that arrived during the check is newer than its answer
        if self.state is SessionState.LOADING:
            self._apply(session)
        logger.info("Session controller started — %s", self.state.value)

    def stop(self) -> None:
        """Release the subscription and abandon any pending check."""
        self._lifetime.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            ACTIVE_CONTROLLERS.dec()
            logger.info("Session controller stopped")

    async def __aenter__(self) -> "SessionController":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Callbacks from the views
    # ------------------------------------------------------------------

    def notify_signed_in(self, session: Optional[Session] = None) -> None:
        """The authenticator completed a sign-in."""
        if session is not None:
            self._apply(session)
        else:
            self.state = SessionState.AUTHENTICATED

    def notify_signed_out(self) -> None:
        """The workspace logged the user out."""
        self._apply(None)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _on_auth_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.debug("Session change: %s", event.value)
        self._apply(session)

    def _apply(self, session: Optional[Session]) -> None:
        if session is None:
            self.state = SessionState.UNAUTHENTICATED
            self.user = None
        else:
            self.state = SessionState.AUTHENTICATED
            self.user = session.user
