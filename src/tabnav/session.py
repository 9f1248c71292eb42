import enum
import logging

from .errors import AuthorizationError, NavError, TransportError

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Invalid credentials or server unavailable."


class SessionState(enum.Enum):
    CHECKING = "checking"
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


class ViewMode(enum.Enum):
    READONLY = "readonly"
    EDIT = "edit"


class SessionController:
    """Authentication state machine: checking -> guest | authenticated.

    ``on_change`` is awaited after login and logout so the directory can be
    reloaded with what the new session is allowed to see.
    """

    def __init__(self, client, on_change=None):
        self.client = client
        self.on_change = on_change
        self.state = SessionState.CHECKING

    @property
    def view_mode(self) -> ViewMode:
        return ViewMode.EDIT if self.state is SessionState.AUTHENTICATED else ViewMode.READONLY

    @property
    def can_edit(self) -> bool:
        return self.view_mode is ViewMode.EDIT

    def require_edit(self, action: str = "This action"):
        if not self.can_edit:
            raise AuthorizationError(f"{action} requires an administrator login.")

    def _set(self, state: SessionState):
        if state is not self.state:
            logger.info("Session %s -> %s", self.state.value, state.value)
        self.state = state

    async def check_status(self) -> SessionState:
        """Ask the remote whether the current session is valid.

        Any failure ends in ``guest``: edit capability is never granted on an
        indeterminate answer.
        """
        self._set(SessionState.CHECKING)
        try:
            ok = await self.client.check_auth_status()
        except NavError as e:
            logger.warning("Auth status check failed, continuing as guest: %s", e)
            ok = False
        self._set(SessionState.AUTHENTICATED if ok is True else SessionState.GUEST)
        return self.state

    async def login(self, username: str, password: str, remember: bool = False):
        try:
            result = await self.client.login(username, password, remember)
        except NavError as e:
            logger.warning("Login request failed: %s", e)
            raise AuthorizationError(LOGIN_FAILED) from e
        if not (result or {}).get("success"):
            logger.info("Login rejected: %s", (result or {}).get("message") or "no message")
            raise AuthorizationError(LOGIN_FAILED)
        self._set(SessionState.AUTHENTICATED)
        if self.on_change:
            await self.on_change()

    async def logout(self):
        """Drop to guest whatever the remote says; the remote failure is re-raised afterwards."""
        error = None
        try:
            await self.client.logout()
        except NavError as e:
            logger.warning("Logout request failed: %s", e)
            error = e
        finally:
            self._set(SessionState.GUEST)
        if self.on_change:
            await self.on_change()
        if error is not None:
            raise TransportError(f"Logged out locally; server did not confirm: {error.message}") from error
