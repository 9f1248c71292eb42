import logging
from dataclasses import dataclass

from .config import ConfigResolver
from .errors import NavError, SortStateError
from .prefs import Preferences
from .session import SessionController
from .sorting import SortModeController
from .store import DirectoryStore

logger = logging.getLogger(__name__)

# notice categories -> flash styles
STYLES = {"success": "success", "info": "info"}


@dataclass
class Notice:
    message: str
    category: str = "info"

    @property
    def style(self) -> str:
        return STYLES.get(self.category, "danger")


class Navigator:
    """Wires the controllers together and is the boundary where errors become notices.

    Everything is passed in explicitly: the directory client picked at
    startup and the local preferences store.
    """

    def __init__(self, client, prefs: Preferences | None = None):
        self.client = client
        self.prefs = prefs if prefs is not None else Preferences()
        self.config = ConfigResolver(client)
        self.session = SessionController(client, on_change=self._session_changed)
        self.store = DirectoryStore(client, self.session, icon_api=lambda: self.config.icon_api)
        self.sorter = SortModeController(self.store, self.session)
        self.notices: list[Notice] = []
        self.dark = self.prefs.get("theme") == "dark"
        self.started = False

    # ----------------------------
    # Boundary
    # ----------------------------
    def notify(self, message: str, category: str = "info"):
        self.notices.append(Notice(message, category))

    def drain_notices(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out

    async def perform(self, awaitable, success: str | None = None) -> bool:
        """Await one controller operation; any NavError becomes a notice."""
        try:
            await awaitable
        except NavError as e:
            logger.warning("%s error: %s", e.category, e.message)
            self.notify(e.message, e.category)
            return False
        if success:
            self.notify(success, "success")
        return True

    def attempt(self, fn, *args, success: str | None = None) -> bool:
        """Synchronous counterpart of ``perform`` for staging calls."""
        try:
            fn(*args)
        except NavError as e:
            logger.warning("%s error: %s", e.category, e.message)
            self.notify(e.message, e.category)
            return False
        if success:
            self.notify(success, "success")
        return True

    # ----------------------------
    # Startup + session
    # ----------------------------
    async def startup(self):
        await self.session.check_status()
        await self.perform(self.store.load())
        await self.perform(self.config.load())
        self.started = True

    async def _session_changed(self):
        self.sorter.reset()
        await self.perform(self.store.load())

    async def login(self, username: str, password: str, remember: bool = False) -> bool:
        return await self.perform(self.session.login(username, password, remember), success="Logged in.")

    async def logout(self) -> bool:
        return await self.perform(self.session.logout(), success="Logged out.")

    @property
    def view_mode(self):
        return self.session.view_mode

    # ----------------------------
    # Directory
    # ----------------------------
    async def create_group(self, name: str, is_public: bool = True) -> bool:
        return await self.perform(self.store.create_group(name, is_public), success="Group added.")

    async def create_site(self, group_id, name: str, url: str, **extra) -> bool:
        return await self.perform(self.store.create_site(group_id, name, url, **extra), success="Site added.")

    async def delete_group(self, group_id) -> bool:
        return await self.perform(self.store.delete_group(group_id), success="Group deleted.")

    async def delete_site(self, site_id) -> bool:
        return await self.perform(self.store.delete_site(site_id), success="Site deleted.")

    def import_text(self, text) -> bool:
        counts = []
        ok = self.attempt(lambda: counts.append(self._import(text)))
        if ok:
            groups, sites = counts[0]
            self.notify(f"Imported {groups} group(s), {sites} site(s).", "success")
        return ok

    def _import(self, text):
        if self.sorter.active:
            raise SortStateError("Save or cancel the current sort before importing.")
        return self.store.import_text(text)

    # ----------------------------
    # Sort mode
    # ----------------------------
    def begin_group_reorder(self) -> bool:
        return self.attempt(self.sorter.begin_group_reorder)

    def begin_site_reorder(self, group_id) -> bool:
        return self.attempt(self.sorter.begin_site_reorder, group_id)

    def stage(self, ordered_ids) -> bool:
        return self.attempt(self.sorter.stage, ordered_ids)

    async def commit_order(self) -> bool:
        return await self.perform(self.sorter.commit(), success="Order saved.")

    async def cancel_order(self) -> bool:
        return await self.perform(self.sorter.cancel())

    # ----------------------------
    # Configuration + theme
    # ----------------------------
    async def save_config(self, draft: dict[str, str] | None = None) -> bool:
        if not self.attempt(self.session.require_edit, "Changing settings"):
            return False
        return await self.perform(self.config.set_many(draft), success="Settings saved.")

    def search_box_visible(self) -> bool:
        return self.config.search_box_visible(self.view_mode)

    def toggle_theme(self) -> bool:
        self.dark = not self.dark
        self.prefs.set("theme", "dark" if self.dark else "light")
        return self.dark
