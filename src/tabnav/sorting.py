import enum
import logging

from .errors import NavError, SortStateError
from .models import dense_orders

logger = logging.getLogger(__name__)


class SortMode(enum.Enum):
    IDLE = "idle"
    GROUPS = "reorderingGroups"
    SITES = "reorderingSites"


class SortModeController:
    """Reorder staging on top of the directory store.

    While a scope is active the presentation layer permutes the store's
    in-memory order freely; nothing reaches the server until ``commit``.
    ``cancel`` throws the staged order away by reloading.
    """

    def __init__(self, store, session):
        self.store = store
        self.session = session
        self.mode = SortMode.IDLE
        self.scope_group_id = None

    @property
    def active(self) -> bool:
        return self.mode is not SortMode.IDLE

    def is_sorting_sites(self, group_id) -> bool:
        return self.mode is SortMode.SITES and self.scope_group_id == group_id

    def _enter(self, mode: SortMode, group_id=None):
        self.session.require_edit("Reordering")
        if self.active:
            raise SortStateError(f"Already {self.mode.value}; save or cancel first.")
        self.mode = mode
        self.scope_group_id = group_id
        logger.info("Sort mode -> %s%s", mode.value, f"({group_id})" if group_id is not None else "")

    def _leave(self):
        logger.info("Sort mode %s -> idle", self.mode.value)
        self.mode = SortMode.IDLE
        self.scope_group_id = None

    def begin_group_reorder(self):
        self._enter(SortMode.GROUPS)

    def begin_site_reorder(self, group_id):
        if self.store.get_group(group_id) is None:
            raise SortStateError(f"Unknown group {group_id}.")
        self._enter(SortMode.SITES, group_id)

    # ----------------------------
    # Staging
    # ----------------------------
    def _scoped_ids(self) -> list:
        if self.mode is SortMode.GROUPS:
            return self.store.group_ids()
        if self.mode is SortMode.SITES:
            if self.store.get_group(self.scope_group_id) is None:
                raise SortStateError(f"Group {self.scope_group_id} being sorted no longer exists; cancel the sort.")
            return [s.id for s in self.store.sites_of(self.scope_group_id)]
        raise SortStateError("Not in sort mode.")

    def stage(self, ordered_ids: list):
        """Stage a full permutation of the ids in the active scope."""
        current = self._scoped_ids()
        ordered_ids = list(ordered_ids)
        if len(ordered_ids) != len(current) or set(ordered_ids) != set(current):
            raise SortStateError("Staged order must contain exactly the items being sorted.")
        if self.mode is SortMode.GROUPS:
            self.store.permute_groups(ordered_ids)
        else:
            self.store.permute_sites(self.scope_group_id, ordered_ids)

    def move(self, entity_id, to_index: int):
        """Single drag step: move one item to ``to_index`` in the staged order."""
        ids = self._scoped_ids()
        if entity_id not in ids:
            raise SortStateError(f"{entity_id} is not part of the current sort.")
        ids.remove(entity_id)
        to_index = max(0, min(len(ids), int(to_index)))
        ids.insert(to_index, entity_id)
        self.stage(ids)

    # ----------------------------
    # Commit / cancel
    # ----------------------------
    async def commit(self):
        if not self.active:
            raise SortStateError("Nothing to save: not in sort mode.")
        self.session.require_edit("Saving the order")
        client = self.store.client
        if self.mode is SortMode.SITES and self.store.get_group(self.scope_group_id) is None:
            raise SortStateError(f"Group {self.scope_group_id} being sorted no longer exists; cancel the sort.")
        try:
            if self.mode is SortMode.GROUPS:
                await client.update_group_order(dense_orders(self.store.groups))
            else:
                await client.update_site_order(dense_orders(self.store.sites_of(self.scope_group_id)))
        except NavError:
            logger.warning("Saving %s failed; staged order kept for retry", self.mode.value)
            raise
        # the server has the new order; confirm it against the authoritative copy
        self._leave()
        await self.store.load()

    def reset(self):
        """Leave sort mode without a reload; the caller is about to reload anyway."""
        if self.active:
            self._leave()

    async def cancel(self):
        if not self.active:
            raise SortStateError("Nothing to cancel: not in sort mode.")
        await self.store.load()
        self._leave()
