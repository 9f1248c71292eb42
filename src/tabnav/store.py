import json
import logging

from .errors import ParseError, ValidationError
from .models import Group, Site, parse_groups
from .urls import icon_url_for, is_absolute_url, normalize_url

logger = logging.getLogger(__name__)


class DirectoryStore:
    """In-memory snapshot of groups and their sites, plus the selected tab.

    Every mutation is a round trip to the directory client followed by a full
    reload: identifiers and order indices always come from the server. A
    failed mutation leaves the snapshot untouched and raises to the caller.
    """

    def __init__(self, client, session, icon_api=None):
        self.client = client
        self.session = session
        # callable returning the configured icon-API template
        self.icon_api = icon_api or (lambda: "")
        self._groups: list[Group] = []
        self.selected_group_id: int | None = None
        self.loaded = False

    # ----------------------------
    # Read side
    # ----------------------------
    @property
    def groups(self) -> tuple[Group, ...]:
        return tuple(self._groups)

    def group_ids(self) -> list[int]:
        return [g.id for g in self._groups]

    def get_group(self, group_id) -> Group | None:
        for g in self._groups:
            if g.id == group_id:
                return g
        return None

    def sites_of(self, group_id) -> list[Site]:
        g = self.get_group(group_id)
        return list(g.sites) if g else []

    @property
    def selected_group(self) -> Group | None:
        return self.get_group(self.selected_group_id)

    def select(self, group_id) -> bool:
        if self.get_group(group_id) is None:
            return False
        self.selected_group_id = group_id
        return True

    def search(self, query: str) -> list[tuple[Group, Site]]:
        q = (query or "").strip().lower()
        out = []
        for g in self._groups:
            for s in g.sites:
                if not q or q in s.name.lower() or q in s.url.lower() or q in (s.description or "").lower():
                    out.append((g, s))
        if q:
            out.sort(key=lambda gs: (0 if q in gs[1].name.lower() else 1, gs[1].name.lower()))
        return out

    def _replace(self, groups: list[Group]):
        self._groups = groups
        if self.get_group(self.selected_group_id) is None:
            self.selected_group_id = groups[0].id if groups else None
        self.loaded = True

    # ----------------------------
    # Load / resync
    # ----------------------------
    async def load(self):
        raw = await self.client.get_groups_with_sites()
        groups = parse_groups(raw if raw is not None else [])
        self._replace(groups)
        logger.info("Loaded %d group(s), %d site(s)", len(groups), sum(len(g.sites) for g in groups))

    # ----------------------------
    # Mutations (mutate-then-resync)
    # ----------------------------
    async def create_group(self, name: str, is_public: bool = True):
        self.session.require_edit("Creating a group")
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name required.")
        await self.client.create_group(Group(name=name, is_public=is_public))
        await self.load()

    def draft_site(self, group_id, name: str, url: str, icon: str | None = None,
                   description: str | None = None, notes: str | None = None, is_public: bool = True) -> Site:
        """Validate site input and build the draft sent to the client.

        When no icon is given one is derived from the configured icon API;
        a URL the template cannot use simply leaves the icon unset.
        """
        name = (name or "").strip()
        url = normalize_url(url or "")
        if not name:
            raise ValidationError("Site name required.")
        if not url:
            raise ValidationError("Site URL required.")
        if not is_absolute_url(url):
            raise ValidationError(f"Not a valid URL: {url}")
        if self.get_group(group_id) is None:
            raise ValidationError("Selected group not found.")
        icon = (icon or "").strip() or icon_url_for(url, self.icon_api())
        return Site(name=name, url=url, group_id=group_id, icon=icon,
                    description=(description or "").strip() or None,
                    notes=(notes or "").strip() or None, is_public=is_public)

    async def create_site(self, group_id, name: str, url: str, **extra):
        self.session.require_edit("Creating a site")
        site = self.draft_site(group_id, name, url, **extra)
        await self.client.create_site(site)
        await self.load()

    async def delete_group(self, group_id):
        """Delete a group and every site in it.

        Irreversible: the server removes the owned sites too. Callers must have
        the user's explicit confirmation before calling this.
        """
        self.session.require_edit("Deleting a group")
        await self.client.delete_group(group_id)
        await self.load()

    async def delete_site(self, site_id):
        self.session.require_edit("Deleting a site")
        await self.client.delete_site(site_id)
        await self.load()

    # ----------------------------
    # Staging (used by sort mode only; no remote call)
    # ----------------------------
    def permute_groups(self, ordered_ids: list):
        by_id = {g.id: g for g in self._groups}
        self._groups = [by_id[i] for i in ordered_ids]

    def permute_sites(self, group_id, ordered_ids: list):
        g = self.get_group(group_id)
        by_id = {s.id: s for s in g.sites}
        g.sites = [by_id[i] for i in ordered_ids]

    # ----------------------------
    # Export / import
    # ----------------------------
    def export_text(self) -> str:
        return json.dumps({"groups": [g.to_dict() for g in self._groups]}, indent=2, ensure_ascii=False)

    def import_text(self, text):
        """Replace the in-memory snapshot with an exported one.

        The payload goes through the same validation as ``load``; anything
        malformed raises ParseError and nothing changes.
        """
        self.session.require_edit("Importing data")
        if isinstance(text, bytes):
            try:
                text = text.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError("Import file is not UTF-8 text.") from e
        try:
            data = json.loads(text or "")
        except ValueError as e:
            raise ParseError(f"Import file is not valid JSON: {e}") from e
        if not isinstance(data, dict) or "groups" not in data:
            raise ParseError('Import file must be an object with a "groups" list.')
        groups = parse_groups(data["groups"])
        self._replace(groups)
        logger.info("Imported %d group(s)", len(groups))
        return len(groups), sum(len(g.sites) for g in groups)
