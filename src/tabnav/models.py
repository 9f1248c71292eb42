import logging
from dataclasses import dataclass, field

from .errors import ParseError
from .urls import is_absolute_url

logger = logging.getLogger(__name__)


# ----------------------------
# Entities
# ----------------------------
@dataclass
class Site:
    name: str
    url: str
    group_id: int
    id: int | None = None
    order_num: int = 0
    icon: str | None = None
    description: str | None = None
    notes: str | None = None
    is_public: bool = True
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict:
        d = {
            "name": self.name, "url": self.url, "group_id": self.group_id,
            "order_num": self.order_num, "is_public": 1 if self.is_public else 0,
            "icon": self.icon or "", "description": self.description or "", "notes": self.notes or "",
        }
        if self.id is not None:
            d["id"] = self.id
        if self.created_at: d["created_at"] = self.created_at
        if self.updated_at: d["updated_at"] = self.updated_at
        return d


@dataclass
class Group:
    name: str
    id: int | None = None
    order_num: int = 0
    is_public: bool = True
    created_at: str | None = None
    updated_at: str | None = None
    sites: list[Site] = field(default_factory=list)

    def to_dict(self, with_sites: bool = True) -> dict:
        d = {"name": self.name, "order_num": self.order_num, "is_public": 1 if self.is_public else 0}
        if self.id is not None:
            d["id"] = self.id
        if self.created_at: d["created_at"] = self.created_at
        if self.updated_at: d["updated_at"] = self.updated_at
        if with_sites:
            d["sites"] = [s.to_dict() for s in self.sites]
        return d


# ----------------------------
# Snapshot validation (shared by load + import)
# ----------------------------
def _int(value, what: str, required: bool = True) -> int | None:
    if value is None or value == "":
        if required:
            raise ParseError(f"{what} is missing")
        return None
    if isinstance(value, bool):
        raise ParseError(f"{what} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ParseError(f"{what} must be an integer")

def _str(value, what: str, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise ParseError(f"{what} is missing")
        return None
    if not isinstance(value, str):
        raise ParseError(f"{what} must be a string")
    value = value.strip()
    if required and not value:
        raise ParseError(f"{what} is empty")
    return value or None

def _flag(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() not in ("0", "false", "no", "")
    return bool(value)

def _ordered(items: list, positions: list[int]) -> list:
    # stable: ties keep fetch order
    return [x for _, _, x in sorted(zip([i.order_num for i in items], positions, items), key=lambda t: (t[0], t[1]))]

def parse_site(raw, owner_id: int, where: str) -> Site:
    if not isinstance(raw, dict):
        raise ParseError(f"{where} is not an object")
    url = _str(raw.get("url"), f"{where} url", required=True)
    if not is_absolute_url(url):
        raise ParseError(f"{where} url is not an absolute URL: {url!r}")
    gid = _int(owner_id if raw.get("group_id") is None else raw["group_id"], f"{where} group_id")
    return Site(
        id=_int(raw.get("id"), f"{where} id"),
        name=_str(raw.get("name"), f"{where} name", required=True),
        url=url,
        group_id=gid,
        order_num=_int(raw.get("order_num", 0), f"{where} order_num"),
        icon=_str(raw.get("icon"), f"{where} icon"),
        description=_str(raw.get("description"), f"{where} description"),
        notes=_str(raw.get("notes"), f"{where} notes"),
        is_public=_flag(raw.get("is_public")),
        created_at=_str(raw.get("created_at"), f"{where} created_at"),
        updated_at=_str(raw.get("updated_at"), f"{where} updated_at"),
    )

def parse_groups(raw) -> list[Group]:
    """Validate a groups-with-sites payload and return it ordered.

    Raises ParseError on any structural problem, so callers either get a
    complete snapshot or nothing. Sites whose ``group_id`` disagrees with the
    group they are nested in are dropped.
    """
    if not isinstance(raw, list):
        raise ParseError("groups must be a list")
    groups = []
    seen_ids = set()
    for gi, g in enumerate(raw):
        where = f"group #{gi + 1}"
        if not isinstance(g, dict):
            raise ParseError(f"{where} is not an object")
        gid = _int(g.get("id"), f"{where} id")
        if gid in seen_ids:
            raise ParseError(f"{where} repeats id {gid}")
        seen_ids.add(gid)
        group = Group(
            id=gid,
            name=_str(g.get("name"), f"{where} name", required=True),
            order_num=_int(g.get("order_num", 0), f"{where} order_num"),
            is_public=_flag(g.get("is_public")),
            created_at=_str(g.get("created_at"), f"{where} created_at"),
            updated_at=_str(g.get("updated_at"), f"{where} updated_at"),
        )
        raw_sites = g.get("sites") or []
        if not isinstance(raw_sites, list):
            raise ParseError(f"{where} sites must be a list")
        sites = []
        for si, s in enumerate(raw_sites):
            site = parse_site(s, gid, f"{where} site #{si + 1}")
            if site.group_id != gid:
                logger.warning("Dropping site %r: group_id %s does not match group %s", site.name, site.group_id, gid)
                continue
            sites.append(site)
        group.sites = _ordered(sites, list(range(len(sites))))
        groups.append(group)
    return _ordered(groups, list(range(len(groups))))

def dense_orders(items) -> list[dict]:
    """[{id, order_num}] numbered 0..N-1 in the given sequence order."""
    return [{"id": it.id, "order_num": i} for i, it in enumerate(items)]
