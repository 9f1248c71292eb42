"""Directory client: the remote operations the controllers are written against.

Two implementations share the ``DirectoryClient`` contract:

- ``HttpDirectoryClient`` talks JSON to the REST API of a deployed directory.
- ``MemoryDirectoryClient`` keeps everything in process; it backs the demo
  mode and the tests.

Both exchange groups in their wire shape (dicts with ``order_num``,
``is_public`` and nested ``sites``); validation happens in the store.
"""
import abc
import asyncio
import copy
import json
import logging
from datetime import datetime, timezone
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .errors import TransportError
from .models import Group, Site

logger = logging.getLogger(__name__)


class DirectoryClient(abc.ABC):

    @abc.abstractmethod
    async def check_auth_status(self) -> bool: ...

    @abc.abstractmethod
    async def login(self, username: str, password: str, remember: bool = False) -> dict:
        """Return ``{"success": bool, "message": str}``; raise TransportError if unreachable."""

    @abc.abstractmethod
    async def logout(self) -> None: ...

    @abc.abstractmethod
    async def get_groups_with_sites(self) -> list[dict]: ...

    @abc.abstractmethod
    async def create_group(self, group: Group) -> None: ...

    @abc.abstractmethod
    async def delete_group(self, group_id: int) -> None:
        """Delete a group and, server side, every site it owns."""

    @abc.abstractmethod
    async def create_site(self, site: Site) -> None: ...

    @abc.abstractmethod
    async def delete_site(self, site_id: int) -> None: ...

    @abc.abstractmethod
    async def update_group_order(self, orders: list[dict]) -> None:
        """Bulk reorder; ``orders`` is ``[{"id": ..., "order_num": ...}]``."""

    @abc.abstractmethod
    async def update_site_order(self, orders: list[dict]) -> None: ...

    @abc.abstractmethod
    async def get_configs(self) -> dict[str, str]: ...

    @abc.abstractmethod
    async def set_config(self, key: str, value: str) -> None: ...


# ----------------------------
# In-memory (demo) client
# ----------------------------
def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class MemoryDirectoryClient(DirectoryClient):

    def __init__(self, username: str = "admin", password: str = "password",
                 groups: list[dict] | None = None, configs: dict[str, str] | None = None):
        self.username = username
        self.password = password
        self.authenticated = False
        self.groups: list[dict] = []
        self.sites: list[dict] = []
        self.configs: dict[str, str] = dict(configs or {})
        self._next_id = 1
        for g in groups or []:
            self._add_group(g)

    @classmethod
    def seeded(cls, username: str = "admin", password: str = "password") -> "MemoryDirectoryClient":
        return cls(username, password, groups=[
            {"name": "News", "sites": [
                {"name": "Hacker News", "url": "https://news.ycombinator.com"},
                {"name": "Lobsters", "url": "https://lobste.rs"},
            ]},
            {"name": "Dev Tools", "sites": [
                {"name": "GitHub", "url": "https://github.com"},
                {"name": "Python Docs", "url": "https://docs.python.org/3/"},
            ]},
        ])

    def new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    @staticmethod
    def next_order(rows, predicate) -> int:
        orders = [int(r.get("order_num") or 0) for r in rows if predicate(r)]
        return (max(orders) + 1) if orders else 0

    def _add_group(self, g: dict) -> dict:
        row = {
            "id": self.new_id(), "name": g["name"],
            "order_num": g.get("order_num", self.next_order(self.groups, lambda r: True)),
            "is_public": g.get("is_public", 1), "created_at": _now(), "updated_at": _now(),
        }
        self.groups.append(row)
        for s in g.get("sites", []):
            self._add_site(dict(s, group_id=row["id"]))
        return row

    def _add_site(self, s: dict) -> dict:
        gid = s["group_id"]
        row = {
            "id": self.new_id(), "group_id": gid, "name": s["name"], "url": s["url"],
            "icon": s.get("icon") or "", "description": s.get("description") or "", "notes": s.get("notes") or "",
            "order_num": s.get("order_num", self.next_order(self.sites, lambda r: r["group_id"] == gid)),
            "is_public": s.get("is_public", 1), "created_at": _now(), "updated_at": _now(),
        }
        self.sites.append(row)
        return row

    def _require_auth(self):
        if not self.authenticated:
            raise TransportError("401 Unauthorized")

    async def check_auth_status(self) -> bool:
        return self.authenticated

    async def login(self, username, password, remember=False):
        if username == self.username and password == self.password:
            self.authenticated = True
            return {"success": True, "message": "Logged in"}
        return {"success": False, "message": "Invalid username or password"}

    async def logout(self):
        self.authenticated = False

    async def get_groups_with_sites(self):
        out = []
        for g in sorted(self.groups, key=lambda r: r["order_num"]):
            sites = sorted((s for s in self.sites if s["group_id"] == g["id"]), key=lambda r: r["order_num"])
            out.append(dict(copy.deepcopy(g), sites=copy.deepcopy(sites)))
        return out

    async def create_group(self, group):
        self._require_auth()
        d = group.to_dict(with_sites=False)
        d.pop("id", None)
        d.pop("order_num", None)
        self._add_group(d)

    async def delete_group(self, group_id):
        self._require_auth()
        self.groups = [g for g in self.groups if g["id"] != group_id]
        self.sites = [s for s in self.sites if s["group_id"] != group_id]

    async def create_site(self, site):
        self._require_auth()
        if not any(g["id"] == site.group_id for g in self.groups):
            raise TransportError(f"404 group {site.group_id} not found")
        d = site.to_dict()
        d.pop("id", None)
        d.pop("order_num", None)
        self._add_site(d)

    async def delete_site(self, site_id):
        self._require_auth()
        self.sites = [s for s in self.sites if s["id"] != site_id]

    async def update_group_order(self, orders):
        self._require_auth()
        self._apply_orders(self.groups, orders)

    async def update_site_order(self, orders):
        self._require_auth()
        self._apply_orders(self.sites, orders)

    @staticmethod
    def _apply_orders(rows, orders):
        by_id = {r["id"]: r for r in rows}
        for o in orders:
            row = by_id.get(o["id"])
            if row is not None:
                row["order_num"] = int(o["order_num"])
                row["updated_at"] = _now()

    async def get_configs(self):
        return dict(self.configs)

    async def set_config(self, key, value):
        self._require_auth()
        self.configs[key] = value


# ----------------------------
# HTTP (REST/JSON) client
# ----------------------------
def _object(data, what: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TransportError(f"{what} returned an unexpected payload")
    return data


class HttpDirectoryClient(DirectoryClient):
    """Directory client for the JSON REST API.

    A bearer token returned by ``login`` is sent with every request. With
    ``remember=True`` it is also stored in ``credentials`` (a Preferences
    instance) under ``auth_token`` and reused on the next start.
    """

    TOKEN_KEY = "auth_token"

    def __init__(self, base_url: str, timeout: float = 10.0, credentials=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.credentials = credentials
        self.token = credentials.get(self.TOKEN_KEY) if credentials is not None else None

    def _request_sync(self, method: str, path: str, payload=None):
        url = self.base_url + path
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        headers = {"Accept": "application/json", "User-Agent": "tabnav/0.1"}
        if data is not None:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        req = Request(url, data=data, headers=headers, method=method)
        logger.debug("%s %s", method, url)
        with urlopen(req, timeout=self.timeout) as resp:
            raw = resp.read()
        if not raw.strip():
            return None
        return json.loads(raw.decode("utf-8"))

    async def _request(self, method: str, path: str, payload=None):
        try:
            return await asyncio.to_thread(self._request_sync, method, path, payload)
        except HTTPError as e:
            raise TransportError(f"{method} {path} failed: HTTP {e.code}") from e
        except (URLError, OSError, TimeoutError) as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        except (ValueError, UnicodeDecodeError) as e:
            raise TransportError(f"{method} {path} returned invalid JSON") from e

    async def check_auth_status(self):
        try:
            data = await self._request("GET", "/auth/status")
        except TransportError as e:
            if isinstance(e.__cause__, HTTPError) and e.__cause__.code == 401:
                return False
            raise
        data = _object(data, "GET /auth/status")
        return bool(data.get("authenticated"))

    async def login(self, username, password, remember=False):
        try:
            data = await self._request("POST", "/login",
                                       {"username": username, "password": password, "rememberMe": bool(remember)})
        except TransportError as e:
            if isinstance(e.__cause__, HTTPError) and e.__cause__.code in (400, 401, 403):
                return {"success": False, "message": "Invalid username or password"}
            raise
        data = _object(data, "POST /login")
        ok = bool(data.get("success"))
        if ok and data.get("token"):
            self.token = data["token"]
            if remember and self.credentials is not None:
                self.credentials.set(self.TOKEN_KEY, self.token)
        return {"success": ok, "message": data.get("message") or ""}

    async def logout(self):
        try:
            await self._request("POST", "/logout")
        finally:
            self.token = None
            if self.credentials is not None:
                self.credentials.delete(self.TOKEN_KEY)

    async def get_groups_with_sites(self):
        return await self._request("GET", "/groups-with-sites")

    async def create_group(self, group):
        await self._request("POST", "/groups", group.to_dict(with_sites=False))

    async def delete_group(self, group_id):
        await self._request("DELETE", f"/groups/{int(group_id)}")

    async def create_site(self, site):
        await self._request("POST", "/sites", site.to_dict())

    async def delete_site(self, site_id):
        await self._request("DELETE", f"/sites/{int(site_id)}")

    async def update_group_order(self, orders):
        await self._request("PUT", "/group-orders", list(orders))

    async def update_site_order(self, orders):
        await self._request("PUT", "/site-orders", list(orders))

    async def get_configs(self):
        return await self._request("GET", "/configs") or {}

    async def set_config(self, key, value):
        await self._request("PUT", f"/configs/{quote(key, safe='')}", {"value": value})
