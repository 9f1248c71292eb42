"""Shared fixtures: an in-memory directory with two groups and a navigator over it."""
import asyncio

import pytest

from tabnav.client import MemoryDirectoryClient
from tabnav.errors import TransportError
from tabnav.navigator import Navigator
from tabnav.prefs import Preferences


def run(coro):
    return asyncio.run(coro)


class FlakyClient(MemoryDirectoryClient):
    """Memory client whose named operations fail with TransportError."""

    def __init__(self, *a, **kw):
        super().__init__(*a, **kw)
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def __getattribute__(self, name):
        attr = super().__getattribute__(name)
        if name in ("check_auth_status", "login", "logout", "get_groups_with_sites", "create_group",
                    "delete_group", "create_site", "delete_site", "update_group_order",
                    "update_site_order", "get_configs", "set_config"):
            failing = super().__getattribute__("failing")
            calls = super().__getattribute__("calls")

            async def wrapper(*args, **kwargs):
                calls.append(name)
                if name in failing:
                    raise TransportError(f"{name} unreachable")
                return await attr(*args, **kwargs)
            return wrapper
        return attr


@pytest.fixture
def client():
    return FlakyClient(groups=[
        {"name": "A", "sites": [
            {"name": "Alpha", "url": "https://alpha.example.com"},
            {"name": "Beta", "url": "https://beta.example.com/docs"},
            {"name": "Gamma", "url": "https://gamma.example.org"},
        ]},
        {"name": "B", "sites": [
            {"name": "Python", "url": "https://www.python.org"},
        ]},
    ])


@pytest.fixture
def nav(client):
    n = Navigator(client, Preferences())
    run(n.startup())
    n.drain_notices()
    return n


@pytest.fixture
def admin(nav):
    assert run(nav.login("admin", "password"))
    nav.drain_notices()
    return nav
