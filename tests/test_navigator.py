from conftest import FlakyClient, run
from tabnav.navigator import Navigator
from tabnav.prefs import Preferences
from tabnav.session import SessionState, ViewMode


def test_startup_with_failed_auth_check_is_readonly_but_loaded(client):
    client.authenticated = True
    client.failing.add("check_auth_status")
    nav = Navigator(client, Preferences())
    run(nav.startup())
    assert nav.view_mode is ViewMode.READONLY
    assert [g.name for g in nav.store.groups] == ["A", "B"]
    assert "get_configs" in client.calls


def test_startup_survives_directory_and_config_failures():
    client = FlakyClient()
    client.failing.update({"get_groups_with_sites", "get_configs"})
    nav = Navigator(client, Preferences())
    run(nav.startup())
    assert nav.started
    assert nav.session.state is SessionState.GUEST
    notices = nav.drain_notices()
    assert [n.category for n in notices] == ["transport", "transport"]
    assert all(n.style == "danger" for n in notices)


def test_errors_become_notices(nav):
    assert not run(nav.create_site(nav.store.groups[0].id, "X", "https://x.example"))
    [notice] = nav.drain_notices()
    assert notice.category == "authorization"
    assert nav.drain_notices() == []


def test_login_logout_notices(nav):
    assert not run(nav.login("admin", "wrong"))
    assert nav.drain_notices()[0].message == "Invalid credentials or server unavailable."
    assert run(nav.login("admin", "password"))
    assert nav.drain_notices()[0].message == "Logged in."
    assert run(nav.logout())
    assert nav.drain_notices()[0].message == "Logged out."
    assert nav.view_mode is ViewMode.READONLY


def test_failed_logout_still_readonly(admin, client):
    client.failing.add("logout")
    assert not run(admin.logout())
    assert admin.view_mode is ViewMode.READONLY


def test_save_config_requires_edit(nav, client):
    draft = nav.config.draft
    draft["site.title"] = "X"
    assert not run(nav.save_config(draft))
    assert "set_config" not in client.calls
    assert nav.drain_notices()[0].category == "authorization"


def test_save_config_as_admin(admin):
    draft = admin.config.draft
    draft["site.title"] = "Links"
    assert run(admin.save_config(draft))
    assert admin.config.title == "Links"


def test_icon_template_follows_live_config(admin):
    admin.config.live["site.iconApi"] = "https://icons.example/{domain}.png"
    gid = admin.store.groups[0].id
    assert run(admin.create_site(gid, "Ex", "https://ex.example/page"))
    assert admin.store.sites_of(gid)[-1].icon == "https://icons.example/ex.example.png"


def test_import_notice(admin):
    assert not admin.import_text("{broken")
    assert admin.drain_notices()[0].category == "parse"
    assert admin.import_text(admin.store.export_text())
    assert admin.drain_notices()[0].message == "Imported 2 group(s), 4 site(s)."


def test_theme_preference(tmp_path, client):
    path = str(tmp_path / "prefs.csv")
    nav = Navigator(client, Preferences(path))
    assert nav.dark is False
    assert nav.toggle_theme() is True
    assert Navigator(client, Preferences(path)).dark is True


def test_import_refused_while_sorting(admin, client):
    a = admin.store.groups[0]
    assert admin.begin_site_reorder(a.id)
    assert not admin.import_text('{"groups": [{"id": 99, "name": "Other", "sites": []}]}')
    assert admin.drain_notices()[0].category == "state"
    assert [g.name for g in admin.store.groups] == ["A", "B"]
    assert run(admin.commit_order())
    assert client.calls.count("update_site_order") == 1
    assert client.groups[0]["name"] == "A"
