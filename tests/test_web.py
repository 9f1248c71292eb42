import pytest

from conftest import run
from tabnav.web import create_app


@pytest.fixture
def app(nav):
    app = create_app(nav)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def web(app):
    return app.test_client()


def login(web):
    return web.post("/login", data={"username": "admin", "password": "password"})


def test_index_readonly(web):
    resp = web.get("/")
    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert "Alpha" in html and ">B<" in html
    assert "Add group" not in html
    assert "Login" in html


def test_login_shows_edit_controls(web):
    assert login(web).status_code == 302
    html = web.get("/").get_data(as_text=True)
    assert "Add group" in html
    assert "Logged in." in html


def test_bad_login_flashes(web):
    html = web.post("/login", data={"username": "admin", "password": "x"}, follow_redirects=True).get_data(as_text=True)
    assert "Invalid credentials" in html


def test_guest_cannot_add_group(web, nav):
    html = web.post("/groups/add", data={"name": "Nope"}, follow_redirects=True).get_data(as_text=True)
    assert "requires an administrator login" in html
    assert [g.name for g in nav.store.groups] == ["A", "B"]


def test_add_group_and_site(web, nav):
    login(web)
    web.post("/groups/add", data={"name": "Tools", "is_public": "1"})
    gid = nav.store.groups[-1].id
    web.post("/sites/add", data={"group_id": str(gid), "name": "PyPI", "url": "pypi.org"})
    assert [s.url for s in nav.store.sites_of(gid)] == ["https://pypi.org"]


def test_delete_group_needs_confirmation(web, nav):
    login(web)
    gid = nav.store.groups[0].id
    web.post(f"/groups/{gid}/delete")
    assert len(nav.store.groups) == 2
    web.post(f"/groups/{gid}/delete", data={"confirm": "yes"})
    assert [g.name for g in nav.store.groups] == ["B"]


def test_sort_flow(web, nav):
    login(web)
    a, b = nav.store.groups
    web.post("/sort/groups")
    resp = web.post("/sort/stage", json={"ids": [b.id, a.id]})
    assert resp.get_json() == {"ok": True, "errors": []}
    web.post("/sort/commit")
    run(nav.store.load())
    assert [g.name for g in nav.store.groups] == ["B", "A"]


def test_stage_outside_sort_mode_conflicts(web):
    login(web)
    resp = web.post("/sort/stage", json={"ids": [1]})
    assert resp.status_code == 409
    assert resp.get_json()["ok"] is False


def test_custom_css_injected_sanitized(web, nav):
    nav.config.live["site.customCss"] = "body { color: red; }</style><script>alert(1)</script>"
    html = web.get("/").get_data(as_text=True)
    assert '<style id="custom-style">body { color: red; }</style>' in html
    assert "alert(1)" not in html


def test_insecure_background_not_rendered(web, nav):
    nav.config.live["site.backgroundImage"] = "http://img.example/bg.jpg"
    assert "img.example" not in web.get("/").get_data(as_text=True)
    nav.config.live["site.backgroundImage"] = "https://img.example/bg.jpg"
    assert "https://img.example/bg.jpg" in web.get("/").get_data(as_text=True)


def test_search_api_respects_guest_flag(web, nav):
    assert web.get("/api/search?q=python").get_json()["results"][0]["name"] == "Python"
    nav.config.live["site.searchBoxGuestEnabled"] = "false"
    assert web.get("/api/search?q=python").get_json()["results"] == []


def test_export_and_import(web, nav):
    assert web.get("/export").status_code == 302
    login(web)
    resp = web.get("/export")
    assert resp.headers["Content-Disposition"].startswith("attachment")
    exported = resp.get_data()
    import io
    html = web.post("/import", data={"file": (io.BytesIO(b"garbage"), "x.json")},
                    content_type="multipart/form-data", follow_redirects=True).get_data(as_text=True)
    assert "not valid JSON" in html
    web.post("/import", data={"file": (io.BytesIO(exported), "x.json")}, content_type="multipart/form-data")
    assert [g.name for g in nav.store.groups] == ["A", "B"]


def test_save_config_form(web, nav):
    login(web)
    web.post("/config", data={"site.title": "My Links", "site.searchBoxEnabled": "true"})
    assert nav.config.title == "My Links"
    assert nav.config.get("site.searchBoxGuestEnabled") == "false"


def test_theme_toggle(web, nav):
    web.post("/theme")
    assert nav.dark is True
    assert 'class="dark"' in web.get("/").get_data(as_text=True)
