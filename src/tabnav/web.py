# web.py — Flask host for the tabbed link directory.
# Thin presentation layer: every route goes through the Navigator, which owns
# session, directory, sort mode and configuration. Nothing here talks to the
# directory client directly.

from flask import (
    Flask, request, redirect, url_for, flash, current_app,
    render_template_string, jsonify, Response
)
from markupsafe import Markup

from .config import BOOL_KEYS, DEFAULT_CONFIGS
from .session import ViewMode
from .urls import icon_url_for


def create_app(navigator, settings=None) -> Flask:
    app = Flask(__name__)
    app.secret_key = settings.secret_key if settings else "dev-change-me"
    app.extensions["tabnav"] = navigator
    register_routes(app)
    return app


async def get_nav():
    nav = current_app.extensions["tabnav"]
    if not nav.started:
        await nav.startup()
    return nav

def flash_notices(nav):
    for n in nav.drain_notices():
        flash(n.message, n.style)

def back():
    return redirect(url_for("index"))

def wants_json() -> bool:
    return request.headers.get("Accept", "").find("application/json") >= 0 or bool(request.headers.get("X-Requested-With"))

def form_int(name: str):
    try:
        return int(request.form.get(name, ""))
    except ValueError:
        return None

def site_icon(nav, site) -> str:
    return site.icon or icon_url_for(site.url, nav.config.icon_api) or ""


# ----------------------------
# Templates
# ----------------------------
BASE = r"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{{ nav.config.title }}</title>
  <style>
    :root{ --gap:.7rem; --radius:6px; --muted:#6b7280; --brand:#2b6cb0; --danger:#ef4444;
      --bg:#f5f7fb; --text:#0f172a; --card-bg:#fff; --header-bg:#253858; --border:#e5e7eb; --hover:#f3f4f6; }
    .dark{ --bg:#0b1220; --text:#e5e7eb; --card-bg:#0f172a; --header-bg:#0e223c; --border:#1f2937; --hover:#142036; --brand:#7aa2ff; --muted:#94a3b8; }
    *{ box-sizing:border-box; } body{ font-family:system-ui,-apple-system,Segoe UI,Roboto,sans-serif; background:var(--bg); color:var(--text); margin:0; }
    header{ background:var(--header-bg); color:#fff; padding:.6rem 1rem; display:flex; justify-content:space-between; align-items:center; gap:1rem; }
    header a{ color:#fff; text-decoration:none; font-weight:600; }
    .bg{ position:fixed; inset:0; z-index:-1; background-size:cover; background-position:center; }
    .container{ padding:.8rem; max-width:1200px; margin:0 auto; }
    .flash{ padding:.45rem .7rem; border-radius:var(--radius); margin:0 0 .6rem 0; }
    .flash.success{ background:#e8fff2; color:#155d2e; } .flash.info{ background:#eef2ff; color:#1e3a8a; } .flash.danger{ background:#fff1f2; color:#991b1b; }
    .tabs{ display:flex; flex-wrap:wrap; gap:.3rem; margin-bottom:.8rem; }
    .tab{ padding:.35rem .7rem; border-radius:var(--radius); background:var(--card-bg); border:1px solid var(--border); color:inherit; text-decoration:none; }
    .tab.active{ background:var(--brand); color:#fff; }
    .grid{ display:grid; gap:var(--gap); grid-template-columns:repeat(auto-fill, minmax(220px, 1fr)); }
    .card{ background:var(--card-bg); border:1px solid var(--border); border-radius:var(--radius); padding:.6rem; display:flex; gap:.5rem; align-items:flex-start; }
    .card a{ color:var(--brand); text-decoration:none; font-weight:600; }
    .favicon{ width:20px; height:20px; border-radius:3px; }
    .btn{ display:inline-flex; align-items:center; gap:.35rem; background:var(--brand); color:#fff; border:0; padding:.3rem .55rem; border-radius:var(--radius); cursor:pointer; font-size:.88rem; text-decoration:none; }
    .btn.ghost{ background:var(--hover); color:inherit; } .btn.danger{ background:var(--danger); }
    .muted{ color:var(--muted); } .row{ display:flex; gap:.4rem; flex-wrap:wrap; align-items:center; margin:.4rem 0; }
    .sortable [draggable]{ cursor:grab; outline:1px dashed var(--muted); }
  </style>
  {% if custom_css %}<style id="custom-style">{{ custom_css }}</style>{% endif %}
</head>
<body class="{{ 'dark' if nav.dark else '' }}">
  {% if background %}<div class="bg" style="background-image:url('{{ background }}'); opacity:{{ nav.config.background_opacity }}"></div>{% endif %}
  <header>
    <a href="{{ url_for('index') }}">{{ nav.config.site_name }}</a>
    <div class="row">
      <form method="post" action="{{ url_for('toggle_theme') }}"><button class="btn ghost" type="submit">{{ 'Light' if nav.dark else 'Dark' }}</button></form>
      {% if edit %}
        <a class="btn ghost" href="{{ url_for('export') }}">Export</a>
        <form method="post" action="{{ url_for('logout') }}"><button class="btn ghost" type="submit">Logout</button></form>
      {% else %}
        <a class="btn ghost" href="{{ url_for('login') }}">Login</a>
      {% endif %}
    </div>
  </header>
  <div class="container">
    {% with messages = get_flashed_messages(with_categories=true) %}
      {% for category,msg in messages %}
        <div class="flash {{ category }}">{{ msg }}</div>
      {% endfor %}
    {% endwith %}
    {{ content|safe }}
  </div>
</body>
</html>
"""

INDEX = r"""
{% if search_box %}
<form class="row" method="get" action="{{ url_for('index') }}">
  <input name="q" value="{{ q }}" placeholder="Search sites"> <button class="btn" type="submit">Search</button>
</form>
{% endif %}

{% if q %}
  <div class="grid">
  {% for g, s in results %}
    <div class="card"><img class="favicon" src="{{ icon(s) }}" alt=""><div><a href="{{ s.url }}" target="_blank" rel="noopener">{{ s.name }}</a><div class="muted">{{ g.name }}</div></div></div>
  {% else %}<p class="muted">No matches.</p>{% endfor %}
  </div>
{% else %}
<div class="tabs {{ 'sortable' if sort_mode == 'reorderingGroups' else '' }}" data-kind="groups">
  {% for g in groups %}
    <a class="tab {{ 'active' if g.id == selected_id else '' }}" data-id="{{ g.id }}" {% if sort_mode == 'reorderingGroups' %}draggable="true"{% endif %}
       href="{{ url_for('select_group', group_id=g.id) }}">{{ g.name }}{% if not g.is_public %} 🔒{% endif %}</a>
  {% else %}<span class="muted">No groups yet.</span>{% endfor %}
</div>

{% if edit %}
<div class="row">
  {% if sort_mode == 'idle' %}
    <form method="post" action="{{ url_for('sort_groups') }}"><button class="btn ghost">Sort groups</button></form>
    {% if selected %}<form method="post" action="{{ url_for('sort_sites', group_id=selected.id) }}"><button class="btn ghost">Sort sites</button></form>{% endif %}
  {% else %}
    <form method="post" action="{{ url_for('sort_commit') }}"><button class="btn">Save order</button></form>
    <form method="post" action="{{ url_for('sort_cancel') }}"><button class="btn ghost">Cancel</button></form>
  {% endif %}
</div>
{% endif %}

{% if selected %}
<div class="grid {{ 'sortable' if sort_mode == 'reorderingSites' else '' }}" data-kind="sites">
  {% for s in selected.sites %}
    <div class="card" data-id="{{ s.id }}" {% if sort_mode == 'reorderingSites' %}draggable="true"{% endif %}>
      <img class="favicon" src="{{ icon(s) }}" alt="">
      <div>
        <a href="{{ s.url }}" target="_blank" rel="noopener">{{ s.name }}</a>
        {% if s.description %}<div class="muted">{{ s.description }}</div>{% endif %}
        {% if edit and sort_mode == 'idle' %}
        <form method="post" action="{{ url_for('delete_site', site_id=s.id) }}"><button class="btn ghost" type="submit">Delete</button></form>
        {% endif %}
      </div>
    </div>
  {% else %}<p class="muted">No sites in this group.</p>{% endfor %}
</div>
{% endif %}

{% if edit and sort_mode == 'idle' %}
<hr>
<form class="row" method="post" action="{{ url_for('add_group') }}">
  <input name="name" placeholder="New group" required>
  <label><input type="checkbox" name="is_public" value="1" checked> public</label>
  <button class="btn" type="submit">Add group</button>
</form>
{% if selected %}
<form class="row" method="post" action="{{ url_for('add_site') }}">
  <input type="hidden" name="group_id" value="{{ selected.id }}">
  <input name="name" placeholder="Site name" required>
  <input name="url" placeholder="https://…" required>
  <input name="icon" placeholder="Icon URL (optional)">
  <input name="description" placeholder="Description">
  <button class="btn" type="submit">Add site</button>
</form>
<form class="row" method="post" action="{{ url_for('delete_group', group_id=selected.id) }}"
      onsubmit="return confirm('Delete this group and all of its sites? This cannot be undone.')">
  <input type="hidden" name="confirm" value="yes">
  <button class="btn danger" type="submit">Delete group “{{ selected.name }}”</button>
</form>
{% endif %}
<form class="row" method="post" action="{{ url_for('import_data') }}" enctype="multipart/form-data">
  <input type="file" name="file" accept="application/json"> <button class="btn ghost" type="submit">Import</button>
</form>
<details><summary>Settings</summary>
<form method="post" action="{{ url_for('save_config') }}">
  {% for key, value in draft.items() %}
    <div class="row"><label style="min-width:14rem">{{ key }}</label>
    {% if key in bool_keys %}<input type="checkbox" name="{{ key }}" value="true" {{ 'checked' if value == 'true' else '' }}>
    {% elif key == 'site.customCss' %}<textarea name="{{ key }}" rows="4" cols="60">{{ value }}</textarea>
    {% else %}<input name="{{ key }}" value="{{ value }}" size="60">{% endif %}</div>
  {% endfor %}
  <button class="btn" type="submit">Save settings</button>
</form>
</details>
{% endif %}
{% endif %}

{% if sort_mode != 'idle' %}
<script>
(function(){
  const box = document.querySelector('.sortable'); if(!box) return;
  let dragged = null;
  box.addEventListener('dragstart', e => { dragged = e.target.closest('[data-id]'); });
  box.addEventListener('dragover', e => { e.preventDefault(); const over = e.target.closest('[data-id]');
    if(over && dragged && over !== dragged){ const r = over.getBoundingClientRect();
      box.insertBefore(dragged, (e.clientX - r.left) > r.width / 2 ? over.nextSibling : over); } });
  box.addEventListener('drop', e => { e.preventDefault();
    const ids = [...box.querySelectorAll('[data-id]')].map(el => parseInt(el.dataset.id, 10));
    fetch('{{ url_for("sort_stage") }}', {method:'POST', headers:{'Content-Type':'application/json','Accept':'application/json'}, body: JSON.stringify({ids})}); });
})();
</script>
{% endif %}
"""

LOGIN = r"""
<h2>Login</h2>
<form method="post">
  <p><input name="username" placeholder="Username" required></p>
  <p><input type="password" name="password" placeholder="Password" required></p>
  <p><label><input type="checkbox" name="remember" value="1"> Remember me</label></p>
  <p><button class="btn" type="submit">Login</button></p>
</form>
"""


def page(nav, tpl, **ctx):
    edit = nav.view_mode is ViewMode.EDIT
    ctx.setdefault("nav", nav)
    ctx.setdefault("edit", edit)
    ctx.setdefault("custom_css", Markup(nav.config.custom_css))
    ctx.setdefault("background", nav.config.background_image)
    return render_template_string(BASE, content=render_template_string(tpl, **ctx), **ctx)


# ----------------------------
# Routes
# ----------------------------
def register_routes(app: Flask):

    @app.route("/", methods=["GET"])
    async def index():
        nav = await get_nav()
        flash_notices(nav)
        q = (request.args.get("q") or "").strip()
        search_box = nav.search_box_visible()
        return page(
            nav, INDEX,
            groups=nav.store.groups, selected=nav.store.selected_group, selected_id=nav.store.selected_group_id,
            sort_mode=nav.sorter.mode.value, draft=nav.config.draft, bool_keys=BOOL_KEYS,
            search_box=search_box, q=q if search_box else "",
            results=nav.store.search(q) if (q and search_box) else [],
            icon=lambda s: site_icon(nav, s),
        )

    @app.route("/select/<int:group_id>")
    async def select_group(group_id):
        nav = await get_nav()
        nav.store.select(group_id)
        return back()

    @app.route("/api/search")
    async def api_search():
        nav = await get_nav()
        if not nav.search_box_visible():
            return jsonify({"results": []})
        q = (request.args.get("q") or "").strip()
        res = [{"id": s.id, "name": s.name, "url": s.url, "group_id": g.id, "group": g.name, "favicon": site_icon(nav, s)}
               for g, s in nav.store.search(q)]
        return jsonify({"results": res[:200]})

    @app.route("/login", methods=["GET", "POST"])
    async def login():
        nav = await get_nav()
        if request.method == "POST":
            ok = await nav.login(request.form.get("username", ""), request.form.get("password", ""),
                                 bool(request.form.get("remember")))
            flash_notices(nav)
            if ok:
                return back()
        return page(nav, LOGIN)

    @app.route("/logout", methods=["POST"])
    async def logout():
        nav = await get_nav()
        await nav.logout()
        flash_notices(nav)
        return back()

    # ---- Groups & sites ----
    @app.route("/groups/add", methods=["POST"])
    async def add_group():
        nav = await get_nav()
        await nav.create_group(request.form.get("name", ""), bool(request.form.get("is_public")))
        flash_notices(nav)
        return back()

    @app.route("/groups/<int:group_id>/delete", methods=["POST"])
    async def delete_group(group_id):
        nav = await get_nav()
        if request.form.get("confirm") != "yes":
            flash("Deleting a group removes all of its sites; please confirm.", "danger")
            return back()
        await nav.delete_group(group_id)
        flash_notices(nav)
        return back()

    @app.route("/sites/add", methods=["POST"])
    async def add_site():
        nav = await get_nav()
        await nav.create_site(
            form_int("group_id"), request.form.get("name", ""), request.form.get("url", ""),
            icon=request.form.get("icon") or None, description=request.form.get("description") or None,
            notes=request.form.get("notes") or None,
        )
        flash_notices(nav)
        return back()

    @app.route("/sites/<int:site_id>/delete", methods=["POST"])
    async def delete_site(site_id):
        nav = await get_nav()
        ok = await nav.delete_site(site_id)
        if wants_json():
            return jsonify({"ok": ok, "errors": [n.message for n in nav.drain_notices() if n.style == "danger"]})
        flash_notices(nav)
        return back()

    # ---- Sort mode ----
    @app.route("/sort/groups", methods=["POST"])
    async def sort_groups():
        nav = await get_nav()
        nav.begin_group_reorder()
        flash_notices(nav)
        return back()

    @app.route("/sort/sites/<int:group_id>", methods=["POST"])
    async def sort_sites(group_id):
        nav = await get_nav()
        nav.begin_site_reorder(group_id)
        flash_notices(nav)
        return back()

    @app.route("/sort/stage", methods=["POST"])
    async def sort_stage():
        nav = await get_nav()
        payload = request.get_json(force=True, silent=True) or {}
        ids = payload.get("ids")
        if not isinstance(ids, list):
            return jsonify({"ok": False, "errors": ["ids must be a list"]}), 400
        ok = nav.stage(ids)
        errors = [n.message for n in nav.drain_notices()]
        return jsonify({"ok": ok, "errors": errors}), (200 if ok else 409)

    @app.route("/sort/commit", methods=["POST"])
    async def sort_commit():
        nav = await get_nav()
        await nav.commit_order()
        flash_notices(nav)
        return back()

    @app.route("/sort/cancel", methods=["POST"])
    async def sort_cancel():
        nav = await get_nav()
        await nav.cancel_order()
        flash_notices(nav)
        return back()

    # ---- Settings, theme, export/import ----
    @app.route("/config", methods=["POST"])
    async def save_config():
        nav = await get_nav()
        draft = nav.config.draft
        for key in list(DEFAULT_CONFIGS) + [k for k in draft if k not in DEFAULT_CONFIGS]:
            if key in BOOL_KEYS:
                draft[key] = "true" if request.form.get(key) == "true" else "false"
            elif key in request.form:
                draft[key] = request.form.get(key, "")
        await nav.save_config(draft)
        flash_notices(nav)
        return back()

    @app.route("/theme", methods=["POST"])
    async def toggle_theme():
        nav = await get_nav()
        nav.toggle_theme()
        return back()

    @app.route("/export")
    async def export():
        nav = await get_nav()
        if not nav.attempt(nav.session.require_edit, "Exporting data"):
            flash_notices(nav)
            return back()
        return Response(nav.store.export_text(), mimetype="application/json",
                        headers={"Content-Disposition": "attachment; filename=tabnav-export.json"})

    @app.route("/import", methods=["POST"])
    async def import_data():
        nav = await get_nav()
        f = request.files.get("file")
        if not f or not f.filename:
            flash("Please select an export file.", "danger")
            return back()
        nav.import_text(f.read())
        flash_notices(nav)
        return back()

