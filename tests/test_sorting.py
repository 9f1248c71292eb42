import pytest

from conftest import run
from tabnav.errors import AuthorizationError, SortStateError, TransportError
from tabnav.sorting import SortMode


def group_names(nav):
    return [g.name for g in nav.store.groups]


def test_guest_cannot_begin(nav):
    with pytest.raises(AuthorizationError):
        nav.sorter.begin_group_reorder()
    assert nav.sorter.mode is SortMode.IDLE


def test_drag_then_commit_persists_order(admin, client):
    a, b = admin.store.groups
    admin.sorter.begin_group_reorder()
    admin.sorter.stage([b.id, a.id])
    client.calls.clear()
    run(admin.sorter.commit())
    assert client.calls[0] == "update_group_order"
    assert admin.sorter.mode is SortMode.IDLE
    run(admin.store.load())
    assert group_names(admin) == ["B", "A"]
    assert [g.order_num for g in admin.store.groups] == [0, 1]


def test_staging_makes_no_remote_call(admin, client):
    a, b = admin.store.groups
    admin.sorter.begin_group_reorder()
    client.calls.clear()
    admin.sorter.move(a.id, 1)
    assert group_names(admin) == ["B", "A"]
    assert client.calls == []


def test_cancel_restores_last_loaded_order(admin):
    admin.sorter.begin_group_reorder()
    admin.sorter.move(admin.store.groups[0].id, 5)
    assert group_names(admin) == ["B", "A"]
    run(admin.sorter.cancel())
    assert group_names(admin) == ["A", "B"]
    assert admin.sorter.mode is SortMode.IDLE


def test_only_one_scope_at_a_time(admin):
    a = admin.store.groups[0]
    admin.sorter.begin_group_reorder()
    with pytest.raises(SortStateError):
        admin.sorter.begin_site_reorder(a.id)
    assert admin.sorter.mode is SortMode.GROUPS
    run(admin.sorter.cancel())
    admin.sorter.begin_site_reorder(a.id)
    with pytest.raises(SortStateError):
        admin.sorter.begin_group_reorder()
    with pytest.raises(SortStateError):
        admin.sorter.begin_site_reorder(admin.store.groups[1].id)
    assert admin.sorter.is_sorting_sites(a.id)


def test_commit_and_cancel_need_active_scope(admin):
    with pytest.raises(SortStateError):
        run(admin.sorter.commit())
    with pytest.raises(SortStateError):
        run(admin.sorter.cancel())
    with pytest.raises(SortStateError):
        admin.sorter.stage([])


def test_stage_rejects_non_permutation(admin):
    a, b = admin.store.groups
    admin.sorter.begin_group_reorder()
    for bad in ([a.id], [a.id, a.id], [a.id, 999], [a.id, b.id, 999]):
        with pytest.raises(SortStateError):
            admin.sorter.stage(bad)
    assert group_names(admin) == ["A", "B"]


def test_failed_commit_keeps_staged_order(admin, client):
    a, b = admin.store.groups
    admin.sorter.begin_group_reorder()
    admin.sorter.stage([b.id, a.id])
    client.failing.add("update_group_order")
    with pytest.raises(TransportError):
        run(admin.sorter.commit())
    assert admin.sorter.mode is SortMode.GROUPS
    assert group_names(admin) == ["B", "A"]
    client.failing.clear()
    run(admin.sorter.commit())
    assert group_names(admin) == ["B", "A"]
    assert admin.sorter.mode is SortMode.IDLE


def test_site_reorder_commits_dense_orders(admin, client):
    a = admin.store.groups[0]
    alpha, beta, gamma = a.sites
    admin.sorter.begin_site_reorder(a.id)
    admin.sorter.stage([gamma.id, alpha.id, beta.id])
    run(admin.sorter.commit())
    assert [s.name for s in admin.store.sites_of(a.id)] == ["Gamma", "Alpha", "Beta"]
    assert [s.order_num for s in admin.store.sites_of(a.id)] == [0, 1, 2]
    assert admin.sorter.scope_group_id is None


def test_commit_normalizes_sparse_orders(admin, client):
    client.groups[0]["order_num"] = 10
    client.groups[1]["order_num"] = 40
    run(admin.store.load())
    admin.sorter.begin_group_reorder()
    run(admin.sorter.commit())
    assert [g["order_num"] for g in client.groups] == [0, 1]


def test_begin_site_reorder_unknown_group(admin):
    with pytest.raises(SortStateError):
        admin.sorter.begin_site_reorder(12345)


def test_logout_leaves_sort_mode(admin):
    admin.sorter.begin_group_reorder()
    admin.sorter.move(admin.store.groups[0].id, 1)
    run(admin.logout())
    assert admin.sorter.mode is SortMode.IDLE
    assert group_names(admin) == ["A", "B"]


def test_commit_refuses_when_sorted_group_is_gone(admin, client):
    a = admin.store.groups[0]
    admin.sorter.begin_site_reorder(a.id)
    admin.store.import_text('{"groups": [{"id": 99, "name": "Other", "sites": []}]}')
    with pytest.raises(SortStateError):
        admin.sorter.move(99, 0)
    with pytest.raises(SortStateError):
        run(admin.sorter.commit())
    assert "update_site_order" not in client.calls
    assert admin.sorter.mode is SortMode.SITES
    run(admin.sorter.cancel())
    assert admin.sorter.mode is SortMode.IDLE
    assert group_names(admin) == ["A", "B"]
