import pytest

from dashboard_api.config.permissions_config import DEFAULT_ROLES, PERMISSION_CATALOG
from dashboard_api.core.exceptions import ConflictError, NotFoundError, StorageUnavailable, ValidationError
from dashboard_api.modules.assignments.service import AssignmentService
from dashboard_api.modules.roles.schemas import RoleCreate, RoleUpdate
from dashboard_api.modules.roles.service import PermissionService, RoleService


@pytest.fixture
def roles(supabase):
    return RoleService(supabase)


def codes(role):
    return sorted(p.code for p in role.permissions)


def test_seed_permissions_is_idempotent(supabase):
    service = PermissionService(supabase)
    service.seed_permissions()
    service.seed_permissions()

    assert len(supabase.rows("permissions")) == len(PERMISSION_CATALOG)


def test_list_permissions_by_category(supabase, catalog):
    exported = PermissionService(supabase).list_permissions(category="export")

    assert [p.code for p in exported] == ["export_reports"]


def test_create_role_binds_permissions(roles, catalog):
    role = roles.create_role(RoleCreate(
        name="Analyst",
        description="Exports data",
        permission_ids=[catalog["export_reports"], catalog["view_data"]]
    ))

    assert codes(roles.get_role(role.id)) == ["export_reports", "view_data"]


def test_create_role_skips_unknown_permission_ids(roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"], 999]))

    assert codes(roles.get_role(role.id)) == ["view_data"]


@pytest.mark.parametrize("name", ["", "   "])
def test_create_role_rejects_empty_name(roles, name):
    with pytest.raises(ValidationError):
        roles.create_role(RoleCreate(name=name))


def test_create_role_rejects_duplicate_name(roles):
    roles.create_role(RoleCreate(name="Analyst"))

    with pytest.raises(ValidationError):
        roles.create_role(RoleCreate(name="Analyst"))
    # Exact match only
    roles.create_role(RoleCreate(name="analyst"))
    roles.create_role(RoleCreate(name=" Analyst"))

    assert sorted(r["name"] for r in roles.supabase.rows("roles")) == [" Analyst", "Analyst", "analyst"]


def test_concurrent_create_with_same_name_is_a_validation_error(roles, monkeypatch):
    roles.create_role(RoleCreate(name="Analyst"))
    # Lose the race: the existence check saw nothing, the unique index catches it
    monkeypatch.setattr(roles, "_find_role_by_name", lambda name: None)

    with pytest.raises(ValidationError):
        roles.create_role(RoleCreate(name="Analyst"))


def test_concurrent_rename_to_taken_name_is_a_validation_error(roles, monkeypatch):
    roles.create_role(RoleCreate(name="Analyst"))
    viewer = roles.create_role(RoleCreate(name="Viewer"))
    monkeypatch.setattr(roles, "_find_role_by_name", lambda name: None)

    with pytest.raises(ValidationError):
        roles.update_role(viewer.id, RoleUpdate(name="Analyst"))

    assert roles.get_role(viewer.id).name == "Viewer"


def test_create_role_is_undone_when_binding_fails(supabase, roles, catalog):
    supabase.fail("role_permissions", "insert")

    with pytest.raises(StorageUnavailable):
        roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"]]))

    assert supabase.rows("roles") == []


def test_update_role_partial_fields(roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", description="old", permission_ids=[catalog["view_data"]]))

    updated = roles.update_role(role.id, RoleUpdate(description="new"))

    assert updated.name == "Analyst"
    assert updated.description == "new"
    assert codes(updated) == ["view_data"]


def test_update_role_empty_list_clears_permissions(roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"]]))

    assert codes(roles.update_role(role.id, RoleUpdate(permission_ids=None))) == ["view_data"]
    assert codes(roles.update_role(role.id, RoleUpdate(permission_ids=[]))) == []


def test_update_role_replaces_permission_set(roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"]]))

    updated = roles.update_role(role.id, RoleUpdate(permission_ids=[catalog["export_reports"], catalog["submit_data"]]))

    assert codes(updated) == ["export_reports", "submit_data"]


def test_update_role_restores_bindings_when_insert_fails(supabase, roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", description="old", permission_ids=[catalog["view_data"]]))
    supabase.fail("role_permissions", "insert", times=1)

    with pytest.raises(StorageUnavailable):
        roles.update_role(role.id, RoleUpdate(
            name="Renamed", description="new", permission_ids=[catalog["export_reports"]]
        ))

    unchanged = roles.get_role(role.id)
    assert unchanged.name == "Analyst"
    assert unchanged.description == "old"
    assert codes(unchanged) == ["view_data"]


def test_update_role_restores_bindings_when_rename_fails(supabase, roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"]]))
    supabase.fail("roles", "update", times=1)

    with pytest.raises(StorageUnavailable):
        roles.update_role(role.id, RoleUpdate(name="Renamed", permission_ids=[catalog["export_reports"]]))

    unchanged = roles.get_role(role.id)
    assert unchanged.name == "Analyst"
    assert codes(unchanged) == ["view_data"]


def test_update_unknown_role(roles):
    with pytest.raises(NotFoundError):
        roles.update_role(404, RoleUpdate(name="Ghost"))


def test_update_role_rejects_taken_name(roles):
    roles.create_role(RoleCreate(name="Analyst"))
    viewer = roles.create_role(RoleCreate(name="Viewer"))

    with pytest.raises(ValidationError):
        roles.update_role(viewer.id, RoleUpdate(name="Analyst"))


def test_delete_role_removes_bindings(supabase, roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"]]))

    assert roles.delete_role(role.id) is True
    assert supabase.rows("roles") == []
    assert supabase.rows("role_permissions") == []


def test_delete_role_keeps_bindings_when_role_delete_fails(supabase, roles, catalog):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["export_reports"]]))
    supabase.fail("roles", "delete", times=1)

    with pytest.raises(StorageUnavailable):
        roles.delete_role(role.id)

    assert codes(roles.get_role(role.id)) == ["export_reports"]


def test_delete_unknown_role_is_silent(roles):
    assert roles.delete_role(404) is False


def test_delete_role_with_assignments_conflicts(supabase, roles, catalog, make_user, make_institution):
    role = roles.create_role(RoleCreate(name="Analyst", permission_ids=[catalog["view_data"]]))
    user = make_user()
    institution = make_institution()
    ledger = AssignmentService(supabase)
    ledger.assign(user["id"], institution["id"], role.id)

    with pytest.raises(ConflictError):
        roles.delete_role(role.id)
    assert roles.get_role(role.id).name == "Analyst"

    # Deactivated rows are history and still reference the role
    ledger.remove(user["id"], institution["id"])
    with pytest.raises(ConflictError):
        roles.delete_role(role.id)
    assert codes(roles.get_role(role.id)) == ["view_data"]


def test_seed_default_roles_is_idempotent(supabase, roles, catalog):
    first = roles.seed_default_roles()
    second = roles.seed_default_roles()

    assert first.skipped is False
    assert first.created_count == len(DEFAULT_ROLES)
    assert second.skipped is True
    assert len(supabase.rows("roles")) == len(DEFAULT_ROLES)

    by_name = {r.name: codes(r) for r in roles.list_roles_with_permissions()}
    assert by_name["Viewer"] == ["view_dashboard"]
    assert by_name["Data Analyst"] == ["export_reports", "view_dashboard", "view_data"]


def test_seed_default_roles_skips_unresolved_codes(supabase, roles):
    supabase.table("permissions").insert(
        {"code": "view_dashboard", "name": "View Dashboard", "category": "view"}
    ).execute()

    roles.seed_default_roles()

    by_name = {r.name: codes(r) for r in roles.list_roles_with_permissions()}
    assert by_name["Institution Lead"] == ["view_dashboard"]


def test_seed_default_roles_skipped_when_any_role_exists(supabase, roles):
    roles.create_role(RoleCreate(name="Custom"))

    assert roles.seed_default_roles().skipped is True
    assert [r["name"] for r in supabase.rows("roles")] == ["Custom"]


def test_seed_default_roles_rolls_back_on_failure(supabase, roles, catalog):
    supabase.fail("role_permissions", "insert")

    with pytest.raises(StorageUnavailable):
        roles.seed_default_roles()
    supabase.recover()

    assert supabase.rows("roles") == []
    assert roles.seed_default_roles().skipped is False


def test_mutation_storage_failure_surfaces(supabase, roles):
    supabase.fail()

    with pytest.raises(StorageUnavailable):
        roles.create_role(RoleCreate(name="Analyst"))
