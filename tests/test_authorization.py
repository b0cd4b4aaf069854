import pytest

from dashboard_api.modules.assignments.service import AssignmentService
from dashboard_api.modules.rbac.service import AuthorizationService
from dashboard_api.modules.roles.schemas import RoleCreate
from dashboard_api.modules.roles.service import RoleService


@pytest.fixture
def authz(supabase):
    return AuthorizationService(supabase)


@pytest.fixture
def analyst_role(supabase, catalog):
    return RoleService(supabase).create_role(
        RoleCreate(name="Analyst", permission_ids=[catalog["export_reports"]])
    )


def test_administrator_bypasses_assignments(authz, make_user, make_institution):
    admin = make_user(global_role="administrator")
    institution = make_institution()

    assert authz.has_permission(admin["id"], "manage_users")
    assert authz.has_permission(admin["id"], "not_in_catalog")
    assert authz.can_access_institution(admin["id"], institution["id"])
    assert authz.can_access_institution(admin["id"], 9999)


def test_standard_user_without_assignment_is_denied(authz, make_user, make_institution):
    user = make_user()
    institution = make_institution()

    assert not authz.can_access_institution(user["id"], institution["id"])
    assert not authz.has_permission(user["id"], "view_dashboard")


def test_permission_resolves_through_assignment_role(supabase, authz, make_user, make_institution, analyst_role):
    user = make_user(user_id=7)
    institution = make_institution(institution_id=3)
    AssignmentService(supabase).assign(user["id"], institution["id"], analyst_role.id)

    assert authz.has_permission(7, "export_reports")
    assert not authz.has_permission(7, "manage_users")
    assert authz.get_user_permissions(7) == {"export_reports"}


def test_permissions_are_union_across_assignments(supabase, authz, catalog, make_user, make_institution):
    roles = RoleService(supabase)
    viewer = roles.create_role(RoleCreate(name="Viewer", permission_ids=[catalog["view_dashboard"]]))
    submitter = roles.create_role(RoleCreate(name="Submitter", permission_ids=[catalog["submit_data"]]))
    user = make_user()
    ledger = AssignmentService(supabase)
    ledger.assign(user["id"], make_institution("Longview")["id"], viewer.id)
    ledger.assign(user["id"], make_institution("Penn Valley")["id"], submitter.id)

    assert authz.get_user_permissions(user["id"]) == {"view_dashboard", "submit_data"}


def test_removed_assignment_no_longer_grants(supabase, authz, make_user, make_institution, analyst_role):
    user = make_user()
    institution = make_institution()
    ledger = AssignmentService(supabase)
    ledger.assign(user["id"], institution["id"], analyst_role.id)
    ledger.remove(user["id"], institution["id"])

    assert not authz.has_permission(user["id"], "export_reports")
    assert not authz.can_access_institution(user["id"], institution["id"])


def test_user_without_assignments(authz, make_user, make_institution):
    make_user(user_id=9)
    make_institution(institution_id=1)

    assert authz.get_user_institutions(9) == []
    assert authz.get_user_role_for_institution(9, 1) is None


def test_unknown_user_fails_closed(authz):
    assert not authz.has_permission(404, "view_dashboard")
    assert not authz.can_access_institution(404, 1)
    assert authz.get_user_institutions(404) == []
    assert authz.get_user_role_for_institution(404, 1) is None
    assert authz.get_user_permissions(404) == set()


def test_deactivated_administrator_is_denied(authz, make_user, make_institution):
    admin = make_user(global_role="administrator", is_active=False)
    institution = make_institution()

    assert not authz.has_permission(admin["id"], "view_dashboard")
    assert not authz.can_access_institution(admin["id"], institution["id"])


def test_administrator_sees_all_institutions(authz, make_user, make_institution):
    admin = make_user(global_role="administrator")
    make_institution("Penn Valley")
    make_institution("Blue River")

    names = [i.name for i in authz.get_user_institutions(admin["id"])]
    assert names == ["Blue River", "Penn Valley"]


def test_user_institutions_are_distinct(supabase, authz, make_user, make_institution, analyst_role):
    user = make_user()
    institution = make_institution()
    make_institution("Maple Woods")
    # Two active rows for one pair, written around the ledger
    table = supabase.tables.setdefault("user_institution_assignments", [])
    for row_id in (1, 2):
        table.append({"id": row_id, "user_id": user["id"], "institution_id": institution["id"],
                      "role_id": analyst_role.id, "is_active": True,
                      "created_at": f"2025-02-0{row_id}T00:00:00+00:00"})

    result = authz.get_user_institutions(user["id"])
    assert [i.id for i in result] == [institution["id"]]


def test_assignment_to_missing_institution_is_denied(supabase, authz, make_user, analyst_role):
    user = make_user()
    supabase.table("user_institution_assignments").insert({
        "user_id": user["id"], "institution_id": 77, "role_id": analyst_role.id, "is_active": True
    }).execute()

    assert not authz.can_access_institution(user["id"], 77)


def test_most_recent_active_row_wins(supabase, authz, catalog, make_user, make_institution):
    roles = RoleService(supabase)
    first = roles.create_role(RoleCreate(name="First"))
    second = roles.create_role(RoleCreate(name="Second"))
    user = make_user()
    institution = make_institution()
    table = supabase.tables.setdefault("user_institution_assignments", [])
    table.append({"id": 1, "user_id": user["id"], "institution_id": institution["id"], "role_id": first.id,
                  "is_active": True, "created_at": "2025-02-01T00:00:00+00:00"})
    table.append({"id": 2, "user_id": user["id"], "institution_id": institution["id"], "role_id": second.id,
                  "is_active": True, "created_at": "2025-03-01T00:00:00+00:00"})

    role = authz.get_user_role_for_institution(user["id"], institution["id"])
    assert role.name == "Second"


def test_storage_failure_fails_closed(supabase, authz, make_user, make_institution, analyst_role):
    admin = make_user(global_role="administrator")
    user = make_user()
    institution = make_institution()
    AssignmentService(supabase).assign(user["id"], institution["id"], analyst_role.id)
    supabase.fail()

    assert authz.has_permission(admin["id"], "view_dashboard") is False
    assert authz.has_permission(user["id"], "export_reports") is False
    assert authz.can_access_institution(user["id"], institution["id"]) is False
    assert authz.get_user_institutions(admin["id"]) == []
    assert authz.get_user_role_for_institution(user["id"], institution["id"]) is None
    assert authz.get_user_permissions(user["id"]) == set()


def test_partial_storage_failure_fails_closed(supabase, authz, make_user, make_institution, analyst_role):
    user = make_user()
    institution = make_institution()
    AssignmentService(supabase).assign(user["id"], institution["id"], analyst_role.id)
    supabase.fail("role_permissions", "select")

    assert authz.has_permission(user["id"], "export_reports") is False
