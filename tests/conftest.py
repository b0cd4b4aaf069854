import pytest
from fastapi.testclient import TestClient

from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.main import app
from dashboard_api.modules.roles.service import PermissionService
from tests.fake_supabase import FakeSupabase


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def client(supabase):
    app.dependency_overrides[get_supabase] = lambda: supabase
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(supabase):
    """Seeded permission catalog as {code: id}"""
    PermissionService(supabase).seed_permissions()
    return {p["code"]: p["id"] for p in supabase.rows("permissions")}


@pytest.fixture
def make_user(supabase):
    def _make_user(global_role="standard", is_active=True, user_id=None, external_id=None):
        row = {
            "external_id": external_id or f"ext-{len(supabase.rows('user_profiles')) + 1}",
            "email": None,
            "full_name": None,
            "global_role": global_role,
            "is_active": is_active,
        }
        if user_id is not None:
            row["id"] = user_id
        created = supabase.table("user_profiles").insert(row).execute().data[0]
        return created
    return _make_user


@pytest.fixture
def make_institution(supabase):
    def _make_institution(name="Longview", institution_id=None, status="Active"):
        row = {
            "code": name.upper().replace(" ", "-"),
            "name": name,
            "category": "Campus",
            "owner": "Office of Institutional Research",
            "status": status,
        }
        if institution_id is not None:
            row["id"] = institution_id
        return supabase.table("institutions").insert(row).execute().data[0]
    return _make_institution


@pytest.fixture
def auth_headers(supabase):
    def _auth_headers(user):
        token = supabase.auth.issue_token(user["external_id"])
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
