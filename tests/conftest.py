import pytest
from fastapi.testclient import TestClient

from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.auth.service import clear_auth_cache
from tests.fakes import FakeSupabase

API = "/api/v1"


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def client(db: FakeSupabase):
    app.dependency_overrides[get_supabase] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: FakeSupabase):
    """Create a registered account and return its auth headers plus profile id."""
    def _make(email: str = "host@example.com", username: str = None, super_user: bool = False):
        app_metadata = {"type": "super_user"} if super_user else {}
        user_id, token = db.auth.add_user(email, app_metadata=app_metadata)
        db.seed(
            "profiles",
            id=user_id,
            email=email,
            username=username or email.split("@")[0],
            display_name=username or email.split("@")[0],
            is_guest=False,
        )
        return {"id": user_id, "headers": {"Authorization": f"Bearer {token}"}}
    return _make


@pytest.fixture
def make_guest(client: TestClient):
    """Start a guest session through the API and return its headers plus profile id."""
    def _make(username: str = None):
        body = {"username": username} if username else {}
        response = client.post(f"{API}/auth/guest", json=body)
        assert response.status_code == 201, response.text
        guest_id = response.json()["guest_id"]
        return {"id": guest_id, "headers": {"X-Guest-Id": guest_id}}
    return _make


@pytest.fixture
def host(make_user):
    return make_user("host@example.com", username="host")


@pytest.fixture
def room(client: TestClient, host):
    response = client.post(
        f"{API}/rooms",
        json={"name": "Morning Coffee", "topics": ["Music", "music", " Tech "]},
        headers=host["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def join(client: TestClient):
    def _join(room_id: str, who: dict):
        response = client.post(f"{API}/rooms/{room_id}/join", headers=who["headers"])
        assert response.status_code == 200, response.text
        return response.json()
    return _join
