from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from praise_admin.apps.admin_api.app import create_app
from praise_admin.apps.admin_api.auth import create_access_token, decode_access_token
from praise_admin.session.context import SessionRegistry


def _auth_header(uid: str = "u1", email: str = "alice@example.org") -> dict:
    token = create_access_token({"sub": uid, "email": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registry(kv_store, zone_table, memberships, page_queries, profile_source):
    memberships.add_zone("u1", "zone-1", "member")
    memberships.add_zone("u1", "zone-2", "coordinator")
    page_queries.add_page("zone-1", "p1", "Easter Praise Night", songs=["s1", "s2"])
    page_queries.add_page("zone-2", "p9", "Youth Praise Night", songs=["s9"])
    profile_source.profiles["u1"] = {"id": "u1", "first_name": "Alice"}
    return SessionRegistry(
        store=kv_store,
        zone_table=zone_table,
        memberships=memberships,
        pages=page_queries,
        profiles=profile_source,
    )


@pytest.fixture
def client(kv_store, zone_table, registry):
    app = create_app(store=kv_store, zone_table=zone_table, registry=registry)
    with TestClient(app) as test_client:
        yield test_client


def test_token_roundtrip() -> None:
    token = create_access_token({"sub": "u1", "email": "alice@example.org"})
    user = decode_access_token(token)

    assert user.uid == "u1"
    assert user.email == "alice@example.org"


def test_expired_token_is_rejected() -> None:
    token = create_access_token({"sub": "u1"}, expires_delta=timedelta(seconds=-5))
    with pytest.raises(ValueError):
        decode_access_token(token)


def test_token_without_subject_is_rejected() -> None:
    with pytest.raises(ValueError):
        decode_access_token(create_access_token({"email": "alice@example.org"}))


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": "Basic dXNlcjpwYXNz"},
        {"Authorization": "Bearer "},
    ],
)
def test_session_routes_require_bearer_token(client, headers) -> None:
    response = client.get("/session/zone", headers=headers)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["zones"] == 3
    assert payload["sessions"] == 0
    assert payload["kv_store"]["backend"] == "InMemoryKeyValueStore"


def test_profile(client) -> None:
    response = client.get("/session/profile", headers=_auth_header())

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["first_name"] == "Alice"
    assert body["error"] is None
    assert body["loading"] is False


def test_profile_failure_is_reported_in_body(client, profile_source) -> None:
    profile_source.fail = ConnectionError("profiles unavailable")

    body = client.get("/session/profile", headers=_auth_header()).json()

    assert body["data"] is None
    assert body["error"] == "Failed to load profile"
    assert body["retryable"] is True


def test_zone_state(client) -> None:
    body = client.get("/session/zone", headers=_auth_header()).json()

    data = body["data"]
    assert data["phase"] == "resolved"
    assert data["current_zone"]["id"] == "zone-1"
    assert [zone["id"] for zone in data["user_zones"]] == ["zone-1", "zone-2"]
    assert data["role"] == "zone_member"
    assert data["role_label"] == "Zone Member"
    assert data["no_zone_access"] is False


def test_super_admin_sees_every_zone(client) -> None:
    headers = _auth_header(uid="boss", email="boss@example.org")

    data = client.get("/session/zone", headers=headers).json()["data"]

    assert data["is_super_admin"] is True
    assert data["role"] == "super_admin"
    assert len(data["user_zones"]) == 3


def test_switch_zone(client) -> None:
    headers = _auth_header()

    body = client.post("/session/zone/switch", json={"zone_id": "zone-2"}, headers=headers).json()

    assert body["data"]["switched"] is True
    assert body["data"]["zone"]["current_zone"]["id"] == "zone-2"
    assert body["data"]["zone"]["role"] == "zone_coordinator"
    pages = client.get("/admin/pages", headers=headers).json()
    assert [page["id"] for page in pages["data"]] == ["p9"]


def test_switch_to_inaccessible_zone_is_not_an_http_error(client) -> None:
    response = client.post("/session/zone/switch", json={"zone_id": "hq-1"}, headers=_auth_header())

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["switched"] is False
    assert body["data"]["zone"]["current_zone"]["id"] == "zone-1"


def test_switch_requires_zone_id(client) -> None:
    response = client.post("/session/zone/switch", json={"zone_id": "  "}, headers=_auth_header())
    assert response.status_code == 422


def test_refresh_zones_picks_up_new_membership(client, memberships) -> None:
    headers = _auth_header()
    client.get("/session/zone", headers=headers)
    memberships.add_hq("u1", "hq-1")

    body = client.post("/session/zone/refresh", headers=headers).json()

    assert [zone["id"] for zone in body["data"]["user_zones"]] == ["zone-1", "zone-2", "hq-1"]


def test_pages_and_songs(client, page_queries) -> None:
    headers = _auth_header()

    pages = client.get("/admin/pages", headers=headers).json()
    assert [page["id"] for page in pages["data"]] == ["p1"]
    assert pages["data"][0]["song_count"] == 2
    assert pages["data"][0]["countdown"] == {"days": 0, "hours": 0, "minutes": 0, "seconds": 0}

    page = client.get("/admin/pages/p1", headers=headers).json()
    assert page["data"]["name"] == "Easter Praise Night"

    songs = client.get("/admin/pages/p1/songs", headers=headers).json()
    assert [song["id"] for song in songs["data"]] == ["s1", "s2"]
    client.get("/admin/pages/p1/songs", params={"force_refresh": "true"}, headers=headers)
    assert len(page_queries.song_calls) == 2


def test_pages_for_inaccessible_zone(client, page_queries) -> None:
    body = client.get("/admin/pages", params={"zone_id": "hq-1"}, headers=_auth_header()).json()

    assert body["data"] == []
    assert "not accessible" in body["error"]
    assert page_queries.page_calls == []


def test_unknown_page_is_404(client) -> None:
    response = client.get("/admin/pages/missing", headers=_auth_header())
    assert response.status_code == 404


def test_refresh_admin_data(client, page_queries) -> None:
    headers = _auth_header()
    client.get("/admin/pages", headers=headers)

    assert client.post("/admin/refresh", headers=headers).status_code == 200
    client.get("/admin/pages", headers=headers)

    assert page_queries.page_calls == ["zone-1", "zone-1"]


def test_logout_ends_the_session(client, registry, kv_store) -> None:
    headers = _auth_header()
    client.get("/session/profile", headers=headers)
    client.post("/session/zone/switch", json={"zone_id": "zone-2"}, headers=headers)
    assert "u1" in registry

    response = client.post("/session/logout", headers=headers)

    assert response.status_code == 200
    assert "u1" not in registry
    assert kv_store.keys() == ["zone-pref:u1"]
    assert client.get("/health").json()["sessions"] == 0
