import json

from conftest import API, HOME_SCHEMA


def test_get_screen_returns_document(client):
    res = client.get(f"{API}/ui", params={"screen": "home"})

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"] == HOME_SCHEMA
    assert body["version"] == "v1"
    assert body["cached_at"]


def test_get_screen_for_explicit_version(client):
    res = client.get(f"{API}/ui", params={"screen": "home", "version": "v2"})
    assert res.json()["data"] == {"screen": "home", "rev": 2}


def test_missing_screen_parameter(client):
    res = client.get(f"{API}/ui")

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Screen parameter is required",
                          "code": "MISSING_PARAMETER"}


def test_unknown_and_malformed_screens_look_identical(client):
    missing = client.get(f"{API}/ui", params={"screen": "checkout"})
    broken = client.get(f"{API}/ui", params={"screen": "broken"})

    assert missing.status_code == broken.status_code == 404
    assert missing.json() == broken.json() == {
        "success": False, "error": "Schema not found", "code": "SCHEMA_NOT_FOUND"
    }


def test_traversal_is_rejected(client):
    for params in ({"screen": "../v2/home"}, {"screen": "home", "version": "../v2"},
                   {"screen": "home\x00"}, {"screen": "a:b"}):
        res = client.get(f"{API}/ui", params=params)
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_PARAMETER"


def test_cached_schema_served_until_cleared(client, admin_headers, schema_dir):
    first = client.get(f"{API}/ui", params={"screen": "search"}).json()
    (schema_dir / "v1" / "search.json").write_text(json.dumps({"screen": "search", "rev": 2}),
                                                   encoding="utf-8")

    assert client.get(f"{API}/ui", params={"screen": "search"}).json()["data"] == first["data"]

    res = client.post(f"{API}/admin/cache/clear", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert res.json()["message"] == "Cache cleared"

    refreshed = client.get(f"{API}/ui", params={"screen": "search"}).json()
    assert refreshed["data"] == {"screen": "search", "rev": 2}


def test_cache_clear_requires_admin(client):
    res = client.post(f"{API}/admin/cache/clear")
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_version_info_lists_screens(client, settings):
    body = client.get(f"{API}/ui/version").json()

    assert body["success"] is True
    assert body["app_version"] == settings.app_version
    assert body["min_version"] == settings.min_app_version
    assert body["force_update"] is settings.force_update
    assert body["available_screens"] == ["broken", "home", "search"]


def test_version_info_for_unknown_version_is_empty(client):
    res = client.get(f"{API}/ui/version", params={"version": "v9"})

    assert res.status_code == 200
    assert res.json()["available_screens"] == []


def test_list_screens(client):
    assert client.get(f"{API}/ui/screens", params={"version": "v2"}).json()["screens"] == ["home"]
    assert client.get(f"{API}/ui/screens", params={"version": "v9"}).status_code == 404


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["checks"]["database"] is True
    assert body["schema_versions"] == ["v1", "v2"]
    assert set(body["cache"]) == {"entries", "hits", "misses"}
