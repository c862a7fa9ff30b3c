import pytest

from conftest import farmer_payload


def _make_farmer(client, **overrides):
    return client.post("/api/farmers/create", json=farmer_payload(**overrides)).get_json()["data"]


def test_init_master_is_idempotent(client):
    first = client.post("/api/admin/init-master")
    second = client.post("/api/admin/init-master")

    assert first.status_code == 200
    assert first.get_json()["data"] == {"username": "master", "role": "master"}
    assert second.get_json()["data"] == first.get_json()["data"]


def test_custom_master_requires_setup_secret(client):
    res = client.post("/api/admin/init-master/custom", json={"setupSecret": "nope", "username": "boss", "password": "pw-123456"})
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "message": "Unauthorized setup"}


def test_custom_master_created_with_valid_secret(client):
    res = client.post(
        "/api/admin/init-master/custom",
        json={"setupSecret": "let-me-in", "username": "boss", "password": "pw-123456"},
    )
    assert res.status_code == 200
    assert res.get_json()["data"]["username"] == "boss"

    login = client.post("/api/admin/login", json={"username": "boss", "password": "pw-123456"})
    assert login.status_code == 200
    assert login.get_json()["data"]["role"] == "master"


def test_custom_master_missing_credentials(client):
    res = client.post("/api/admin/init-master/custom", json={"setupSecret": "let-me-in", "username": "boss"})
    assert res.status_code == 400


def test_custom_master_fails_closed_without_server_secret(app, client):
    app.config["SETUP_SECRET"] = None
    res = client.post("/api/admin/init-master/custom", json={"setupSecret": "", "username": "boss", "password": "pw-123456"})
    assert res.status_code == 401


def test_init_db(client):
    res = client.post("/api/admin/init-db", json={"createMaster": True})
    data = res.get_json()["data"]

    assert res.status_code == 200
    assert data["database"] == "harvestchain_test"
    assert set(data["ensuredIndexes"]) == {"admins", "farmers"}
    assert data["masterInitialized"] is True


def test_login_returns_token_and_profile(client):
    client.post("/api/admin/init-master")
    res = client.post("/api/admin/login", json={"username": "master", "password": "admin123"})
    data = res.get_json()["data"]

    assert res.status_code == 200
    assert data["username"] == "master"
    assert data["role"] == "master"
    assert data["lastLogin"] is not None
    assert data["token"].count(".") == 2
    assert "password" not in data


def test_login_bad_credentials(client):
    client.post("/api/admin/init-master")
    wrong_pw = client.post("/api/admin/login", json={"username": "master", "password": "nope"})
    no_user = client.post("/api/admin/login", json={"username": "ghost", "password": "admin123"})

    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.get_json() == no_user.get_json() == {"success": False, "message": "Invalid username or password"}


def test_login_missing_fields(client):
    assert client.post("/api/admin/login", json={"username": "master"}).status_code == 400


def test_list_and_get_farmers(client, auth_headers):
    farmer = _make_farmer(client)

    listing = client.get("/api/admin/farmers", headers=auth_headers).get_json()
    assert listing["pagination"] == {"limit": 50, "skip": 0, "total": 1, "pages": 1}
    assert listing["data"][0]["_id"] == farmer["_id"]
    assert "passcode" not in listing["data"][0]

    single = client.get(f"/api/admin/farmers/{farmer['_id']}", headers=auth_headers)
    assert single.status_code == 200
    assert "passcode" not in single.get_json()["data"]
    assert client.get("/api/admin/farmers/0123456789abcdef01234567", headers=auth_headers).status_code == 404


def test_update_farmer_strips_sensitive_fields(client, auth_headers):
    farmer = _make_farmer(client)
    res = client.put(
        f"/api/admin/farmers/{farmer['_id']}",
        json={"name": "Renamed", "passcode": "0000", "firebaseUid": "x", "_id": "y"},
        headers=auth_headers,
    )

    assert res.status_code == 200
    assert res.get_json()["data"]["name"] == "Renamed"
    assert res.get_json()["data"]["firebaseUid"] == "uid-001"
    assert client.post("/api/farmers/login", json={"phoneNumber": "+919876543210", "passcode": "1234"}).status_code == 200


def test_delete_farmer(client, auth_headers):
    farmer = _make_farmer(client)

    assert client.delete(f"/api/admin/farmers/{farmer['_id']}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/admin/farmers/{farmer['_id']}", headers=auth_headers).status_code == 404
    assert client.delete("/api/admin/farmers/not-an-id", headers=auth_headers).status_code == 404


def test_admin_stats(client, auth_headers):
    _make_farmer(client)
    data = client.get("/api/admin/stats", headers=auth_headers).get_json()["data"]

    assert data["totalFarmers"] == 1
    assert data["totalAdmins"] == 1
    assert data["recentFarmers"] == 1
    assert data["farmersByCrop"] == {"Rice": 1, "Wheat": 1}


def test_credentials_rotation(client, auth_headers):
    res = client.put(
        "/api/admin/credentials",
        json={"username": "chief", "currentPassword": "admin123", "newPassword": "better-pass"},
        headers=auth_headers,
    )
    assert res.status_code == 200
    assert res.get_json()["data"]["username"] == "chief"

    assert client.post("/api/admin/login", json={"username": "chief", "password": "better-pass"}).status_code == 200


@pytest.mark.parametrize(
    "body, message",
    [
        ({"newPassword": "better-pass"}, "Current password is required to change password"),
        ({"newPassword": "better-pass", "currentPassword": "wrong"}, "Current password is incorrect"),
        ({}, "Username or new password is required"),
    ],
)
def test_credentials_rejections_keep_password(client, auth_headers, body, message):
    res = client.put("/api/admin/credentials", json=body, headers=auth_headers)

    assert res.status_code == 400
    assert res.get_json()["message"] == message
    assert client.post("/api/admin/login", json={"username": "master", "password": "admin123"}).status_code == 200


def test_credentials_for_another_admin_is_refused(client, auth_headers):
    res = client.put(
        "/api/admin/credentials",
        json={"adminId": "0123456789abcdef01234567", "username": "someone"},
        headers=auth_headers,
    )
    assert res.status_code == 401


@pytest.mark.parametrize("path", ["/api/admin/login", "/api/admin/init-master/custom", "/api/admin/init-db"])
def test_non_object_json_body_is_400(client, path):
    res = client.post(path, json=[1, 2])
    assert res.status_code == 400
    assert res.get_json() == {"success": False, "message": "Request body must be a JSON object"}


@pytest.mark.parametrize("secret", [12345, ["let-me-in"], {"s": "let-me-in"}, True])
def test_custom_master_non_string_secret_is_401(client, secret):
    res = client.post(
        "/api/admin/init-master/custom",
        json={"setupSecret": secret, "username": "boss", "password": "pw-123456"},
    )
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "message": "Unauthorized setup"}
