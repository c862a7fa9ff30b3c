from conftest import farmer_payload


def _create(client, **overrides):
    return client.post("/api/farmers/create", json=farmer_payload(**overrides))


def test_create_returns_201_without_passcode(client):
    res = _create(client)
    body = res.get_json()

    assert res.status_code == 201
    assert body["success"] is True
    assert body["message"] == "Farmer created successfully"
    assert body["data"]["firebaseUid"] == "uid-001"
    assert "passcode" not in body["data"]
    assert body["data"]["createdAt"].endswith("Z")


def test_create_missing_fields_is_400(client):
    res = client.post("/api/farmers/create", json={"name": "x"})
    body = res.get_json()

    assert res.status_code == 400
    assert body["success"] is False
    assert body["message"].startswith("Missing required fields")


def test_create_with_non_json_body_is_400(client):
    res = client.post("/api/farmers/create", data="not json", content_type="text/plain")
    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_duplicate_create_is_400_conflict(client):
    _create(client)
    res = _create(client, firebaseUid="uid-xyz", aadharNumber="555566667777")

    assert res.status_code == 400
    assert "already exists" in res.get_json()["message"]


def test_get_by_firebase_and_phone(client):
    _create(client)

    by_uid = client.get("/api/farmers/firebase/uid-001")
    by_phone = client.get("/api/farmers/phone/+919876543210")

    assert by_uid.status_code == 200
    assert by_phone.status_code == 200
    assert by_uid.get_json()["data"] == by_phone.get_json()["data"]
    assert client.get("/api/farmers/firebase/missing").status_code == 404
    assert client.get("/api/farmers/phone/000").get_json()["message"] == "Farmer not found"


def test_exists(client):
    assert client.get("/api/farmers/exists/uid-001").get_json()["exists"] is False
    _create(client)
    body = client.get("/api/farmers/exists/uid-001").get_json()
    assert body["exists"] is True
    assert body["data"] == {"exists": True}


def test_login_success(client):
    _create(client)
    res = client.post("/api/farmers/login", json={"phoneNumber": "+919876543210", "passcode": "1234"})

    assert res.status_code == 200
    assert res.get_json()["message"] == "Login successful"
    assert "passcode" not in res.get_json()["data"]


def test_login_failures_are_indistinguishable(client):
    _create(client)
    attempts = [
        {"phoneNumber": "+919876543210", "passcode": "0000"},
        {"phoneNumber": "+910000000000", "passcode": "1234"},
        {"phoneNumber": "+910000000000", "passcode": "0000"},
    ]
    bodies = []
    for creds in attempts:
        res = client.post("/api/farmers/login", json=creds)
        assert res.status_code == 401
        bodies.append(res.get_json())

    assert all(b == {"success": False, "message": "Invalid phone number or passcode"} for b in bodies)


def test_login_missing_fields(client):
    res = client.post("/api/farmers/login", json={"phoneNumber": "+919876543210"})
    assert res.status_code == 400


def test_update_strips_immutable_fields(client):
    _create(client)
    res = client.put(
        "/api/farmers/update/uid-001",
        json={"location": "Satara", "passcode": "9999", "firebaseUid": "hijack", "createdAt": "2000-01-01"},
    )
    body = res.get_json()

    assert res.status_code == 200
    assert body["data"]["location"] == "Satara"
    assert body["data"]["firebaseUid"] == "uid-001"
    login = client.post("/api/farmers/login", json={"phoneNumber": "+919876543210", "passcode": "1234"})
    assert login.status_code == 200


def test_update_unknown_farmer_is_404(client):
    assert client.put("/api/farmers/update/missing", json={"name": "x"}).status_code == 404


def test_update_crops(client):
    fid = _create(client).get_json()["data"]["_id"]

    res = client.put(f"/api/farmers/crops/{fid}", json={"crops": ["Millet"]})
    assert res.status_code == 200
    assert res.get_json()["data"]["cropsGrown"] == ["Millet"]

    assert client.put(f"/api/farmers/crops/{fid}", json={"crops": "Millet"}).status_code == 400
    assert client.put("/api/farmers/crops/0123456789abcdef01234567", json={"crops": []}).status_code == 404


def test_delete(client):
    _create(client)

    assert client.delete("/api/farmers/delete/uid-001").status_code == 200
    res = client.delete("/api/farmers/delete/uid-001")
    assert res.status_code == 404
    assert res.get_json() == {"success": False, "message": "Farmer not found"}


def test_all_with_pagination(client):
    for i in range(3):
        _create(client, firebaseUid=f"u{i}", phoneNumber=f"+91000000000{i}", aadharNumber=f"00000000000{i}")

    body = client.get("/api/farmers/all?limit=2&skip=0").get_json()
    assert body["pagination"] == {"limit": 2, "skip": 0, "count": 2}
    assert all("passcode" not in f for f in body["data"])

    body = client.get("/api/farmers/all?limit=abc").get_json()
    assert body["pagination"]["limit"] == 50
    assert body["pagination"]["count"] == 3


def test_stats(client):
    _create(client, cropsGrown=["Rice", "Wheat"], location="A")
    _create(client, firebaseUid="u2", phoneNumber="+910000000002", aadharNumber="000000000002", cropsGrown=["Rice"], location="B")

    data = client.get("/api/farmers/stats").get_json()["data"]
    assert data == {"totalFarmers": 2, "farmersByCrop": {"Rice": 2, "Wheat": 1}, "farmersByLocation": {"A": 1, "B": 1}}


def test_farmer_routes_need_no_token(client):
    assert client.get("/api/farmers/stats").status_code == 200


def test_non_object_json_body_is_400(client):
    for path in ("/api/farmers/create", "/api/farmers/login"):
        for body in ([1, 2], "uid-001", 7):
            res = client.post(path, json=body)
            assert res.status_code == 400
            assert res.get_json() == {"success": False, "message": "Request body must be a JSON object"}

    fid = _create(client).get_json()["data"]["_id"]
    assert client.put(f"/api/farmers/crops/{fid}", json=["Rice"]).status_code == 400
    assert client.put("/api/farmers/update/uid-001", json=["x"]).status_code == 400
