"""
Auth API — register, login, refresh, me, profile.
"""


def test_register_returns_tokens(client):
    resp = client.post("/api/auth/register", json={
        "email": "  Ana@Constructora.DO ",
        "password": "strongpassword123",
        "preferred_locale": "en-US",
    })
    data = resp.json()

    assert resp.status_code == 200
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["user"]["email"] == "ana@constructora.do"
    assert data["user"]["preferred_locale"] == "en"
    assert "password_hash" not in data["user"]


def test_duplicate_email_is_409(client, auth_headers):
    resp = client.post("/api/auth/register", json={"email": "ANA@constructora.do", "password": "x"})
    assert resp.status_code == 409


def test_login(client, auth_headers):
    ok = client.post("/api/auth/login", json={"email": "ana@constructora.do", "password": "strongpassword123"})
    assert ok.status_code == 200
    assert ok.json()["user"]["full_name"] == "Ana Pérez"

    bad = client.post("/api/auth/login", json={"email": "ana@constructora.do", "password": "wrong"})
    assert bad.status_code == 401


def test_refresh(client):
    reg = client.post("/api/auth/register", json={"email": "luis@obra.do", "password": "otherpass456"}).json()

    resp = client.post("/api/auth/refresh", json={"refresh_token": reg["refresh_token"]})
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    wrong_type = client.post("/api/auth/refresh", json={"refresh_token": reg["access_token"]})
    assert wrong_type.status_code == 401


def test_me_requires_valid_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_update_profile(client, auth_headers):
    resp = client.put("/api/auth/profile", json={"phone": "809-555-0101", "preferred_locale": "EN"},
                      headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["phone"] == "809-555-0101"
    assert resp.json()["preferred_locale"] == "en"
    assert resp.json()["full_name"] == "Ana Pérez"
