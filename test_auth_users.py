import time

from conftest import API, register


def current_user(client, header):
    return client.get(f"{API}/auth/me", headers=header).json()["data"]["user"]


# Root test
def test_root_response(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["app_name"] == "Mini ERP Catalog API"
    assert response.json()["api_root"] == API

# Health test
def test_health_response(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["services"]["database"] == "online"

def test_unknown_route_uses_envelope(client):
    response = client.get(f"{API}/nowhere")
    assert response.status_code == 404
    assert response.json()["success"] is False


# Register, login, me, refresh
def test_register_login_and_me(client):
    response = client.post(f"{API}/auth/register", json={
        "name": "Jane Doe", "email": "Jane@Example.com", "password": "admin@3150",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "jane@example.com"
    assert body["data"]["user"]["role"] == "staff"
    assert "password" not in body["data"]["user"]
    assert "hashedPassword" not in body["data"]["user"]

    duplicate = client.post(f"{API}/auth/register", json={
        "name": "Jane Again", "email": "jane@example.com", "password": "admin@3150",
    })
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "User already exists with this email"

    login = client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "admin@3150"})
    assert login.status_code == 200
    header = {"Authorization": f"Bearer {login.json()['data']['token']}"}

    me = client.get(f"{API}/auth/me", headers=header)
    assert me.status_code == 200
    assert me.json()["data"]["user"]["name"] == "Jane Doe"

    refreshed = client.post(f"{API}/auth/refresh", headers=header)
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["token"]

def test_login_with_wrong_password(client, staff_header):
    response = client.post(f"{API}/auth/login", json={"email": "staff@erp.com", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid email or password"}

def test_register_validation_collects_every_error(client):
    response = client.post(f"{API}/auth/register", json={"email": "not-an-email", "password": "123"})
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation error"
    assert "name: Field required" in body["errors"]
    assert "email: Please enter a valid email" in body["errors"]
    assert "password: Password must be at least 6 characters long" in body["errors"]

def test_long_malformed_email_is_rejected_quickly(client):
    for email in ("a" * 5000 + "!", "a@" + "b" * 5000 + "!", "a" * 28 + "!"):
        started = time.perf_counter()
        response = client.post(f"{API}/auth/register", json={
            "name": "Slow Poke", "email": email, "password": "password123",
        })
        assert time.perf_counter() - started < 1.0
        assert response.status_code == 400
        assert "email: Please enter a valid email" in response.json()["errors"]

def test_missing_and_invalid_tokens_are_rejected(client):
    assert client.get(f"{API}/auth/me").status_code == 401
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token is not valid"

def test_token_for_deleted_user_is_rejected(client, admin_header):
    doomed = register(client, "Temp User", "temp@erp.com")
    doomed_id = current_user(client, doomed)["id"]
    assert client.delete(f"{API}/users/{doomed_id}", headers=admin_header).status_code == 200
    assert client.get(f"{API}/auth/me", headers=doomed).status_code == 401


# Users
def test_user_listing_is_admin_only(client, admin_header, staff_header):
    assert client.get(f"{API}/users", headers=staff_header).status_code == 403

    response = client.get(f"{API}/users?role=staff", headers=admin_header)
    assert response.status_code == 200
    assert [u["email"] for u in response.json()["data"]] == ["staff@erp.com"]
    assert response.json()["pagination"]["totalItems"] == 1

def test_admin_creates_user(client, admin_header, staff_header):
    payload = {"name": "New Hire", "email": "hire@erp.com", "password": "password123"}
    assert client.post(f"{API}/users", json=payload, headers=staff_header).status_code == 403

    response = client.post(f"{API}/users", json=payload, headers=admin_header)
    assert response.status_code == 201
    assert response.json()["data"]["user"]["role"] == "staff"

    again = client.post(f"{API}/users", json=payload, headers=admin_header)
    assert again.status_code == 400

def test_profile_and_read_user(client, staff_header):
    profile = client.get(f"{API}/users/profile", headers=staff_header)
    assert profile.status_code == 200
    user_id = profile.json()["data"]["user"]["id"]

    response = client.get(f"{API}/users/{user_id}", headers=staff_header)
    assert response.json()["data"]["user"]["email"] == "staff@erp.com"
    assert client.get(f"{API}/users/abc", headers=staff_header).status_code == 400
    assert client.get(f"{API}/users/9999", headers=staff_header).status_code == 404

def test_staff_updates_only_own_profile_and_cannot_promote(client, admin_header, staff_header):
    staff = current_user(client, staff_header)
    admin = current_user(client, admin_header)

    response = client.put(f"{API}/users/{staff['id']}", json={"name": "Samuel", "role": "admin"}, headers=staff_header)
    assert response.status_code == 200
    assert response.json()["data"]["user"]["name"] == "Samuel"
    assert response.json()["data"]["user"]["role"] == "staff"

    forbidden = client.put(f"{API}/users/{admin['id']}", json={"name": "Hacked"}, headers=staff_header)
    assert forbidden.status_code == 403

    promoted = client.put(f"{API}/users/{staff['id']}", json={"role": "admin"}, headers=admin_header)
    assert promoted.json()["data"]["user"]["role"] == "admin"

def test_update_user_email_must_stay_unique(client, admin_header, staff_header):
    staff = current_user(client, staff_header)
    response = client.put(f"{API}/users/{staff['id']}", json={"email": "admin@erp.com"}, headers=staff_header)
    assert response.status_code == 400
    assert response.json()["message"] == "Email already exists"

def test_password_change_allows_new_login(client, staff_header):
    staff = current_user(client, staff_header)
    client.put(f"{API}/users/{staff['id']}", json={"password": "brand-new-pass"}, headers=staff_header)
    login = client.post(f"{API}/auth/login", json={"email": "staff@erp.com", "password": "brand-new-pass"})
    assert login.status_code == 200

def test_user_cannot_delete_own_account(client, admin_header, staff_header):
    admin = current_user(client, admin_header)
    response = client.delete(f"{API}/users/{admin['id']}", headers=admin_header)
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own account"

    staff = current_user(client, staff_header)
    assert client.delete(f"{API}/users/{staff['id']}", headers=staff_header).status_code == 403
    deleted = client.delete(f"{API}/users/{staff['id']}", headers=admin_header)
    assert deleted.status_code == 200
    assert deleted.json()["data"]["deletedUserId"] == staff["id"]
