from datetime import timedelta

from tests.conftest import register_and_login
from utils import create_access_token, create_refresh_token


class TestRegister:
    def test_register_success(self, client):
        r = client.post(
            "/auth/register",
            json={"name": "Alice", "email": "Alice@Test.com", "password": "Pass123"},
        )
        assert r.status_code == 201
        data = r.json()
        assert data["message"] == "Registrasi berhasil"
        assert data["user"]["email"] == "alice@test.com"
        assert data["user"]["name"] == "Alice"
        assert "password" not in data["user"]

    def test_register_duplicate_email(self, client):
        payload = {"name": "Dup", "email": "dup@test.com", "password": "Pass123"}
        client.post("/auth/register", json=payload)
        r = client.post("/auth/register", json=payload)
        assert r.status_code == 400
        assert r.json()["detail"] == "Email sudah terdaftar"

    def test_register_short_password(self, client):
        r = client.post("/auth/register", json={"name": "Bob", "email": "bob@test.com", "password": "123"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Password minimal 6 karakter"

    def test_register_invalid_email(self, client):
        r = client.post("/auth/register", json={"name": "Bob", "email": "not-an-email", "password": "Pass123"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Format email tidak valid"

    def test_register_missing_name(self, client):
        r = client.post("/auth/register", json={"email": "bob@test.com", "password": "Pass123"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Nama wajib diisi"


class TestLogin:
    def test_login_success(self, client):
        client.post("/auth/register", json={"name": "Bea", "email": "b@test.com", "password": "Pass123"})
        r = client.post("/auth/login", json={"email": "b@test.com", "password": "Pass123"})
        assert r.status_code == 200
        data = r.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"

    def test_login_wrong_password_and_unknown_email_look_the_same(self, client):
        client.post("/auth/register", json={"name": "Cee", "email": "c@test.com", "password": "Correct1"})
        wrong = client.post("/auth/login", json={"email": "c@test.com", "password": "Wrong999"})
        unknown = client.post("/auth/login", json={"email": "nobody@test.com", "password": "Wrong999"})
        assert wrong.status_code == unknown.status_code == 400
        assert wrong.json() == unknown.json()

    def test_protected_endpoint_without_token(self, client):
        r = client.get("/materials")
        assert r.status_code == 401

    def test_protected_endpoint_with_garbage_token(self, client):
        r = client.get("/materials", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401

    def test_expired_access_token_rejected(self, client):
        client.post("/auth/register", json={"name": "Dee", "email": "d@test.com", "password": "Pass123"})
        token = create_access_token(1, "d@test.com", expires_delta=timedelta(minutes=-1))
        r = client.get("/account", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401


class TestRefresh:
    def test_refresh_returns_new_access_token(self, client):
        client.post("/auth/register", json={"name": "Eve", "email": "e@test.com", "password": "Pass123"})
        tokens = client.post("/auth/login", json={"email": "e@test.com", "password": "Pass123"}).json()
        r = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert r.status_code == 200
        new_token = r.json()["access_token"]
        assert client.get("/account", headers={"Authorization": f"Bearer {new_token}"}).status_code == 200

    def test_access_token_is_not_a_refresh_token(self, client):
        client.post("/auth/register", json={"name": "Fay", "email": "f@test.com", "password": "Pass123"})
        tokens = client.post("/auth/login", json={"email": "f@test.com", "password": "Pass123"}).json()
        r = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert r.status_code == 401

    def test_expired_refresh_token(self, client):
        token = create_refresh_token(1, "x@test.com", expires_delta=timedelta(minutes=-1))
        r = client.post("/auth/refresh", json={"refresh_token": token})
        assert r.status_code == 401
        assert r.json()["detail"] == "Refresh token expired"


class TestAccount:
    def test_get_account(self, client, auth_headers):
        r = client.get("/account", headers=auth_headers)
        assert r.status_code == 200
        data = r.json()
        assert data["email"] == "owner@test.com"
        assert data["phone"] == ""
        assert data["password_changed_at"] is None

    def test_update_profile(self, client, auth_headers):
        r = client.put("/account", json={"name": "Budi", "phone": "081234567890"}, headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Profil berhasil diperbarui"
        assert r.json()["user"]["name"] == "Budi"
        assert r.json()["user"]["phone"] == "081234567890"

        r = client.put("/account", json={"phone": ""}, headers=auth_headers)
        assert r.json()["user"]["phone"] == ""

    def test_update_rejects_unknown_fields(self, client, auth_headers):
        r = client.put("/account", json={"name": "Budi", "role": "admin", "is_active": False}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Field tidak dikenal: role, is_active"

    def test_update_rejects_bad_phone(self, client, auth_headers):
        r = client.put("/account", json={"phone": "12345"}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Nomor HP tidak valid"

    def test_update_email_taken(self, client, auth_headers, other_headers):
        r = client.put("/account", json={"email": "other@test.com"}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Email sudah digunakan oleh akun lain"

    def test_change_password(self, client):
        headers = register_and_login(client, "cp@test.com")
        r = client.post(
            "/account/change-password",
            json={"current_password": "Pass123", "new_password": "NewPass1", "confirm_password": "NewPass1"},
            headers=headers,
        )
        assert r.status_code == 200
        assert r.json()["message"] == "Password berhasil diubah"

        assert client.post("/auth/login", json={"email": "cp@test.com", "password": "Pass123"}).status_code == 400
        assert client.post("/auth/login", json={"email": "cp@test.com", "password": "NewPass1"}).status_code == 200
        assert client.get("/account", headers=headers).json()["password_changed_at"] is not None

    def test_change_password_wrong_current(self, client, auth_headers):
        r = client.post(
            "/account/change-password",
            json={"current_password": "nope123", "new_password": "NewPass1", "confirm_password": "NewPass1"},
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Password lama tidak benar"

    def test_change_password_confirmation_mismatch(self, client, auth_headers):
        r = client.post(
            "/account/change-password",
            json={"current_password": "Pass123", "new_password": "NewPass1", "confirm_password": "Other12"},
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Password baru dan konfirmasi tidak cocok"

    def test_change_password_same_as_current(self, client, auth_headers):
        r = client.post(
            "/account/change-password",
            json={"current_password": "Pass123", "new_password": "Pass123", "confirm_password": "Pass123"},
            headers=auth_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Password baru tidak boleh sama dengan password lama"
