import pytest
from datetime import datetime, timedelta

from app.core.config import settings
from app.core.security import create_access_token, create_refresh_token
from app.models.user import User
from tests.conftest import TEST_PASSWORD, auth_headers

# Test data
test_user_data = {
    "name": "Test User",
    "email": "test@example.com",
    "password": "TestPassword123",
    "role": "patient",
}

test_login_data = {
    "email": "test@example.com",
    "password": "TestPassword123"
}

def login(client, data=test_login_data):
    return client.post("/api/auth/login", json=data)

class TestAuthentication:

    def test_register_user(self, client):
        """Test user registration."""
        response = client.post("/api/auth/register", json=test_user_data)
        assert response.status_code == 201

        body = response.json()
        assert body["success"] is True
        assert body["data"]["email"] == test_user_data["email"]
        assert body["data"]["role"] == test_user_data["role"]
        assert "password" not in body["data"]
        assert "passwordHash" not in body["data"]

    def test_register_defaults_to_patient(self, client):
        data = {k: v for k, v in test_user_data.items() if k != "role"}
        response = client.post("/api/auth/register", json=data)
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "patient"

    def test_register_role_outside_allowed_list(self, client, monkeypatch):
        monkeypatch.setattr(settings, "SELF_REGISTER_ROLES", ["patient"])

        response = client.post("/api/auth/register", json={**test_user_data, "role": "admin"})
        assert response.status_code == 403
        assert response.json()["message"] == "Role 'admin' cannot be chosen at registration"

        response = client.post("/api/auth/register", json=test_user_data)
        assert response.status_code == 201

    def test_register_duplicate_email(self, client):
        """Test registration with duplicate email."""
        client.post("/api/auth/register", json=test_user_data)

        response = client.post("/api/auth/register", json=test_user_data)
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "User already exists with this email",
        }

    def test_register_invalid_password(self, client):
        """Test registration with invalid password."""
        invalid_data = test_user_data.copy()
        invalid_data["password"] = "weakpassword"

        response = client.post("/api/auth/register", json=invalid_data)
        assert response.status_code == 400

        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert [e["field"] for e in body["errors"]] == ["password"]

    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/auth/register", json=test_user_data)

        response = login(client)
        assert response.status_code == 200

        data = response.json()["data"]
        assert "accessToken" in data
        assert "refreshToken" in data
        assert data["tokenType"] == "bearer"
        assert data["user"]["email"] == test_user_data["email"]
        assert data["user"]["lastLogin"] is not None

    def test_login_invalid_credentials(self, client):
        """Test login with invalid credentials."""
        response = login(client, {"email": "nonexistent@example.com", "password": "wrongpassword"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_login_wrong_password(self, client):
        """Test login with wrong password."""
        client.post("/api/auth/register", json=test_user_data)

        response = login(client, {**test_login_data, "password": "wrongpassword"})
        assert response.status_code == 401

    def test_account_locked_after_repeated_failures(self, client):
        client.post("/api/auth/register", json=test_user_data)
        wrong = {**test_login_data, "password": "wrongpassword"}

        for _ in range(settings.MAX_FAILED_LOGIN_ATTEMPTS):
            assert login(client, wrong).status_code == 401

        # Even the right password is refused while locked
        assert login(client).status_code == 423

    def test_expired_lock_starts_a_fresh_count(self, client, db):
        client.post("/api/auth/register", json=test_user_data)
        wrong = {**test_login_data, "password": "wrongpassword"}
        for _ in range(settings.MAX_FAILED_LOGIN_ATTEMPTS):
            login(client, wrong)

        user = db.query(User).filter(User.email == test_user_data["email"]).first()
        assert user.locked_until is not None
        user.locked_until = datetime.utcnow() - timedelta(minutes=1)
        db.commit()

        # One mistake after the lock has expired does not lock the account again
        assert login(client, wrong).status_code == 401
        assert login(client).status_code == 200

        db.expire_all()
        user = db.query(User).filter(User.email == test_user_data["email"]).first()
        assert user.locked_until is None
        assert user.failed_login_attempts == 0

    def test_login_deactivated_user(self, client, make_user):
        make_user("Gone User", email="gone@example.com", is_active=False)

        response = login(client, {"email": "gone@example.com", "password": TEST_PASSWORD})
        assert response.status_code == 401
        assert response.json()["message"] == "User account is deactivated"

    def test_login_rate_limited(self, client, redis_mock):
        redis_mock.get.return_value = str(settings.RATE_LIMIT_REQUESTS)

        response = login(client)
        assert response.status_code == 429
        assert response.json()["success"] is False

    def test_get_current_user(self, client):
        """Test getting current user info."""
        client.post("/api/auth/register", json=test_user_data)
        token = login(client).json()["data"]["accessToken"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["data"]["email"] == test_user_data["email"]

    def test_get_current_user_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authorized to access this route"}

    def test_get_current_user_invalid_token(self, client):
        """Test get current user with invalid token."""
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer invalid_token"})
        assert response.status_code == 401

    def test_expired_token_rejected(self, client, make_user):
        user = make_user("Late User")
        token = create_access_token(
            {"sub": str(user.id), "email": user.email, "role": user.role.value},
            expires_delta=timedelta(seconds=-1),
        )

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_refresh_token_not_accepted_as_access_token(self, client, make_user):
        user = make_user("Mixed Up")
        token = create_refresh_token({"sub": str(user.id)})

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_deactivated_user_token_rejected(self, client, make_user, db):
        user = make_user("Soon Gone")
        headers = auth_headers(user)
        user.is_active = False
        db.commit()

        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "User account is deactivated"

    def test_refresh_token(self, client):
        """Test token refresh."""
        client.post("/api/auth/register", json=test_user_data)
        refresh_token = login(client).json()["data"]["refreshToken"]

        response = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
        assert response.status_code == 200

        data = response.json()["data"]
        assert "accessToken" in data
        assert data["refreshToken"] != refresh_token

        # The old refresh token is rotated out
        response = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
        assert response.status_code == 401

    def test_refresh_invalid_token(self, client):
        """Test refresh with invalid token."""
        response = client.post("/api/auth/refresh", json={"refreshToken": "invalid_token"})
        assert response.status_code == 401

    def test_logout(self, client):
        """Test user logout."""
        client.post("/api/auth/register", json=test_user_data)
        refresh_token = login(client).json()["data"]["refreshToken"]

        response = client.post("/api/auth/logout", json={"refreshToken": refresh_token})
        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"

        response = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
        assert response.status_code == 401

    def test_change_password(self, client):
        """Test password change."""
        client.post("/api/auth/register", json=test_user_data)
        token = login(client).json()["data"]["accessToken"]

        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "TestPassword123", "newPassword": "NewPassword123"},
            headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200

        assert login(client).status_code == 401
        assert login(client, {**test_login_data, "password": "NewPassword123"}).status_code == 200

    def test_change_password_wrong_current(self, client):
        """Test password change with wrong current password."""
        client.post("/api/auth/register", json=test_user_data)
        token = login(client).json()["data"]["accessToken"]

        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "WrongPassword", "newPassword": "NewPassword123"},
            headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect"

class TestUsers:

    def test_admin_lists_users_by_role(self, client, people):
        response = client.get("/api/users?role=doctor", headers=auth_headers(people["a"]))
        assert response.status_code == 200

        body = response.json()
        assert body["count"] == 2
        assert {u["role"] for u in body["data"]} == {"doctor"}

    @pytest.mark.parametrize("role", ["p", "d"])
    def test_non_admin_cannot_list_users(self, client, people, role):
        response = client.get("/api/users", headers=auth_headers(people[role]))
        assert response.status_code == 403

    def test_doctor_directory_hides_inactive_doctors(self, client, people, db):
        people["e"].is_active = False
        db.commit()

        response = client.get("/api/users/doctors", headers=auth_headers(people["p"]))
        assert response.status_code == 200
        assert [d["id"] for d in response.json()["data"]] == [people["d"].id]

    def test_admin_deactivates_user(self, client, people):
        response = client.patch(
            f"/api/users/{people['q'].id}/status",
            json={"isActive": False},
            headers=auth_headers(people["a"]),
        )
        assert response.status_code == 200
        assert response.json()["data"]["isActive"] is False

        response = client.get("/api/auth/me", headers=auth_headers(people["q"]))
        assert response.status_code == 401

    def test_status_update_unknown_user(self, client, people):
        response = client.patch(
            "/api/users/9999/status", json={"isActive": False}, headers=auth_headers(people["a"])
        )
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

class TestHealthCheck:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json()["success"] is False
