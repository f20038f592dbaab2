"""
Identity Tests
==============

Registration, login, token refresh, staff bootstrap and role changes.
"""

from sqlalchemy import select

from citypulse.models.user import Profile, UserRole


async def login(client, email, password="secret123"):
    return await client.post("/api/auth/login", data={"username": email, "password": password})


# =============================================================================
# Register / login
# =============================================================================

class TestRegisterAndLogin:
    async def test_register_creates_citizen(self, client):
        resp = await client.post(
            "/api/auth/register",
            json={"email": "New@Example.com", "password": "secret123", "full_name": "New Person", "phone": "  "},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "new@example.com"
        assert body["role"] == "citizen"
        assert body["phone"] is None

    async def test_duplicate_email_rejected(self, client, citizen):
        resp = await client.post("/api/auth/register", json={"email": citizen.email, "password": "secret123"})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Email already registered"}

    async def test_register_missing_password(self, client):
        resp = await client.post("/api/auth/register", json={"email": "x@example.com"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required field(s): password"

    async def test_login_and_me(self, client, citizen):
        resp = await login(client, citizen.email)
        assert resp.status_code == 200
        tokens = resp.json()
        assert tokens["token_type"] == "bearer"

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == str(citizen.id)

    async def test_bad_password(self, client, citizen):
        resp = await login(client, citizen.email, "wrong-password")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    async def test_inactive_profile_forbidden(self, client, make_profile):
        profile = await make_profile("gone@example.com", is_active=False)
        resp = await login(client, profile.email)
        assert resp.status_code == 403

    async def test_me_without_token(self, client):
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    async def test_garbage_token(self, client):
        resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestRefreshTokens:
    async def test_refresh_rotates_token(self, client, citizen):
        tokens = (await login(client, citizen.email)).json()
        resp = await client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200
        assert resp.json()["refresh_token"] != tokens["refresh_token"]

        reused = await client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert reused.status_code == 401

    async def test_logout_revokes(self, client, citizen):
        tokens = (await login(client, citizen.email)).json()
        resp = await client.post("/api/auth/logout", json={"refresh_token": tokens["refresh_token"]})
        assert resp.json() == {"success": True}
        again = await client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 401


# =============================================================================
# Staff bootstrap
# =============================================================================

BOOTSTRAP = {
    "adminEmail": "admin@city.gov",
    "adminPassword": "adminpass",
    "moderatorEmail": "mod@city.gov",
    "moderatorPassword": "modpass1",
}


class TestStaffBootstrap:
    async def test_creates_both_accounts(self, client):
        resp = await client.post(
            "/api/auth/bootstrap-staff", json=BOOTSTRAP, headers={"X-Admin-Key": "test-admin-key"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["admin"]["role"] == "admin"
        assert body["admin"]["full_name"] == "System Administrator"
        assert body["moderator"]["role"] == "moderator"
        assert body["moderator"]["full_name"] == "Municipal Authority"

        login_resp = await login(client, "mod@city.gov", "modpass1")
        assert login_resp.status_code == 200

    async def test_upgrades_existing_citizen(self, client, make_profile, session_factory):
        existing = await make_profile("admin@city.gov")
        resp = await client.post(
            "/api/auth/bootstrap-staff", json=BOOTSTRAP, headers={"X-Admin-Key": "test-admin-key"}
        )
        assert resp.status_code == 200
        async with session_factory() as session:
            profile = (await session.execute(select(Profile).where(Profile.id == existing.id))).scalar_one()
            assert profile.role == UserRole.admin

    async def test_wrong_key(self, client):
        resp = await client.post("/api/auth/bootstrap-staff", json=BOOTSTRAP, headers={"X-Admin-Key": "nope"})
        assert resp.status_code == 403

    async def test_missing_field(self, client):
        payload = {k: v for k, v in BOOTSTRAP.items() if k != "moderatorPassword"}
        resp = await client.post(
            "/api/auth/bootstrap-staff", json=payload, headers={"X-Admin-Key": "test-admin-key"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required field(s): moderatorPassword"


# =============================================================================
# Role changes
# =============================================================================

class TestRoleUpdate:
    async def test_admin_promotes_citizen(self, client, auth_headers, admin, citizen):
        resp = await client.patch(
            f"/api/admin/profiles/{citizen.id}/role", json={"role": "moderator"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        assert resp.json()["profile"]["role"] == "moderator"

    async def test_citizen_forbidden(self, client, auth_headers, citizen):
        resp = await client.patch(
            f"/api/admin/profiles/{citizen.id}/role", json={"role": "admin"}, headers=auth_headers(citizen)
        )
        assert resp.status_code == 403

    async def test_moderator_forbidden(self, client, auth_headers, moderator, citizen):
        resp = await client.patch(
            f"/api/admin/profiles/{citizen.id}/role", json={"role": "moderator"}, headers=auth_headers(moderator)
        )
        assert resp.status_code == 403

    async def test_unknown_role_is_validation_error(self, client, auth_headers, admin, citizen):
        resp = await client.patch(
            f"/api/admin/profiles/{citizen.id}/role", json={"role": "mayor"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 400
