"""
Profile Tests
=============
"""

from citypulse.models.user import Profile


class TestProfile:
    async def test_read_own_profile(self, client, auth_headers, citizen):
        resp = await client.get("/api/profile", headers=auth_headers(citizen))
        assert resp.status_code == 200
        assert resp.json()["email"] == citizen.email

    async def test_update_name_and_phone(self, client, auth_headers, citizen, session_factory):
        resp = await client.patch(
            "/api/profile",
            json={"full_name": "  Asha Rao ", "phone": "+91 98450 00000"},
            headers=auth_headers(citizen),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["profile"]["full_name"] == "Asha Rao"
        assert body["profile"]["phone"] == "+91 98450 00000"

        async with session_factory() as session:
            stored = await session.get(Profile, citizen.id)
        assert stored.full_name == "Asha Rao"

    async def test_blank_phone_cleared(self, client, auth_headers, make_profile):
        profile = await make_profile("phone@example.com", phone="12345")
        resp = await client.patch(
            "/api/profile", json={"full_name": "Phone Owner", "phone": "   "}, headers=auth_headers(profile)
        )
        assert resp.json()["profile"]["phone"] is None

    async def test_role_cannot_be_self_assigned(self, client, auth_headers, citizen):
        resp = await client.patch(
            "/api/profile", json={"full_name": "Sneaky", "role": "admin"}, headers=auth_headers(citizen)
        )
        assert resp.status_code == 200
        assert resp.json()["profile"]["role"] == "citizen"

    async def test_missing_full_name(self, client, auth_headers, citizen):
        resp = await client.patch("/api/profile", json={"phone": "1"}, headers=auth_headers(citizen))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required field(s): full_name"

    async def test_requires_session(self, client):
        resp = await client.patch("/api/profile", json={"full_name": "Nobody"})
        assert resp.status_code == 401
