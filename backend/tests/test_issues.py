"""
Issue Write Path Tests
======================

Reporting, voting, commenting and photo uploads through the JSON API, plus
the all-or-nothing behaviour of paired writes when the store fails.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from citypulse.models.issue import Issue, IssueComment, IssueVote

NEW_ISSUE = {
    "title": "Broken streetlight",
    "description": "Lamp post 14 has been dark for a week",
    "category": "street_lighting",
    "latitude": 12.9716,
    "longitude": 77.5946,
    "address": "MG Road",
    "ward": "Ward 7",
}


async def vote_rows(session_factory, issue_id) -> int:
    async with session_factory() as session:
        stmt = select(func.count(IssueVote.id)).where(IssueVote.issue_id == issue_id)
        return (await session.execute(stmt)).scalar_one()


async def stored_issue(session_factory, issue_id) -> Issue:
    async with session_factory() as session:
        return await session.get(Issue, issue_id)


# =============================================================================
# Create / read
# =============================================================================

class TestCreateIssue:
    async def test_created_unresolved_with_zero_votes(self, client, auth_headers, citizen):
        resp = await client.post("/api/issues", json=NEW_ISSUE, headers=auth_headers(citizen))
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        issue = body["issue"]
        assert issue["status"] == "unresolved"
        assert issue["upvotes"] == 0
        assert issue["resolved_at"] is None
        assert issue["user_id"] == str(citizen.id)

    async def test_client_cannot_choose_status(self, client, auth_headers, citizen):
        resp = await client.post(
            "/api/issues", json={**NEW_ISSUE, "status": "resolved"}, headers=auth_headers(citizen)
        )
        assert resp.status_code == 201
        assert resp.json()["issue"]["status"] == "unresolved"

    async def test_requires_session(self, client):
        resp = await client.post("/api/issues", json=NEW_ISSUE)
        assert resp.status_code == 401

    async def test_missing_fields(self, client, auth_headers, citizen):
        payload = {k: v for k, v in NEW_ISSUE.items() if k not in ("title", "latitude")}
        resp = await client.post("/api/issues", json=payload, headers=auth_headers(citizen))
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Missing required field(s): title, latitude"}

    async def test_unknown_category_rejected(self, client, auth_headers, citizen):
        resp = await client.post(
            "/api/issues", json={**NEW_ISSUE, "category": "alien_invasion"}, headers=auth_headers(citizen)
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid request")

    async def test_blank_ward_stored_as_null(self, client, auth_headers, citizen):
        resp = await client.post("/api/issues", json={**NEW_ISSUE, "ward": "  "}, headers=auth_headers(citizen))
        assert resp.json()["issue"]["ward"] is None


class TestReadIssues:
    async def test_list_filters(self, client, citizen, make_issue):
        await make_issue(citizen, title="Drain blocked", category="drainage", ward="Ward 2")
        await make_issue(citizen, title="Pothole", ward="Ward 1")

        resp = await client.get("/api/issues", params={"category": "drainage"})
        assert [i["title"] for i in resp.json()] == ["Drain blocked"]

        resp = await client.get("/api/issues", params={"ward": "Ward 1"})
        assert [i["title"] for i in resp.json()] == ["Pothole"]

        resp = await client.get("/api/issues", params={"search": "drain"})
        assert len(resp.json()) == 1

    async def test_list_includes_reporter(self, client, citizen, make_issue):
        await make_issue(citizen)
        (issue,) = (await client.get("/api/issues")).json()
        assert issue["reporter"]["email"] == citizen.email

    async def test_mine_needs_session(self, client):
        resp = await client.get("/api/issues", params={"mine": "true"})
        assert resp.status_code == 401

    async def test_unknown_issue_is_404(self, client):
        resp = await client.get("/api/issues/00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Issue not found"}


# =============================================================================
# Votes
# =============================================================================

class TestVotes:
    async def test_toggle_round_trip(self, client, auth_headers, citizen, make_issue, session_factory):
        issue = await make_issue(citizen)
        headers = auth_headers(citizen)

        first = await client.post(f"/api/issues/{issue.id}/vote", headers=headers)
        assert first.status_code == 200
        assert first.json() == {"success": True, "issue_id": str(issue.id), "has_voted": True, "upvotes": 1}
        assert await vote_rows(session_factory, issue.id) == 1

        second = await client.post(f"/api/issues/{issue.id}/vote", headers=headers)
        assert second.json()["has_voted"] is False
        assert second.json()["upvotes"] == 0
        assert await vote_rows(session_factory, issue.id) == 0

    async def test_counter_matches_rows_across_voters(
        self, client, auth_headers, citizen, make_profile, make_issue, session_factory
    ):
        issue = await make_issue(citizen)
        other = await make_profile("neighbour@example.com")
        await client.post(f"/api/issues/{issue.id}/vote", headers=auth_headers(citizen))
        await client.post(f"/api/issues/{issue.id}/vote", headers=auth_headers(other))

        assert (await stored_issue(session_factory, issue.id)).upvotes == 2
        assert await vote_rows(session_factory, issue.id) == 2

    async def test_counter_never_negative(self, client, auth_headers, citizen, make_issue, session_factory):
        issue = await make_issue(citizen)
        async with session_factory() as session:
            session.add(IssueVote(issue_id=issue.id, user_id=citizen.id))
            await session.commit()

        resp = await client.post(f"/api/issues/{issue.id}/vote", headers=auth_headers(citizen))
        assert resp.json() == {"success": True, "issue_id": str(issue.id), "has_voted": False, "upvotes": 0}

    async def test_vote_on_missing_issue(self, client, auth_headers, citizen):
        resp = await client.post("/api/issues/00000000-0000-0000-0000-000000000000/vote", headers=auth_headers(citizen))
        assert resp.status_code == 404


# =============================================================================
# Comments
# =============================================================================

class TestComments:
    async def test_post_and_list(self, client, auth_headers, citizen, make_issue):
        issue = await make_issue(citizen)
        resp = await client.post(
            f"/api/issues/{issue.id}/comments", json={"content": "  Still broken  "}, headers=auth_headers(citizen)
        )
        assert resp.status_code == 201
        comment = resp.json()["comment"]
        assert comment["content"] == "Still broken"
        assert comment["author"]["email"] == citizen.email

        listed = (await client.get(f"/api/issues/{issue.id}/comments")).json()
        assert [c["content"] for c in listed] == ["Still broken"]

    async def test_blank_comment_rejected(self, client, auth_headers, citizen, make_issue, session_factory):
        issue = await make_issue(citizen)
        resp = await client.post(
            f"/api/issues/{issue.id}/comments", json={"content": "   "}, headers=auth_headers(citizen)
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        async with session_factory() as session:
            count = (await session.execute(select(func.count(IssueComment.id)))).scalar_one()
        assert count == 0

    async def test_missing_content(self, client, auth_headers, citizen, make_issue):
        issue = await make_issue(citizen)
        resp = await client.post(f"/api/issues/{issue.id}/comments", json={}, headers=auth_headers(citizen))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required field(s): content"


# =============================================================================
# Photos
# =============================================================================

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestPhotos:
    async def test_reporter_uploads_before_photo(self, client, auth_headers, citizen, make_issue):
        issue = await make_issue(citizen)
        resp = await client.post(
            f"/api/issues/{issue.id}/photos/before",
            files={"file": ("before.png", PNG, "image/png")},
            headers=auth_headers(citizen),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["kind"] == "before"
        assert "/storage/issues/" in body["url"]
        assert body["issue"]["before_photo_url"] == body["url"]

    async def test_citizen_cannot_upload_after_photo(self, client, auth_headers, citizen, make_issue):
        issue = await make_issue(citizen)
        resp = await client.post(
            f"/api/issues/{issue.id}/photos/after",
            files={"file": ("after.png", PNG, "image/png")},
            headers=auth_headers(citizen),
        )
        assert resp.status_code == 403

    async def test_staff_uploads_after_photo(self, client, auth_headers, citizen, moderator, make_issue):
        issue = await make_issue(citizen)
        resp = await client.post(
            f"/api/issues/{issue.id}/photos/after",
            files={"file": ("after.png", PNG, "image/png")},
            headers=auth_headers(moderator),
        )
        assert resp.status_code == 200
        assert resp.json()["issue"]["after_photo_url"]

    async def test_other_citizen_cannot_attach(self, client, auth_headers, citizen, make_profile, make_issue):
        issue = await make_issue(citizen)
        stranger = await make_profile("stranger@example.com")
        resp = await client.post(
            f"/api/issues/{issue.id}/photos/photo",
            files={"file": ("x.png", PNG, "image/png")},
            headers=auth_headers(stranger),
        )
        assert resp.status_code == 403

    async def test_non_image_rejected(self, client, auth_headers, citizen, make_issue):
        issue = await make_issue(citizen)
        resp = await client.post(
            f"/api/issues/{issue.id}/photos/photo",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(citizen),
        )
        assert resp.status_code == 400


# =============================================================================
# Store failures
# =============================================================================

@pytest.fixture
def failing_commit(monkeypatch):
    async def _fail(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    def _install():
        monkeypatch.setattr(AsyncSession, "commit", _fail)

    return _install


class TestStoreFailures:
    async def test_vote_failure_leaves_no_partial_state(
        self, client, auth_headers, citizen, make_issue, session_factory, failing_commit
    ):
        issue = await make_issue(citizen)
        failing_commit()

        resp = await client.post(f"/api/issues/{issue.id}/vote", headers=auth_headers(citizen))
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Failed to record vote"}

        assert await vote_rows(session_factory, issue.id) == 0
        assert (await stored_issue(session_factory, issue.id)).upvotes == 0

    async def test_create_failure(self, client, auth_headers, citizen, failing_commit):
        failing_commit()
        resp = await client.post("/api/issues", json=NEW_ISSUE, headers=auth_headers(citizen))
        assert resp.status_code == 500
        assert resp.json()["success"] is False
