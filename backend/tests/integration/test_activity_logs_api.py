"""Integration tests for the activity log query endpoint"""

import pytest

from docreview.audit.service import ActivityEntry, ActivityLogger, ActivityType, TargetType
from docreview.auth.roles import Role
from docreview.database import SessionLocal
from docreview.domain.applications import Actor


pytestmark = pytest.mark.integration

LOGS = "/api/v1/activity-logs"


@pytest.fixture
def record_entries(db_session):
    """Write ``count`` entries for an actor: record_entries(actor, action_type, count)."""
    activity_logger = ActivityLogger(SessionLocal)

    def _record(actor, action_type=ActivityType.APPLICATION_REVIEWED, count=1):
        for i in range(count):
            result = activity_logger.record(ActivityEntry(
                actor=actor,
                action_type=action_type,
                target_type=TargetType.APPLICATION,
                target_id=f"app-{i}",
                details=f"Entry {i}",
            ))
            assert result.ok

    return _record


@pytest.fixture
def alice():
    return Actor("alice-id", Role.JUNIOR_REVIEWER, "Alice", "alice@test.com")


@pytest.fixture
def bob():
    return Actor("bob-id", Role.COMPLIANCE_OFFICER, "Bob", "bob@test.com")


class TestAccess:
    @pytest.mark.parametrize("user_fixture", ["compliance_officer", "junior_reviewer", "applicant"])
    def test_only_admin(self, request, as_user, user_fixture):
        user = request.getfixturevalue(user_fixture)
        assert as_user(user).get(LOGS).status_code == 403

    def test_unauthenticated(self, client):
        assert client.get(LOGS).status_code == 401

    def test_read_only(self, as_user, admin_user):
        assert as_user(admin_user).post(LOGS, json={}).status_code == 405
        assert as_user(admin_user).delete(LOGS).status_code == 405


class TestQuery:
    def test_most_recent_first(self, as_user, admin_user, record_entries, alice):
        record_entries(alice, count=3)

        body = as_user(admin_user).get(LOGS).json()

        assert body["count"] == 3
        assert body["limit"] == 200
        assert [e["details"] for e in body["entries"]] == ["Entry 2", "Entry 1", "Entry 0"]
        assert body["entries"][0]["actor_name"] == "Alice"
        assert body["entries"][0]["actor_role"] == "junior_reviewer"

    def test_filter_by_actor(self, as_user, admin_user, record_entries, alice, bob):
        record_entries(alice, count=2)
        record_entries(bob, ActivityType.APPLICATION_APPROVED)

        body = as_user(admin_user).get(LOGS, params={"actor_id": "bob-id"}).json()

        assert [e["actor_id"] for e in body["entries"]] == ["bob-id"]

    def test_filter_by_action_type(self, as_user, admin_user, record_entries, alice, bob):
        record_entries(alice, count=2)
        record_entries(bob, ActivityType.APPLICATION_APPROVED)

        body = as_user(admin_user).get(LOGS, params={"action_type": "application_approved"}).json()

        assert body["count"] == 1
        assert body["entries"][0]["action_type"] == "application_approved"

    def test_actor_filter_wins_over_action_type(self, as_user, admin_user, record_entries, alice, bob):
        record_entries(alice, count=2)
        record_entries(bob, ActivityType.APPLICATION_APPROVED)

        body = as_user(admin_user).get(
            LOGS, params={"actor_id": "alice-id", "action_type": "application_approved"}
        ).json()

        assert body["count"] == 2
        assert {e["actor_id"] for e in body["entries"]} == {"alice-id"}

    def test_unknown_action_type(self, as_user, admin_user):
        assert as_user(admin_user).get(LOGS, params={"action_type": "coffee_break"}).status_code == 400

    def test_limit(self, as_user, admin_user, record_entries, alice):
        record_entries(alice, count=5)

        body = as_user(admin_user).get(LOGS, params={"limit": 2}).json()

        assert body["count"] == 2
        assert body["limit"] == 2

    def test_limit_is_capped(self, as_user, admin_user):
        body = as_user(admin_user).get(LOGS, params={"limit": 10_000}).json()
        assert body["limit"] == 500

    def test_non_positive_limit(self, as_user, admin_user):
        assert as_user(admin_user).get(LOGS, params={"limit": 0}).status_code == 422


class TestReviewActivity:
    def test_review_flow_shows_up(self, as_user, admin_user, junior_reviewer, compliance_officer, submitted_application):
        url = f"/api/v1/applications/{submitted_application.id}/review"
        as_user(junior_reviewer).post(url, json={"action": "approve"})
        as_user(compliance_officer).post(url, json={"action": "approve", "comment": "Verified"})

        body = as_user(admin_user).get(LOGS).json()

        assert [e["action_type"] for e in body["entries"]] == [
            "document_signed",
            "application_approved",
            "application_reviewed",
        ]
        approved = body["entries"][1]
        assert approved["actor_name"] == "Bob"
        assert approved["target_id"] == submitted_application.id
        assert approved["metadata"]["comment"] == "Verified"
        assert approved["metadata"]["new_status"] == "approved"
