"""Tests for the verification engine (approve / reject).

Covers:
- Approval side effects: verified flag, points, attendance, notification
- Idempotency: a second approve changes nothing
- Reward is read from the event at approval time
- Rejection deletes the log and its image, notifies the owner
- Permissions: admins and the system principal only
"""
import pytest

from ecotrack.config import settings
from ecotrack.exceptions import AlreadyVerified, EventNotFound, NotFound, PermissionDenied
from ecotrack.models.notification import Notification
from ecotrack.models.participant import EventParticipant
from ecotrack.models.recycling_log import RecyclingLog
from ecotrack.models.user import User
from ecotrack.services.verification_service import approve_log, reject_log
from tests.conftest import (
    approve_in_between,
    as_user,
    create_test_event,
    create_test_user,
    register_for_event,
    setup_campus,
    submit,
    submit_ok,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _points(db, user_id: int) -> int:
    return db.query(User.eco_points).filter(User.id == user_id).scalar()


class TestApprove:
    """Admin approval through the API."""

    def test_approve_awards_event_reward(self, client, db):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight="5.0", event_id=event["id"])

        resp = client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["eco_points_awarded"] == 20
        assert body["participant_marked_attended"] is True
        assert body["log"]["verified"] is True
        assert body["log"]["verified_by"] == admin["id"]
        assert body["log"]["verified_by_name"] == admin["name"]
        assert body["log"]["eco_points_earned"] == 20
        assert body["log"]["verified_at"] is not None

        assert _points(db, student["id"]) == 20
        participant = db.query(EventParticipant).filter(
            EventParticipant.event_id == event["id"],
            EventParticipant.user_id == student["id"],
        ).one()
        assert participant.attended is True
        notes = db.query(Notification).filter(Notification.user_id == student["id"]).all()
        assert len(notes) == 1
        assert notes[0].title == "Recycling Log Approved"
        assert "20 eco-points" in notes[0].message

    def test_second_approve_is_already_verified(self, client, db):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight="5.0", event_id=event["id"])
        client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))

        resp = client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))
        assert resp.status_code == 400
        assert resp.json()["detail"]["error"] == "already_verified"
        assert _points(db, student["id"]) == 20
        assert db.query(Notification).filter(Notification.user_id == student["id"]).count() == 1

    def test_reward_read_at_approval_time(self, client, db):
        admin, organizer, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])

        resp = client.put(f"/api/events/{event['id']}", json={"eco_points_reward": 35},
                          headers=as_user(organizer))
        assert resp.status_code == 200

        body = client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin)).json()
        assert body["eco_points_awarded"] == 35
        assert _points(db, student["id"]) == 35

    def test_free_standing_log_cannot_be_approved(self, client, db):
        admin = create_test_user(client, name="Ada", role="admin")
        student = create_test_user(client, name="Sam")
        log = submit_ok(client, student, category="paper", weight=2)

        resp = client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))
        assert resp.status_code == 404
        assert resp.json()["detail"]["error"] == "event_not_found"
        assert db.query(RecyclingLog.verified).filter(RecyclingLog.id == log["id"]).scalar() is False

    def test_deleted_event_leaves_log_pending(self, client, db):
        admin, organizer, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        assert client.delete(f"/api/events/{event['id']}", headers=as_user(organizer)).status_code == 200

        resp = client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))
        assert resp.status_code == 404
        assert db.query(RecyclingLog.verified).filter(RecyclingLog.id == log["id"]).scalar() is False
        assert _points(db, student["id"]) == 0

    def test_unknown_log(self, client):
        admin = create_test_user(client, name="Ada", role="admin")
        resp = client.patch("/api/recycling/999/approve", headers=as_user(admin))
        assert resp.status_code == 404
        assert resp.json()["detail"]["error"] == "not_found"

    def test_non_admin_forbidden(self, client, db):
        _, organizer, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        for caller in (student, organizer):
            resp = client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(caller))
            assert resp.status_code == 403
        assert _points(db, student["id"]) == 0

    def test_points_accumulate_across_events(self, client, db):
        admin, organizer, student, event = setup_campus(client)
        second = create_test_event(client, organizer, title="Beach Sweep", reward=15)
        register_for_event(client, student, second)

        for ev in (event, second):
            log = submit_ok(client, student, category="plastic", weight=5, event_id=ev["id"])
            client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))
        assert _points(db, student["id"]) == 35


class TestApproveService:
    """Direct calls into the engine, as the scheduler makes them."""

    def test_system_principal_may_approve(self, client, db):
        _, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])

        result = approve_log(db, log["id"], settings.SYSTEM_USER_ID)
        assert result.points_awarded == 20
        assert result.log.verified_by == settings.SYSTEM_USER_ID
        note = db.query(Notification).filter(Notification.user_id == student["id"]).one()
        assert "automatically approved" in note.message

    def test_regular_user_may_not_approve(self, client, db):
        _, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        with pytest.raises(PermissionDenied):
            approve_log(db, log["id"], student["id"])

    def test_raises_typed_errors(self, client, db):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        with pytest.raises(NotFound):
            approve_log(db, 12345, admin["id"])
        approve_log(db, log["id"], admin["id"])
        with pytest.raises(AlreadyVerified):
            approve_log(db, log["id"], admin["id"])

    def test_missing_event_raises(self, client, db):
        admin = create_test_user(client, name="Ada", role="admin")
        student = create_test_user(client, name="Sam")
        log = submit_ok(client, student, category="paper", weight=2)
        with pytest.raises(EventNotFound):
            approve_log(db, log["id"], admin["id"])


class TestReject:
    """Rejection deletes the log."""

    def test_reject_deletes_and_notifies(self, client, db):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])

        resp = client.patch(f"/api/recycling/{log['id']}/reject", json={"reason": "Blurry photo"},
                            headers=as_user(admin))
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["reason"] == "Blurry photo"
        assert body["deleted_log"] == {"id": log["id"], "category": "plastic", "weight": 5.0}

        assert db.query(RecyclingLog).filter(RecyclingLog.id == log["id"]).first() is None
        note = db.query(Notification).filter(Notification.user_id == student["id"]).one()
        assert note.title == "Recycling Log Rejected"
        assert note.message == "Blurry photo"
        assert _points(db, student["id"]) == 0

    def test_reject_without_reason(self, client, db):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="glass", weight=2, event_id=event["id"])

        body = client.patch(f"/api/recycling/{log['id']}/reject", headers=as_user(admin)).json()
        assert body["reason"] == "No reason provided"
        note = db.query(Notification).filter(Notification.user_id == student["id"]).one()
        assert "(glass, 2.0kg) has been rejected" in note.message

    def test_reject_removes_image(self, client, upload_dir):
        admin = create_test_user(client, name="Ada", role="admin")
        student = create_test_user(client, name="Sam")
        resp = submit(client, student, category="glass", weight=1,
                      files={"image": ("jars.png", PNG, "image/png")})
        log = resp.json()["log"]
        assert len(list((upload_dir / "recycling").iterdir())) == 1

        client.patch(f"/api/recycling/{log['id']}/reject", headers=as_user(admin))
        assert list((upload_dir / "recycling").iterdir()) == []

    def test_reject_verified_log_refused(self, client, db):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        client.patch(f"/api/recycling/{log['id']}/approve", headers=as_user(admin))

        resp = client.patch(f"/api/recycling/{log['id']}/reject", headers=as_user(admin))
        assert resp.status_code == 400
        assert resp.json()["detail"]["error"] == "already_verified"
        assert db.query(RecyclingLog).filter(RecyclingLog.id == log["id"]).count() == 1

    def test_reject_free_standing_log(self, client, db):
        admin = create_test_user(client, name="Ada", role="admin")
        student = create_test_user(client, name="Sam")
        log = submit_ok(client, student, category="paper", weight=2)
        result = reject_log(db, log["id"], None, admin["id"])
        assert result.deleted_log.id == log["id"]
        assert db.query(RecyclingLog).count() == 0


class TestAdminListings:
    """Admin views over all logs."""

    def test_pending_and_filters(self, client):
        admin, _, student, event = setup_campus(client)
        approved = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        submit_ok(client, student, category="paper", weight=2)
        client.patch(f"/api/recycling/{approved['id']}/approve", headers=as_user(admin))

        pending = client.get("/api/recycling/pending", headers=as_user(admin)).json()
        assert [log["category"] for log in pending] == ["paper"]

        done = client.get("/api/recycling/", params={"status": "approved"}, headers=as_user(admin)).json()
        assert [log["id"] for log in done] == [approved["id"]]

        paper = client.get("/api/recycling/", params={"category": "paper"}, headers=as_user(admin)).json()
        assert len(paper) == 1

    def test_listing_requires_admin(self, client):
        student = create_test_user(client, name="Sam")
        assert client.get("/api/recycling/pending", headers=as_user(student)).status_code == 403


class TestConcurrentVerification:
    """A second verifier commits between the pending check and the write."""

    def test_losing_approval_raises_and_awards_once(self, client, db, session_factory, monkeypatch):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        approve_in_between(monkeypatch, session_factory, admin["id"])

        with pytest.raises(AlreadyVerified):
            approve_log(db, log["id"], admin["id"])

        assert _points(db, student["id"]) == 20
        assert db.query(Notification).filter(Notification.user_id == student["id"]).count() == 1
        assert db.query(RecyclingLog.verified).filter(RecyclingLog.id == log["id"]).scalar() is True

    def test_losing_rejection_keeps_approved_log(self, client, db, session_factory, monkeypatch):
        admin, _, student, event = setup_campus(client)
        log = submit_ok(client, student, category="plastic", weight=5, event_id=event["id"])
        approve_in_between(monkeypatch, session_factory, admin["id"])

        with pytest.raises(AlreadyVerified):
            reject_log(db, log["id"], "Too late", admin["id"])

        assert db.query(RecyclingLog).filter(RecyclingLog.id == log["id"]).count() == 1
        assert _points(db, student["id"]) == 20
        titles = [n.title for n in db.query(Notification).filter(Notification.user_id == student["id"])]
        assert titles == ["Recycling Log Approved"]
