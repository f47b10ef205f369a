"""운영 도구 테스트 — 신고 흐름, 사용자 제재, 역할 변경, 감사 로그, 대시보드.

Moderation tests: user reports through the staff workflow (claim, assign,
escalate, resolve), lock state changes, role assignment and the audit trail.
"""

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import AuditLog, EscalationHistory
from app.models.notification import Notification
from app.models.token import RefreshToken
from app.utils import roles
from app.utils.jwt import create_refresh_token
from app.utils.timeutils import utc_now
from tests.conftest import auth_header, create_post, create_profile

APP = "/api/v1/app"
ADMIN = "/api/v1/admin"
REPORTS = f"{ADMIN}/reports"
USERS = f"{ADMIN}/users"


async def file_report(client: AsyncClient, reporter, reported, post=None, subject: str = "spam") -> dict:
    body = {"reported_user_id": str(reported.id), "subject": subject, "comments": "  please look  "}
    if post is not None:
        body["post_id"] = str(post.id)
    res = await client.post(f"{APP}/reports", json=body, headers=auth_header(reporter))
    assert res.status_code == 201, res.text
    return res.json()


async def audit_actions(db: AsyncSession) -> list[str]:
    result = await db.execute(select(AuditLog.action).order_by(AuditLog.created_at))
    return list(result.scalars().all())


# ===== User reports =====

class TestUserReports:
    """사용자 신고 접수."""

    async def test_report_notifies_staff(self, client: AsyncClient, db: AsyncSession, alice, bob, junior_mod, moderator):
        data = await file_report(client, alice, bob)
        assert data["status"] == "pending"
        assert data["source"] == "user_report"
        assert data["assigned_role"] == roles.JUNIOR_MOD
        assert data["comments"] == "please look"

        for staff in (junior_mod, moderator):
            result = await db.execute(select(Notification).where(Notification.recipient_id == staff.id))
            notes = result.scalars().all()
            assert [n.notification_type for n in notes] == ["report"]
            assert str(notes[0].report_id) == data["id"]

    async def test_cannot_report_self(self, client: AsyncClient, alice):
        res = await client.post(
            f"{APP}/reports", json={"reported_user_id": str(alice.id), "subject": "spam"}, headers=auth_header(alice)
        )
        assert res.status_code == 400

    async def test_duplicate_open_report(self, client: AsyncClient, alice, bob):
        await file_report(client, alice, bob)
        res = await client.post(
            f"{APP}/reports", json={"reported_user_id": str(bob.id), "subject": "harassment"},
            headers=auth_header(alice),
        )
        assert res.status_code == 409

    async def test_unknown_subject_rejected(self, client: AsyncClient, alice, bob):
        res = await client.post(
            f"{APP}/reports", json={"reported_user_id": str(bob.id), "subject": "boring"}, headers=auth_header(alice)
        )
        assert res.status_code == 422

    async def test_report_rate_limit(self, client: AsyncClient, alice, bob):
        body = {"reported_user_id": str(bob.id), "subject": "spam"}
        for _ in range(10):
            await client.post(f"{APP}/reports", json=body, headers=auth_header(alice))
        res = await client.post(f"{APP}/reports", json=body, headers=auth_header(alice))
        assert res.status_code == 429
        assert res.headers["X-RateLimit-Remaining"] == "0"

    async def test_pending_count_for_reported_user(self, client: AsyncClient, alice, bob, carol):
        await file_report(client, alice, bob)
        await file_report(client, carol, bob)
        res = await client.get(f"{APP}/reports/pending", headers=auth_header(bob))
        assert res.json() == {"count": 2}


# ===== Staff workflow =====

class TestReportWorkflow:
    async def test_regular_user_has_no_access(self, client: AsyncClient, alice):
        res = await client.get(REPORTS, headers=auth_header(alice))
        assert res.status_code == 403

    async def test_list_and_claim(self, client: AsyncClient, alice, bob, junior_mod):
        report = await file_report(client, alice, bob)
        listing = (await client.get(REPORTS, params={"status": "pending"}, headers=auth_header(junior_mod))).json()
        assert [r["id"] for r in listing["items"]] == [report["id"]]

        res = await client.post(f"{REPORTS}/{report['id']}/claim", headers=auth_header(junior_mod))
        assert res.status_code == 200
        assert res.json()["status"] == "reviewing"
        assert res.json()["assigned_to"] == str(junior_mod.id)

        again = await client.post(f"{REPORTS}/{report['id']}/claim", headers=auth_header(junior_mod))
        assert again.status_code == 400

    async def test_assign_requires_role_level(self, client: AsyncClient, alice, bob, carol, junior_mod, moderator):
        report = await file_report(client, alice, bob)
        bad = await client.post(
            f"{REPORTS}/{report['id']}/assign", json={"assignee_id": str(carol.id)}, headers=auth_header(junior_mod)
        )
        assert bad.status_code == 400

        res = await client.post(
            f"{REPORTS}/{report['id']}/assign", json={"assignee_id": str(moderator.id)}, headers=auth_header(junior_mod)
        )
        assert res.json()["assigned_to"] == str(moderator.id)
        assert res.json()["status"] == "reviewing"

    async def test_escalate_hides_from_lower_staff(self, client: AsyncClient, db: AsyncSession, alice, bob, junior_mod, moderator):
        report = await file_report(client, alice, bob)
        res = await client.post(
            f"{REPORTS}/{report['id']}/escalate",
            json={"target_role": roles.MODERATOR, "reason": "needs a second look"},
            headers=auth_header(junior_mod),
        )
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "escalated"
        assert data["assigned_role"] == roles.MODERATOR
        assert data["escalation_reason"] == "needs a second look"

        history = (await db.execute(select(EscalationHistory))).scalar_one()
        assert (history.from_role, history.to_role) == (roles.JUNIOR_MOD, roles.MODERATOR)

        assert (await client.get(f"{REPORTS}/{report['id']}", headers=auth_header(junior_mod))).status_code == 404
        junior_list = (await client.get(REPORTS, headers=auth_header(junior_mod))).json()
        assert junior_list["total"] == 0

        claimed = await client.post(f"{REPORTS}/{report['id']}/claim", headers=auth_header(moderator))
        assert claimed.json()["status"] == "reviewing"

    async def test_escalate_target_must_be_higher(self, client: AsyncClient, alice, bob, moderator):
        report = await file_report(client, alice, bob)
        res = await client.post(
            f"{REPORTS}/{report['id']}/escalate",
            json={"target_role": roles.JUNIOR_MOD, "reason": "down"},
            headers=auth_header(moderator),
        )
        assert res.status_code == 400

    async def test_resolve_ban_removes_post(self, client: AsyncClient, db: AsyncSession, alice, bob, moderator):
        post = await create_post(db, bob)
        token = create_refresh_token({"sub": str(bob.id)})
        db.add(RefreshToken(user_id=bob.id, token=token, expires_at=utc_now().replace(year=2099)))
        await db.flush()

        report = await file_report(client, alice, bob, post=post)
        res = await client.post(
            f"{REPORTS}/{report['id']}/resolve",
            json={"resolution": "resolved_ban", "notes": "repeat spam"},
            headers=auth_header(moderator),
        )
        assert res.status_code == 200
        assert res.json()["status"] == "resolved_ban"
        assert res.json()["resolution_notes"] == "repeat spam"

        await db.refresh(bob)
        await db.refresh(post)
        assert bob.lock_status == "banned"
        assert bob.ban_reason == "repeat spam"
        assert post.moderation_status == "removed"
        tokens = await db.execute(select(func.count()).select_from(RefreshToken).where(RefreshToken.user_id == bob.id))
        assert tokens.scalar() == 0
        assert await audit_actions(db) == ["ban_user", "remove_post", "resolve_report"]
        assert (await client.get(f"{APP}/posts/{post.id}")).status_code == 404

    async def test_dismiss_restores_post(self, client: AsyncClient, db: AsyncSession, alice, bob, moderator):
        post = await create_post(db, bob, moderation_status="flagged")
        report = await file_report(client, alice, bob, post=post)
        await client.post(
            f"{REPORTS}/{report['id']}/resolve", json={"resolution": "resolved_dismissed"}, headers=auth_header(moderator)
        )
        await db.refresh(post)
        await db.refresh(bob)
        assert post.moderation_status == "approved"
        assert bob.lock_status == "unlocked"
        assert await audit_actions(db) == ["restore_post", "resolve_report"]

    async def test_resolved_report_is_final(self, client: AsyncClient, alice, bob, moderator):
        report = await file_report(client, alice, bob)
        url = f"{REPORTS}/{report['id']}/resolve"
        await client.post(url, json={"resolution": "resolved_restrict"}, headers=auth_header(moderator))
        res = await client.post(url, json={"resolution": "resolved_dismissed"}, headers=auth_header(moderator))
        assert res.status_code == 400

    async def test_cannot_resolve_report_on_equal_role(self, client: AsyncClient, db: AsyncSession, alice, junior_mod):
        other_junior = await create_profile(db, "junior2", roles.JUNIOR_MOD)
        report = await file_report(client, alice, other_junior)
        res = await client.post(
            f"{REPORTS}/{report['id']}/resolve", json={"resolution": "resolved_ban"}, headers=auth_header(junior_mod)
        )
        assert res.status_code == 403

    async def test_stats(self, client: AsyncClient, alice, bob, carol, moderator):
        first = await file_report(client, alice, bob)
        await file_report(client, alice, carol)
        await client.post(
            f"{REPORTS}/{first['id']}/resolve", json={"resolution": "resolved_dismissed"}, headers=auth_header(moderator)
        )
        stats = (await client.get(f"{REPORTS}/stats", headers=auth_header(moderator))).json()
        assert stats == {"pending": 1, "reviewing": 0, "escalated": 0, "resolved": 1}


# ===== User management =====

class TestUserManagement:
    async def test_list_users_requires_moderator(self, client: AsyncClient, junior_mod):
        assert (await client.get(USERS, headers=auth_header(junior_mod))).status_code == 403

    async def test_search_users(self, client: AsyncClient, alice, bob, moderator):
        res = await client.get(USERS, params={"search": "ali"}, headers=auth_header(moderator))
        data = res.json()
        assert [u["username"] for u in data["items"]] == ["alice"]
        assert data["items"][0]["role_name"] == "User"

    async def test_filter_by_lock_status(self, client: AsyncClient, db: AsyncSession, moderator):
        await create_profile(db, "quiet", lock_status="restricted")
        res = await client.get(USERS, params={"lock_status": "restricted"}, headers=auth_header(moderator))
        assert [u["username"] for u in res.json()["items"]] == ["quiet"]

    async def test_restrict_and_unlock(self, client: AsyncClient, db: AsyncSession, alice, moderator):
        res = await client.post(f"{USERS}/{alice.id}/restrict", json={"reason": "cool off"}, headers=auth_header(moderator))
        assert res.json()["lock_status"] == "restricted"
        blocked = await client.post(
            f"{APP}/posts", json={"post_type": "text", "content": {"html": "x"}}, headers=auth_header(alice)
        )
        assert blocked.status_code == 403

        res = await client.post(f"{USERS}/{alice.id}/unlock", headers=auth_header(moderator))
        assert res.json()["lock_status"] == "unlocked"
        assert await audit_actions(db) == ["restrict_user", "unlock_user"]

    async def test_cannot_moderate_equal_role(self, client: AsyncClient, db: AsyncSession, moderator):
        peer = await create_profile(db, "peer", roles.MODERATOR)
        res = await client.post(f"{USERS}/{peer.id}/restrict", json={}, headers=auth_header(moderator))
        assert res.status_code == 403

    async def test_cannot_moderate_self(self, client: AsyncClient, admin):
        res = await client.post(f"{USERS}/{admin.id}/unlock", headers=auth_header(admin))
        assert res.status_code == 400

    async def test_ban_requires_admin(self, client: AsyncClient, alice, senior_mod):
        res = await client.post(f"{USERS}/{alice.id}/ban", json={"reason": "x"}, headers=auth_header(senior_mod))
        assert res.status_code == 403

    async def test_ban_with_ip(self, client: AsyncClient, db: AsyncSession, alice, admin):
        res = await client.post(
            f"{USERS}/{alice.id}/ban", json={"reason": "spam ring", "ip_address": "203.0.113.9"},
            headers=auth_header(admin),
        )
        assert res.status_code == 200
        assert res.json()["lock_status"] == "banned"
        assert res.json()["banned_at"] is not None
        assert await audit_actions(db) == ["ip_ban", "ban_user"]

        login = await client.post(f"{APP}/auth/login", json={"login": "alice", "password": "password123!"})
        assert login.status_code == 403


class TestRoles:
    async def test_set_role(self, client: AsyncClient, db: AsyncSession, alice, admin):
        res = await client.put(f"{USERS}/{alice.id}/role", json={"role": roles.TRUSTED_USER}, headers=auth_header(admin))
        assert res.status_code == 200
        assert res.json()["role_name"] == "Trusted User"

        log = (await db.execute(select(AuditLog).where(AuditLog.action == "change_role"))).scalar_one()
        assert log.details["old_role"] == roles.USER
        assert log.details["new_role"] == roles.TRUSTED_USER
        assert log.details["invite_codes_granted"] == roles.TRUSTED_USER_INVITE_CODES

    async def test_cannot_assign_admin(self, client: AsyncClient, alice, admin):
        res = await client.put(f"{USERS}/{alice.id}/role", json={"role": roles.ADMIN}, headers=auth_header(admin))
        assert res.status_code == 403

    async def test_cannot_change_own_role(self, client: AsyncClient, admin):
        res = await client.put(f"{USERS}/{admin.id}/role", json={"role": roles.USER}, headers=auth_header(admin))
        assert res.status_code == 400

    async def test_cannot_change_peer_admin(self, client: AsyncClient, db: AsyncSession, admin):
        other = await create_profile(db, "boss2", roles.ADMIN)
        res = await client.put(f"{USERS}/{other.id}/role", json={"role": roles.USER}, headers=auth_header(admin))
        assert res.status_code == 403

    async def test_assignable_roles(self, client: AsyncClient, admin, moderator):
        res = await client.get(f"{ADMIN}/roles", headers=auth_header(admin))
        assert [r["level"] for r in res.json()] == [0, 1, 3, 5, 7]
        assert (await client.get(f"{ADMIN}/roles", headers=auth_header(moderator))).status_code == 403


# ===== Audit log / dashboard =====

class TestAuditAndDashboard:
    async def test_audit_log_filter(self, client: AsyncClient, alice, bob, moderator):
        await client.post(f"{USERS}/{alice.id}/restrict", json={}, headers=auth_header(moderator))
        await client.post(f"{USERS}/{bob.id}/restrict", json={}, headers=auth_header(moderator))
        await client.post(f"{USERS}/{bob.id}/unlock", headers=auth_header(moderator))

        res = await client.get(f"{ADMIN}/audit-logs", params={"action": "restrict_user"}, headers=auth_header(moderator))
        data = res.json()
        assert data["total"] == 2
        assert {item["target_user_username"] for item in data["items"]} == {"alice", "bob"}
        assert data["items"][0]["actor_username"] == "moddy"

        by_target = await client.get(
            f"{ADMIN}/audit-logs", params={"target_user_id": str(bob.id)}, headers=auth_header(moderator)
        )
        assert by_target.json()["total"] == 2

    async def test_dashboard_stats(self, client: AsyncClient, db: AsyncSession, alice, bob, moderator):
        await create_post(db, alice)
        await create_post(db, alice, moderation_status="flagged")
        await create_profile(db, "gone", lock_status="banned")
        await file_report(client, alice, bob)

        res = await client.get(f"{ADMIN}/dashboard/stats", headers=auth_header(moderator))
        assert res.status_code == 200
        stats = res.json()
        assert stats["total_users"] == 4
        assert stats["banned_users"] == 1
        assert stats["published_posts"] == 2
        assert stats["flagged_posts"] == 1
        assert stats["pending_reports"] == 1
