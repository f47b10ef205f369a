"""소셜 그래프 API 테스트 — 팔로우, 차단, 프로필, 내 설정, 알림, 이메일.

Social tests: follows and blocks, public profiles and privacy flags,
self-service settings, the notification inbox and email preferences.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.interaction import Block
from app.services.email_service import email_service, should_send_email
from app.services.notification_service import notification_service
from app.utils import email as email_module
from tests.conftest import auth_header, create_post, create_profile

APP = "/api/v1/app"
NOTIFICATIONS = f"{APP}/notifications"


# ===== Follows =====

class TestFollows:
    """팔로우 테스트."""

    async def test_follow_and_status(self, client: AsyncClient, db: AsyncSession, alice, bob):
        res = await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        assert res.status_code == 204

        status = await client.get(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        assert status.json() == {"is_following": True}

        inbox = (await client.get(NOTIFICATIONS, headers=auth_header(bob))).json()
        assert [n["notification_type"] for n in inbox["items"]] == ["follow"]
        assert inbox["items"][0]["actor"]["username"] == "alice"

    async def test_cannot_follow_self(self, client: AsyncClient, alice):
        res = await client.post(f"{APP}/users/{alice.id}/follow", headers=auth_header(alice))
        assert res.status_code == 400

    async def test_duplicate_follow(self, client: AsyncClient, alice, bob):
        await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        res = await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        assert res.status_code == 409

    async def test_follow_blocked(self, client: AsyncClient, db: AsyncSession, alice, bob):
        db.add(Block(blocker_id=bob.id, blocked_id=alice.id))
        await db.flush()
        res = await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        assert res.status_code == 403

    async def test_follow_unknown_user(self, client: AsyncClient, alice):
        res = await client.post(
            f"{APP}/users/00000000-0000-0000-0000-000000000000/follow", headers=auth_header(alice)
        )
        assert res.status_code == 404

    async def test_unfollow_removes_notification(self, client: AsyncClient, alice, bob):
        await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        res = await client.delete(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        assert res.status_code == 204
        inbox = (await client.get(NOTIFICATIONS, headers=auth_header(bob))).json()
        assert inbox["total"] == 0

        again = await client.delete(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        assert again.status_code == 404

    async def test_batch_status(self, client: AsyncClient, alice, bob, carol):
        await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        res = await client.post(
            f"{APP}/follows/status",
            json={"user_ids": [str(bob.id), str(carol.id)]},
            headers=auth_header(alice),
        )
        assert res.json() == {str(bob.id): True, str(carol.id): False}


class TestBlocks:
    async def test_block_removes_follows_both_ways(self, client: AsyncClient, alice, bob):
        await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))
        await client.post(f"{APP}/users/{alice.id}/follow", headers=auth_header(bob))

        res = await client.post(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))
        assert res.status_code == 204

        for viewer, target in ((alice, bob), (bob, alice)):
            status = await client.get(f"{APP}/users/{target.id}/follow", headers=auth_header(viewer))
            assert status.json()["is_following"] is False

        blocked = (await client.get(f"{APP}/blocks", headers=auth_header(alice))).json()
        assert [u["username"] for u in blocked] == ["bob"]

    async def test_duplicate_and_self_block(self, client: AsyncClient, alice, bob):
        await client.post(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))
        assert (await client.post(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))).status_code == 409
        assert (await client.post(f"{APP}/users/{alice.id}/block", headers=auth_header(alice))).status_code == 400

    async def test_unblock(self, client: AsyncClient, alice, bob):
        await client.post(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))
        assert (await client.delete(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))).status_code == 204
        assert (await client.delete(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))).status_code == 404
        assert (await client.get(f"{APP}/blocks", headers=auth_header(alice))).json() == []


# ===== Profiles =====

class TestProfiles:
    async def test_public_profile_with_stats(self, client: AsyncClient, db: AsyncSession, alice, bob):
        await create_post(db, alice)
        await create_post(db, alice, status="draft")
        await client.post(f"{APP}/users/{alice.id}/follow", headers=auth_header(bob))

        res = await client.get(f"{APP}/profiles/ALICE", headers=auth_header(bob))
        assert res.status_code == 200
        data = res.json()
        assert data["stats"] == {"posts": 1, "followers": 1, "following": 0}
        assert data["is_following"] is True
        assert data["is_own"] is False

    async def test_banned_profile_hidden(self, client: AsyncClient, db: AsyncSession):
        await create_profile(db, "gone", lock_status="banned")
        assert (await client.get(f"{APP}/profiles/gone")).status_code == 404

    async def test_update_profile(self, client: AsyncClient, alice):
        res = await client.patch(
            f"{APP}/me/profile",
            json={"bio": "hi there", "timezone": "Asia/Seoul", "avatar_url": "https://cdn.example.com/a.png"},
            headers=auth_header(alice),
        )
        assert res.status_code == 200
        assert res.json()["bio"] == "hi there"
        assert res.json()["timezone"] == "Asia/Seoul"
        assert res.json()["is_own"] is True

    @pytest.mark.parametrize("payload", [
        {"timezone": "Mars/Olympus"},
        {"avatar_url": "javascript:alert(1)"},
    ])
    async def test_update_profile_rejects_bad_values(self, client: AsyncClient, alice, payload):
        res = await client.patch(f"{APP}/me/profile", json=payload, headers=auth_header(alice))
        assert res.status_code == 400

    async def test_private_likes(self, client: AsyncClient, db: AsyncSession, alice, bob):
        post = await create_post(db, bob)
        await client.post(f"{APP}/posts/{post.id}/like", headers=auth_header(alice))

        visible = await client.get(f"{APP}/profiles/alice/likes", headers=auth_header(bob))
        assert visible.status_code == 200
        assert [p["id"] for p in visible.json()["posts"]] == [str(post.id)]

        await client.patch(f"{APP}/me/settings/privacy", json={"show_likes": False}, headers=auth_header(alice))
        assert (await client.get(f"{APP}/profiles/alice/likes", headers=auth_header(bob))).status_code == 403
        own = await client.get(f"{APP}/profiles/alice/likes", headers=auth_header(alice))
        assert own.status_code == 200

    async def test_commented_posts(self, client: AsyncClient, db: AsyncSession, alice, bob):
        post = await create_post(db, bob)
        await client.post(f"{APP}/posts/{post.id}/comments", json={"content_html": "hi"}, headers=auth_header(alice))
        res = await client.get(f"{APP}/profiles/alice/comments")
        assert [p["id"] for p in res.json()["posts"]] == [str(post.id)]

    async def test_follower_lists_and_privacy(self, client: AsyncClient, alice, bob, carol):
        await client.post(f"{APP}/users/{alice.id}/follow", headers=auth_header(bob))
        await client.post(f"{APP}/users/{alice.id}/follow", headers=auth_header(carol))

        followers = (await client.get(f"{APP}/profiles/alice/followers")).json()
        assert followers["total"] == 2
        assert sorted(u["username"] for u in followers["items"]) == ["bob", "carol"]

        following = (await client.get(f"{APP}/profiles/bob/following")).json()
        assert [u["username"] for u in following["items"]] == ["alice"]

        await client.patch(
            f"{APP}/me/settings/privacy", json={"show_followers": False}, headers=auth_header(alice)
        )
        assert (await client.get(f"{APP}/profiles/alice/followers")).status_code == 403


# ===== Settings =====

class TestSettings:
    async def test_default_settings(self, client: AsyncClient, alice):
        data = (await client.get(f"{APP}/me/settings", headers=auth_header(alice))).json()
        assert data["email"]["email_likes"] is False
        assert data["email"]["email_reblogs"] is False
        assert data["email"]["email_comments"] is True
        assert data["email"]["email_frequency"] == "immediate"
        assert data["privacy"]["show_likes"] is True
        assert data["queue"]["queue_enabled"] is False

    async def test_update_email_preferences(self, client: AsyncClient, alice):
        res = await client.patch(
            f"{APP}/me/settings/email",
            json={"email_likes": True, "email_frequency": "daily"},
            headers=auth_header(alice),
        )
        assert res.json()["email"]["email_likes"] is True
        assert res.json()["email"]["email_frequency"] == "daily"

    async def test_update_queue_settings(self, client: AsyncClient, alice):
        res = await client.patch(
            f"{APP}/me/settings/queue",
            json={"queue_enabled": True, "queue_posts_per_day": 12, "queue_window_start": "08:30"},
            headers=auth_header(alice),
        )
        assert res.status_code == 200
        queue = res.json()["queue"]
        assert queue["queue_enabled"] is True
        assert queue["queue_posts_per_day"] == 12
        assert queue["queue_window_start"] == "08:30"

    async def test_queue_window_must_differ(self, client: AsyncClient, alice):
        res = await client.patch(
            f"{APP}/me/settings/queue",
            json={"queue_window_start": "10:00", "queue_window_end": "10:00"},
            headers=auth_header(alice),
        )
        assert res.status_code == 400

    async def test_queue_window_format(self, client: AsyncClient, alice):
        res = await client.patch(
            f"{APP}/me/settings/queue", json={"queue_window_start": "25:00"}, headers=auth_header(alice)
        )
        assert res.status_code == 422


# ===== Notifications =====

class TestNotifications:
    async def _seed(self, db: AsyncSession, recipient, actor, count: int) -> list:
        post = await create_post(db, recipient, content={"html": "<p>" + "word " * 40 + "</p>"})
        return [
            await notification_service.notify(db, recipient.id, "like", actor.id, post.id)
            for _ in range(count)
        ]

    async def test_list_with_preview(self, client: AsyncClient, db: AsyncSession, alice, bob):
        await self._seed(db, alice, bob, 3)
        data = (await client.get(NOTIFICATIONS, params={"per_page": 2}, headers=auth_header(alice))).json()
        assert data["total"] == 3
        assert data["unread_count"] == 3
        assert len(data["items"]) == 2
        assert len(data["items"][0]["post_preview"]) <= 100
        assert data["items"][0]["actor"]["username"] == "bob"

    async def test_mark_read_and_unread_count(self, client: AsyncClient, db: AsyncSession, alice, bob):
        notes = await self._seed(db, alice, bob, 2)
        res = await client.post(
            f"{NOTIFICATIONS}/read", json={"notification_ids": [str(notes[0].id)]}, headers=auth_header(alice)
        )
        assert res.json() == {"updated": 1}
        count = await client.get(f"{NOTIFICATIONS}/unread-count", headers=auth_header(alice))
        assert count.json() == {"unread_count": 1}

        res = await client.post(f"{NOTIFICATIONS}/read-all", headers=auth_header(alice))
        assert res.json() == {"updated": 1}

    async def test_cannot_touch_others_notifications(self, client: AsyncClient, db: AsyncSession, alice, bob):
        notes = await self._seed(db, alice, bob, 1)
        res = await client.post(
            f"{NOTIFICATIONS}/read", json={"notification_ids": [str(notes[0].id)]}, headers=auth_header(bob)
        )
        assert res.json() == {"updated": 0}
        assert (await client.delete(f"{NOTIFICATIONS}/{notes[0].id}", headers=auth_header(bob))).status_code == 404

    async def test_delete_and_clear(self, client: AsyncClient, db: AsyncSession, alice, bob):
        notes = await self._seed(db, alice, bob, 3)
        assert (await client.delete(f"{NOTIFICATIONS}/{notes[0].id}", headers=auth_header(alice))).status_code == 204
        res = await client.delete(NOTIFICATIONS, headers=auth_header(alice))
        assert res.json() == {"updated": 2}

    async def test_self_actions_are_not_notified(self, db: AsyncSession, alice):
        assert await notification_service.notify(db, alice.id, "like", alice.id) is None


# ===== Email =====

class TestEmailPreferences:
    """이메일 발송 여부 판정과 SMTP 미설정 시 mock 결과."""

    async def test_defaults(self, alice):
        assert should_send_email(alice, "comment")
        assert should_send_email(alice, "follow")
        assert not should_send_email(alice, "like")
        assert not should_send_email(alice, "reblog")
        assert not should_send_email(alice, "report")

    @pytest.mark.parametrize("frequency", ["daily", "off"])
    async def test_frequency_suppresses_immediate(self, alice, frequency):
        alice.email_frequency = frequency
        assert not should_send_email(alice, "comment")

    async def test_mock_result_without_smtp(self, alice, bob, monkeypatch):
        monkeypatch.setattr(settings, "SMTP_USER", "")
        result = await email_service.send_follow(alice, bob)
        assert result.success
        assert result.message_id == "mock"

    async def test_smtp_message(self, alice, bob, monkeypatch):
        sent = []

        async def fake_send(message, **kwargs):
            sent.append((message, kwargs))

        monkeypatch.setattr(settings, "SMTP_USER", "mailer")
        monkeypatch.setattr(settings, "SMTP_PASSWORD", "pw")
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@vocl.test")
        monkeypatch.setattr(email_module.aiosmtplib, "send", fake_send)

        result = await email_service.send_follow(alice, bob)
        assert result.success
        assert result.message_id.endswith("@vocl.test>")
        message, kwargs = sent[0]
        assert message["To"] == "alice@test.com"
        assert message["Subject"] == "@bob started following you"
        assert kwargs["start_tls"] is True

    async def test_smtp_failure_is_swallowed(self, alice, bob, monkeypatch):
        async def failing_send(message, **kwargs):
            raise OSError("connection refused")

        monkeypatch.setattr(settings, "SMTP_USER", "mailer")
        monkeypatch.setattr(settings, "SMTP_PASSWORD", "pw")
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@vocl.test")
        monkeypatch.setattr(email_module.aiosmtplib, "send", failing_send)

        result = await email_service.send_follow(alice, bob)
        assert result.success is False
