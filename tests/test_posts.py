"""게시글 API 테스트 — 작성/수정/삭제, 발행 모드, 검수 게이트, 피드, 프로필 게시글.

Post API tests: create/update/delete, publish modes, the moderation gate,
the home and tag feeds, pinning and trusted-user promotion.
"""

from datetime import datetime, timedelta, timezone

import httpx
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import Report
from app.models.notification import Notification
from app.models.post import Post
from app.utils import roles
from app.utils.moderation_client import ModerationClient, set_moderation_client
from tests.conftest import auth_header, create_profile

APP = "/api/v1/app"
POSTS = f"{APP}/posts"
FEED = f"{APP}/feed"


def text_post(html: str = "<p>hello</p>", **extra) -> dict:
    return {"post_type": "text", "content": {"html": html}, **extra}


async def create_post(client: AsyncClient, author, **payload) -> dict:
    body = payload or text_post()
    res = await client.post(POSTS, json=body, headers=auth_header(author))
    assert res.status_code == 201, res.text
    return res.json()


def moderation_stub(payload: dict) -> ModerationClient:
    return ModerationClient("u", "s", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)))


# ===== Create =====

class TestCreatePost:
    """게시글 작성."""

    async def test_create_text_post(self, client: AsyncClient, alice):
        data = await create_post(client, alice, **text_post(tags=["#Music", "music", " Art "]))
        assert data["status"] == "published"
        assert data["published_at"] is not None
        assert data["author"]["username"] == "alice"
        assert data["tags"] == ["art", "music"]
        assert data["like_count"] == 0

    async def test_content_required_per_type(self, client: AsyncClient, alice):
        res = await client.post(POSTS, json={"post_type": "image", "content": {}}, headers=auth_header(alice))
        assert res.status_code == 422

    async def test_image_post_allows_one_url(self, client: AsyncClient, alice):
        res = await client.post(
            POSTS, json={"post_type": "image", "content": {"urls": ["https://a/1.jpg", "https://a/2.jpg"]}},
            headers=auth_header(alice),
        )
        assert res.status_code == 422

    async def test_link_to_video_gets_embed(self, client: AsyncClient, alice):
        data = await create_post(client, alice, post_type="link", content={"url": "https://youtu.be/dQw4w9WgXcQ"})
        assert data["content"]["embed"]["platform"] == "youtube"
        assert data["content"]["thumbnail_url"] == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"

    async def test_schedule_in_past_rejected(self, client: AsyncClient, alice):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        res = await client.post(
            POSTS, json=text_post(publish_mode="schedule", scheduled_for=past), headers=auth_header(alice)
        )
        assert res.status_code == 400
        assert res.json()["detail"] == "Scheduled time must be in the future"

    async def test_schedule_requires_time(self, client: AsyncClient, alice):
        res = await client.post(POSTS, json=text_post(publish_mode="schedule"), headers=auth_header(alice))
        assert res.status_code == 422

    async def test_queue_mode_assigns_positions(self, client: AsyncClient, alice):
        first = await create_post(client, alice, **text_post(publish_mode="queue"))
        second = await create_post(client, alice, **text_post(publish_mode="queue"))
        assert first["status"] == "queued"
        assert (first["queue_position"], second["queue_position"]) == (1, 2)
        assert first["published_at"] is None

    async def test_draft_is_not_visible(self, client: AsyncClient, alice, bob):
        draft = await create_post(client, alice, **text_post(publish_mode="draft"))
        res = await client.get(f"{POSTS}/{draft['id']}", headers=auth_header(bob))
        assert res.status_code == 404

    async def test_restricted_cannot_post(self, client: AsyncClient, db: AsyncSession):
        restricted = await create_profile(db, "quiet", lock_status="restricted")
        res = await client.post(POSTS, json=text_post(), headers=auth_header(restricted))
        assert res.status_code == 403

    async def test_mentions_notify(self, client: AsyncClient, db: AsyncSession, alice, bob):
        data = await create_post(client, alice, **text_post("<p>hey @Bob and @alice and @nobody</p>"))
        result = await db.execute(select(Notification).where(Notification.notification_type == "mention"))
        mentions = result.scalars().all()
        assert len(mentions) == 1
        assert mentions[0].recipient_id == bob.id
        assert str(mentions[0].post_id) == data["id"]

    async def test_trusted_user_promotion(self, client: AsyncClient, db: AsyncSession, alice):
        for _ in range(roles.TRUSTED_USER_POST_THRESHOLD):
            await create_post(client, alice)
        await db.refresh(alice)
        assert alice.role == roles.TRUSTED_USER


class TestModerationGate:
    """이미지 게시글 검수 게이트."""

    async def test_sensitive_suggestion_marks_post(self, client: AsyncClient, alice):
        set_moderation_client(moderation_stub({"nudity": {"sexual_display": 0.9}}))
        data = await create_post(client, alice, post_type="image", content={"urls": ["https://cdn/a.jpg"]})
        assert data["is_sensitive"] is True
        assert data["moderation_status"] == "approved"

    async def test_flagged_post_creates_system_report(self, client: AsyncClient, db: AsyncSession, alice, junior_mod):
        set_moderation_client(moderation_stub({"gore": {"prob": 0.97}}))
        data = await create_post(client, alice, post_type="image", content={"urls": ["https://cdn/a.jpg"]})
        assert data["moderation_status"] == "flagged"

        report = (await db.execute(select(Report))).scalar_one()
        assert report.source == "auto_moderation"
        assert report.reporter_id is None
        assert report.reported_user_id == alice.id
        staff_notes = (await db.execute(
            select(Notification).where(Notification.recipient_id == junior_mod.id)
        )).scalars().all()
        assert [n.notification_type for n in staff_notes] == ["report"]

    async def test_moderation_outage_fails_open(self, client: AsyncClient, alice):
        set_moderation_client(ModerationClient("u", "s", transport=httpx.MockTransport(lambda r: httpx.Response(502))))
        data = await create_post(client, alice, post_type="image", content={"urls": ["https://cdn/a.jpg"]})
        assert data["moderation_status"] == "approved"
        assert data["is_sensitive"] is False

    async def test_malformed_moderation_body_fails_open(self, client: AsyncClient, alice):
        set_moderation_client(ModerationClient("u", "s", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[]))))
        data = await create_post(client, alice, post_type="image", content={"urls": ["https://cdn/a.jpg"]})
        assert data["moderation_status"] == "approved"
        assert data["is_sensitive"] is False


# ===== Update / Delete =====

class TestUpdateDelete:
    async def test_update_own_post(self, client: AsyncClient, alice):
        post = await create_post(client, alice, **text_post(tags=["old"]))
        res = await client.patch(
            f"{POSTS}/{post['id']}", json={"is_sensitive": True, "tags": ["new"]}, headers=auth_header(alice)
        )
        assert res.status_code == 200
        assert res.json()["is_sensitive"] is True
        assert res.json()["tags"] == ["new"]
        assert res.json()["content"]["html"] == "<p>hello</p>"

    async def test_cannot_update_others_post(self, client: AsyncClient, alice, bob):
        post = await create_post(client, alice)
        res = await client.patch(f"{POSTS}/{post['id']}", json={"is_sensitive": True}, headers=auth_header(bob))
        assert res.status_code == 403

    async def test_delete_is_soft(self, client: AsyncClient, db: AsyncSession, alice):
        post = await create_post(client, alice)
        res = await client.delete(f"{POSTS}/{post['id']}", headers=auth_header(alice))
        assert res.status_code == 204
        assert (await client.get(f"{POSTS}/{post['id']}")).status_code == 404
        row = (await db.execute(select(Post))).scalar_one()
        assert row.status == "deleted"

    async def test_get_post_anonymous(self, client: AsyncClient, alice):
        post = await create_post(client, alice)
        res = await client.get(f"{POSTS}/{post['id']}")
        assert res.status_code == 200
        assert res.json()["has_liked"] is False


# ===== Feeds =====

class TestFeed:
    async def test_anonymous_sees_everything_newest_first(self, client: AsyncClient, alice, bob):
        first = await create_post(client, alice)
        second = await create_post(client, bob)
        res = await client.get(FEED)
        assert [p["id"] for p in res.json()["posts"]] == [second["id"], first["id"]]

    async def test_following_limits_feed(self, client: AsyncClient, alice, bob, carol):
        await create_post(client, bob)
        own = await create_post(client, alice)
        await create_post(client, carol)
        await client.post(f"{APP}/users/{bob.id}/follow", headers=auth_header(alice))

        res = await client.get(FEED, headers=auth_header(alice))
        authors = {p["author"]["username"] for p in res.json()["posts"]}
        assert authors == {"alice", "bob"}
        assert own["id"] in {p["id"] for p in res.json()["posts"]}

    async def test_blocked_authors_hidden(self, client: AsyncClient, alice, bob):
        await create_post(client, bob)
        await client.post(f"{APP}/users/{alice.id}/block", headers=auth_header(bob))
        res = await client.get(FEED, headers=auth_header(alice))
        assert res.json()["posts"] == []

    async def test_pagination_has_more(self, client: AsyncClient, alice):
        for _ in range(3):
            await create_post(client, alice)
        page = (await client.get(FEED, params={"limit": 2})).json()
        assert len(page["posts"]) == 2 and page["has_more"] is True
        rest = (await client.get(FEED, params={"limit": 2, "offset": 2})).json()
        assert len(rest["posts"]) == 1 and rest["has_more"] is False

    async def test_tag_feed(self, client: AsyncClient, alice):
        tagged = await create_post(client, alice, **text_post(tags=["Cats"]))
        await create_post(client, alice, **text_post(tags=["dogs"]))
        res = await client.get(f"{FEED}/tags/%23cats")
        assert [p["id"] for p in res.json()["posts"]] == [tagged["id"]]

    async def test_tag_feed_pages_skip_blocked_authors(self, client: AsyncClient, alice, bob):
        own = [await create_post(client, alice, **text_post(tags=["cats"])) for _ in range(2)]
        for _ in range(2):
            await create_post(client, bob, **text_post(tags=["cats"]))
        await client.post(f"{APP}/users/{bob.id}/block", headers=auth_header(alice))

        page = (await client.get(f"{FEED}/tags/cats", params={"limit": 2}, headers=auth_header(alice))).json()
        assert {p["id"] for p in page["posts"]} == {p["id"] for p in own}
        assert page["has_more"] is True


# ===== Profile posts and pinning =====

class TestProfilePosts:
    async def test_pinned_post_first(self, client: AsyncClient, alice):
        old = await create_post(client, alice)
        await create_post(client, alice)
        res = await client.post(f"{APP}/posts/{old['id']}/pin", headers=auth_header(alice))
        assert res.status_code == 204

        posts = (await client.get(f"{APP}/profiles/alice/posts")).json()["posts"]
        assert posts[0]["id"] == old["id"] and posts[0]["is_pinned"] is True

        split = (await client.get(f"{APP}/profiles/alice/posts", params={"include_pinned": True})).json()
        assert split["pinned"]["id"] == old["id"]
        assert old["id"] not in [p["id"] for p in split["posts"]]

    async def test_single_pin_per_author(self, client: AsyncClient, alice):
        first = await create_post(client, alice)
        second = await create_post(client, alice)
        await client.post(f"{APP}/posts/{first['id']}/pin", headers=auth_header(alice))
        await client.post(f"{APP}/posts/{second['id']}/pin", headers=auth_header(alice))
        first_now = (await client.get(f"{POSTS}/{first['id']}")).json()
        assert first_now["is_pinned"] is False

    async def test_cannot_pin_others_post(self, client: AsyncClient, alice, bob):
        post = await create_post(client, alice)
        res = await client.post(f"{APP}/posts/{post['id']}/pin", headers=auth_header(bob))
        assert res.status_code == 403

    async def test_unpin(self, client: AsyncClient, alice):
        post = await create_post(client, alice)
        await client.post(f"{APP}/posts/{post['id']}/pin", headers=auth_header(alice))
        res = await client.delete(f"{APP}/posts/{post['id']}/pin", headers=auth_header(alice))
        assert res.status_code == 204
        assert (await client.get(f"{POSTS}/{post['id']}")).json()["is_pinned"] is False
