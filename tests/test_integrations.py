"""외부 연동 단위 테스트 — 검수 API, Spotify, Tenor, 스토리지 presign.

Outbound integrations exercised against httpx.MockTransport; no network.
"""

import uuid
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from pydantic import ValidationError

from app.config import settings
from app.models.profile import Profile
from app.schemas.media import PresignRequest
from app.services.gif_service import GifService, MOCK_GIFS
from app.services.music_service import MusicNotConfiguredError, MusicSearchError, MusicService, TOKEN_URL
from app.services.storage_service import StorageService, build_key
from app.utils.exceptions import BadRequestError, ServiceUnavailableError, TooManyRequestsError
from app.utils.moderation_client import (
    ModerationClient,
    analyze_image_response,
    analyze_video_response,
    moderate_content,
    set_moderation_client,
)


def json_transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


# ===== Moderation =====

class TestModerationPolicy:
    """검수 응답 판정 정책."""

    def test_child_safety_is_flagged(self):
        result = analyze_image_response({"child": {"context": "not_safe"}})
        assert result.flagged and not result.safe
        assert result.sensitive_reason == "child_safety"

    def test_extreme_gore_is_flagged(self):
        result = analyze_image_response({"gore": {"prob": 0.9}})
        assert result.flagged
        assert result.confidence == pytest.approx(0.9)

    def test_nudity_suggests_sensitive(self):
        result = analyze_image_response({
            "nudity": {"sexual_display": 0.8, "very_suggestive": 0.75},
            "gore": {"prob": 0.6},
        })
        assert result.safe and not result.flagged
        assert result.suggest_sensitive
        assert result.sensitive_reason == "sexual_display, suggestive, gore"

    def test_clean_image(self):
        result = analyze_image_response({"nudity": {"none": 0.99}, "gore": {"prob": 0.01}})
        assert result.safe and not result.suggest_sensitive

    def test_video_frames_are_merged(self):
        result = analyze_video_response({"data": {"frames": [
            {"nudity": {"erotica": 0.7}, "gore": {"prob": 0.1}},
            {"nudity": {"erotica": 0.9}, "gore": {"prob": 0.55}},
        ]}})
        assert result.safe
        assert result.sensitive_reason == "erotica, gore"

    def test_video_extreme_gore(self):
        result = analyze_video_response({"data": {"frames": [{"gore": {"prob": 0.95}}]}})
        assert result.flagged


class TestModerationClient:
    """검수 클라이언트 — 모든 오류는 통과(fail open)."""

    async def test_image_check(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/check.json")
            assert request.url.params["api_user"] == "u"
            return httpx.Response(200, json={"status": "success", "gore": {"prob": 0.99}})

        client = ModerationClient("u", "s", transport=json_transport(handler))
        result = await client.check_image_url("https://cdn/x.jpg")
        assert result.flagged

    async def test_http_error_fails_open(self):
        client = ModerationClient("u", "s", transport=json_transport(lambda r: httpx.Response(500)))
        result = await client.check_image_url("https://cdn/x.jpg")
        assert result.safe and not result.flagged
        assert result.reason == "API error"

    async def test_api_error_payload_fails_open(self):
        transport = json_transport(
            lambda r: httpx.Response(200, json={"status": "failure", "error": {"message": "bad url"}})
        )
        result = await ModerationClient("u", "s", transport=transport).check_image_url("x")
        assert result.safe
        assert result.reason == "bad url"

    async def test_string_error_payload_fails_open(self):
        transport = json_transport(
            lambda r: httpx.Response(200, json={"status": "failure", "error": "quota exceeded"})
        )
        result = await ModerationClient("u", "s", transport=transport).check_image_url("x")
        assert result.safe and not result.flagged
        assert result.reason == "quota exceeded"

    @pytest.mark.parametrize("body", [[], "ok", 3, {"gore": "high"}])
    async def test_malformed_image_body_fails_open(self, body):
        transport = json_transport(lambda r: httpx.Response(200, json=body))
        result = await ModerationClient("u", "s", transport=transport).check_image_url("x")
        assert result.safe and not result.flagged

    @pytest.mark.parametrize("body", [[], {"status": "success", "media": "m"}])
    async def test_malformed_video_body_fails_open(self, body):
        transport = json_transport(lambda r: httpx.Response(200, json=body))
        client = ModerationClient("u", "s", transport=transport, poll_interval=0, max_polls=1)
        result = await client.check_video_url("https://cdn/v.mp4")
        assert result.safe and not result.flagged

    async def test_malformed_video_poll_fails_open(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/video/check.json"):
                return httpx.Response(200, json={"status": "success", "media": {"id": "m"}})
            return httpx.Response(200, json={"status": "finished", "data": {"frames": ["bad"]}})

        client = ModerationClient("u", "s", transport=json_transport(handler), poll_interval=0)
        result = await client.check_video_url("https://cdn/v.mp4")
        assert result.safe and not result.flagged

    async def test_video_polls_until_finished(self):
        polls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/video/check.json"):
                return httpx.Response(200, json={"status": "success", "media": {"id": "med_1"}})
            polls.append(request.url.params["media_id"])
            if len(polls) < 2:
                return httpx.Response(200, json={"status": "ongoing"})
            return httpx.Response(200, json={
                "status": "finished",
                "data": {"frames": [{"gore": {"prob": 0.9}}]},
            })

        client = ModerationClient("u", "s", transport=json_transport(handler), poll_interval=0)
        result = await client.check_video_url("https://cdn/v.mp4")
        assert polls == ["med_1", "med_1"]
        assert result.flagged

    async def test_video_poll_timeout_fails_open(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/video/check.json"):
                return httpx.Response(200, json={"status": "success", "media": {"id": "m"}})
            return httpx.Response(200, json={"status": "ongoing"})

        client = ModerationClient("u", "s", transport=json_transport(handler), poll_interval=0, max_polls=3)
        result = await client.check_video_url("https://cdn/v.mp4")
        assert result.safe
        assert result.reason == "Video processing timeout"

    async def test_unconfigured_passes(self):
        set_moderation_client(None)
        result = await moderate_content("https://cdn/x.jpg", "image")
        assert result.safe
        assert result.reason == "Moderation not configured"


# ===== Music =====

SPOTIFY_TRACK = {
    "id": "t1",
    "name": "Song",
    "artists": [{"name": "A"}, {"name": "B"}],
    "album": {"name": "Album", "images": [{"url": "https://img/1.jpg"}]},
    "preview_url": None,
    "duration_ms": 201000,
    "external_urls": {"spotify": "https://open.spotify.com/track/t1"},
}


class SpotifyStub:
    def __init__(self, token_status: int = 200) -> None:
        self.token_calls = 0
        self.token_status = token_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            self.token_calls += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status)
            return httpx.Response(200, json={"access_token": f"tok{self.token_calls}", "expires_in": 3600})
        assert request.headers["Authorization"].startswith("Bearer tok")
        if request.url.path == "/v1/search":
            return httpx.Response(200, json={"tracks": {"items": [SPOTIFY_TRACK]}})
        if request.url.path == "/v1/tracks/t1":
            return httpx.Response(200, json=SPOTIFY_TRACK)
        return httpx.Response(404)


class TestMusicService:
    async def test_search_maps_tracks(self):
        service = MusicService("id", "secret", transport=httpx.MockTransport(SpotifyStub()))
        result = await service.search_tracks("song")
        track = result.tracks[0]
        assert track.artist == "A, B"
        assert track.album_art == "https://img/1.jpg"
        assert track.duration == 201000

    async def test_token_is_cached_until_margin(self):
        now = [0.0]
        stub = SpotifyStub()
        service = MusicService("id", "secret", transport=httpx.MockTransport(stub), clock=lambda: now[0])
        await service.search_tracks("a")
        await service.search_tracks("b")
        assert stub.token_calls == 1
        now[0] = 3600 - 60
        await service.search_tracks("c")
        assert stub.token_calls == 2

    async def test_not_configured(self):
        with pytest.raises(MusicNotConfiguredError):
            await MusicService("", "").search_tracks("song")

    async def test_token_failure(self):
        service = MusicService("id", "secret", transport=httpx.MockTransport(SpotifyStub(token_status=400)))
        with pytest.raises(MusicSearchError):
            await service.search_tracks("song")

    async def test_get_track(self):
        service = MusicService("id", "secret", transport=httpx.MockTransport(SpotifyStub()))
        assert (await service.get_track("t1")).name == "Song"
        assert await service.get_track("missing") is None


# ===== GIFs =====

TENOR_RESULT = {
    "id": "42",
    "media_formats": {
        "gif": {"url": "https://media/42.gif", "dims": [320, 240]},
        "tinygif": {"url": "https://media/42_t.gif", "dims": [160, 120]},
    },
}


class TestGifService:
    async def test_no_key_returns_mock(self):
        result = await GifService("").search("cats")
        assert [g.id for g in result.gifs] == [g.id for g in MOCK_GIFS]

    async def test_search_params_and_mapping(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"results": [TENOR_RESULT], "next": "CAo"})

        result = await GifService("key", transport=httpx.MockTransport(handler)).search("cats", 5, "p1")
        params = parse_qs(urlparse(str(seen[0].url)).query)
        assert seen[0].url.path == "/v2/search"
        assert params["q"] == ["cats"]
        assert params["pos"] == ["p1"]
        assert params["media_filter"] == ["gif,tinygif"]
        assert params["contentfilter"] == ["medium"]
        assert result.next == "CAo"
        gif = result.gifs[0]
        assert (gif.url, gif.preview_url, gif.width, gif.height) == (
            "https://media/42.gif", "https://media/42_t.gif", 320, 240
        )

    async def test_featured_without_query(self):
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"results": []})

        await GifService("key", transport=httpx.MockTransport(handler)).search(None)
        assert paths == ["/v2/featured"]

    async def test_upstream_error_falls_back_to_mock(self):
        service = GifService("key", transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        result = await service.search("cats")
        assert result.gifs[0].id == "mock1"


# ===== Storage =====

@pytest.fixture
def storage_settings(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_ACCESS_KEY_ID", "AKIATEST")
    monkeypatch.setattr(settings, "STORAGE_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setattr(settings, "STORAGE_ACCOUNT_ID", "acct")
    monkeypatch.setattr(settings, "STORAGE_ENDPOINT_URL", "")
    monkeypatch.setattr(settings, "STORAGE_PUBLIC_URL", "https://media.bevocl.com")


def uploader() -> Profile:
    return Profile(id=uuid.uuid4(), username="alice", email="a@test.com", password_hash="x")


class TestStoragePresign:
    def test_key_layout(self):
        assert build_key("avatar", "u1", "png").startswith("avatars/u1/")
        assert build_key("post_image", "u1", "jpg", "p1", 3).startswith("posts/u1/p1/images/3_")
        assert build_key("post_audio", "u1", "mp3", "p1").startswith("posts/u1/p1/audio/")

    def test_presigned_put(self, storage_settings):
        service = StorageService()
        assert service.endpoint_url == "https://acct.r2.cloudflarestorage.com"
        data = PresignRequest(upload_type="avatar", content_type="image/png", file_size=1024)
        result = service.create_presigned_upload(uploader(), data)
        assert result.key.endswith(".png")
        assert result.public_url == f"https://media.bevocl.com/{result.key}"
        assert "X-Amz-Signature" in result.upload_url
        assert result.key.split("/")[-1] in result.upload_url
        assert result.media_type == "image"
        assert result.max_size == 10 * 1024 * 1024

    def test_rejects_wrong_type(self, storage_settings):
        data = PresignRequest(upload_type="post_video", content_type="image/png", post_id=uuid.uuid4())
        with pytest.raises(BadRequestError) as exc:
            StorageService().create_presigned_upload(uploader(), data)
        assert exc.value.detail == "Invalid file type for post_video: image/png"

    def test_rejects_oversize(self, storage_settings):
        data = PresignRequest(upload_type="post_audio", content_type="audio/mpeg", post_id=uuid.uuid4(), file_size=51 * 1024 * 1024)
        with pytest.raises(BadRequestError) as exc:
            StorageService().create_presigned_upload(uploader(), data)
        assert exc.value.detail == "File too large. Maximum size is 50MB"

    def test_post_key_uses_post_uuid(self, storage_settings):
        user = uploader()
        post_id = uuid.uuid4()
        data = PresignRequest(upload_type="post_image", content_type="image/jpeg", post_id=str(post_id), index=2)
        result = StorageService().create_presigned_upload(user, data)
        assert result.key.startswith(f"posts/{user.id}/{post_id}/images/2_")

    def test_post_id_rejects_path_segments(self):
        with pytest.raises(ValidationError):
            PresignRequest(upload_type="post_image", content_type="image/jpeg", post_id="../avatars")

    def test_post_upload_needs_post_id(self, storage_settings):
        data = PresignRequest(upload_type="post_image", content_type="image/jpeg")
        with pytest.raises(BadRequestError):
            StorageService().create_presigned_upload(uploader(), data)

    def test_unconfigured(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_ACCESS_KEY_ID", "")
        data = PresignRequest(upload_type="avatar", content_type="image/png")
        with pytest.raises(ServiceUnavailableError):
            StorageService().create_presigned_upload(uploader(), data)

    def test_upload_rate_limit(self, storage_settings):
        service = StorageService()
        user = uploader()
        data = PresignRequest(upload_type="header", content_type="image/webp")
        for _ in range(50):
            service.create_presigned_upload(user, data)
        with pytest.raises(TooManyRequestsError) as exc:
            service.create_presigned_upload(user, data)
        assert exc.value.headers["X-RateLimit-Remaining"] == "0"
