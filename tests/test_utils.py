"""유틸리티 단위 테스트 — 역할, 레이트 리밋, 입력 검증, 멘션, 영상 링크, 오류 정제.

Unit tests for the pure helpers in app.utils.
"""

import pytest

from app.utils import roles
from app.utils.errors import GENERIC_ERROR_MESSAGE, handle_server_error, sanitize_error_message
from app.utils.mentions import extract_mentions
from app.utils.rate_limit import (
    RATE_LIMITS,
    RateLimitConfig,
    RateLimiter,
    create_rate_limiter,
    get_rate_limit_headers,
)
from app.utils.validation import (
    COMMON_TIMEZONES,
    content_preview,
    is_valid_profile_link_url,
    is_valid_timezone,
    is_valid_url,
    strip_html,
    validate_username_format,
)
from app.utils.video_embeds import (
    SUPPORTED_VIDEO_PLATFORMS,
    get_platform_display_name,
    is_supported_video_url,
    parse_video_url,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


# ===== Roles =====

class TestRoles:
    """역할 레벨 판정."""

    def test_role_level_clamps_down(self):
        assert roles.get_role_level(4) == roles.JUNIOR_MOD
        assert roles.get_role_level(2) == roles.TRUSTED_USER
        assert roles.get_role_level(-3) == roles.USER
        assert roles.get_role_level(99) == roles.ADMIN

    def test_role_names(self):
        assert roles.get_role_name(roles.SENIOR_MOD) == "Senior Moderator"
        assert roles.get_role_name(6) == "Moderator"

    def test_staff_and_admin_access(self):
        assert not roles.is_staff(roles.TRUSTED_USER)
        assert roles.is_staff(roles.JUNIOR_MOD)
        assert not roles.can_access_admin(roles.JUNIOR_MOD)
        assert roles.can_access_admin(roles.MODERATOR)
        assert roles.can_manage_roles(roles.ADMIN)
        assert not roles.can_manage_roles(roles.SENIOR_MOD)

    def test_only_admin_assigns_lower_roles(self):
        assert roles.can_assign_role(roles.ADMIN, roles.SENIOR_MOD)
        assert not roles.can_assign_role(roles.ADMIN, roles.ADMIN)
        assert not roles.can_assign_role(roles.SENIOR_MOD, roles.USER)

    def test_assignable_roles_for_admin(self):
        levels = [r["level"] for r in roles.get_assignable_roles(roles.ADMIN)]
        assert levels == [0, 1, 3, 5, 7]
        assert roles.get_assignable_roles(roles.MODERATOR) == []

    def test_moderate_user_requires_higher_level(self):
        assert roles.can_moderate_user(roles.JUNIOR_MOD, roles.USER)
        assert not roles.can_moderate_user(roles.JUNIOR_MOD, roles.JUNIOR_MOD)
        assert not roles.can_moderate_user(roles.TRUSTED_USER, roles.USER)

    def test_escalation_levels(self):
        assert roles.get_escalation_level(roles.JUNIOR_MOD) == roles.MODERATOR
        assert roles.get_escalation_level(roles.MODERATOR) == roles.SENIOR_MOD
        assert roles.get_escalation_level(roles.SENIOR_MOD) is None
        assert roles.get_escalation_level(roles.USER) is None

    def test_escalation_targets_strictly_above(self):
        assert roles.get_escalation_targets(roles.JUNIOR_MOD) == [5, 7, 10]
        assert roles.get_escalation_targets(roles.MODERATOR) == [7, 10]
        assert roles.get_escalation_targets(roles.ADMIN) == []


# ===== Rate limit =====

class TestRateLimiter:
    """고정 윈도우 레이트 리미터."""

    def test_allows_up_to_limit_then_rejects(self):
        limiter = RateLimiter(clock=FakeClock())
        config = RateLimitConfig(limit=3, window_seconds=60)
        results = [limiter.check("k", config) for _ in range(4)]
        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_window_resets_after_expiry(self):
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        config = RateLimitConfig(limit=1, window_seconds=60)
        assert limiter.check("k", config).allowed
        assert not limiter.check("k", config).allowed
        clock.now += 60
        result = limiter.check("k", config)
        assert result.allowed
        assert result.remaining == 0

    def test_keys_are_independent(self):
        limiter = RateLimiter(clock=FakeClock())
        config = RateLimitConfig(limit=1, window_seconds=60)
        assert limiter.check("a", config).allowed
        assert limiter.check("b", config).allowed

    def test_reset_in_counts_down(self):
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        config = RateLimitConfig(limit=5, window_seconds=100)
        limiter.check("k", config)
        clock.now += 30
        assert limiter.check("k", config).reset_in == pytest.approx(70)

    def test_sweep_removes_only_expired(self):
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        limiter.check("short", RateLimitConfig(limit=1, window_seconds=10))
        limiter.check("long", RateLimitConfig(limit=1, window_seconds=1000))
        clock.now += 20
        assert limiter.sweep_expired() == 1
        assert len(limiter) == 1

    def test_headers_round_reset_up(self):
        limiter = RateLimiter(clock=FakeClock())
        result = limiter.check("k", RateLimitConfig(limit=10, window_seconds=59.2))
        headers = get_rate_limit_headers(result)
        assert headers == {
            "X-RateLimit-Limit": "10",
            "X-RateLimit-Remaining": "9",
            "X-RateLimit-Reset": "60",
        }

    def test_presets(self):
        assert RATE_LIMITS["report"].limit == 10
        assert RATE_LIMITS["upload"].window_seconds == 3600
        assert RATE_LIMITS["auth_email"].limit == 5

    def test_bound_limiter_uses_preset(self):
        check = create_rate_limiter("login")
        results = [check("bound-limiter-test") for _ in range(6)]
        assert [r.allowed for r in results] == [True] * 5 + [False]
        assert results[0].limit == RATE_LIMITS["login"].limit


# ===== Validation =====

class TestUsernameValidation:
    """사용자명 규칙 — 첫 번째로 어긴 규칙의 메시지를 반환."""

    @pytest.mark.parametrize("username", ["alice", "Bob_99", "  carol  ", "abc"])
    def test_valid(self, username):
        assert validate_username_format(username).valid

    @pytest.mark.parametrize("username, error", [
        ("", "Username is required"),
        ("ab", "Username must be at least 3 characters"),
        ("a" * 21, "Username must be 20 characters or less"),
        ("1abc", "Username must start with a letter"),
        ("ab__cd", "Username cannot have consecutive underscores"),
        ("ab-cd", "Username can only contain lowercase letters, numbers, and underscores"),
        ("admin", "This username is reserved"),
        ("the_vocl_team", "This username is not allowed"),
    ])
    def test_invalid(self, username, error):
        result = validate_username_format(username)
        assert not result.valid
        assert result.error == error


class TestValidationHelpers:
    def test_timezones(self):
        assert is_valid_timezone("Asia/Seoul")
        assert is_valid_timezone("UTC")
        assert not is_valid_timezone("Mars/Olympus")
        assert not is_valid_timezone("")
        assert not is_valid_timezone(None)
        assert all(is_valid_timezone(tz) for tz in COMMON_TIMEZONES)

    def test_urls(self):
        assert is_valid_url("https://example.com/a")
        assert is_valid_url("mailto:me@example.com")
        assert not is_valid_url("javascript:alert(1)")
        assert is_valid_profile_link_url("http://example.com")
        assert not is_valid_profile_link_url("mailto:me@example.com")

    def test_strip_html(self):
        assert strip_html("<p>Hello&nbsp;<b>world</b></p>") == "Hello world"
        assert strip_html(None) == ""

    def test_content_preview_prefers_plain(self):
        assert content_preview({"plain": " hi ", "html": "<p>no</p>"}) == "hi"
        assert content_preview({"html": "<p>" + "x" * 150 + "</p>"}) == "x" * 100
        assert content_preview({"urls": ["a"]}) == "Your post"
        assert content_preview(None, default="-") == "-"


# ===== Mentions =====

class TestMentions:
    def test_lowercased_and_deduplicated(self):
        assert extract_mentions("@alice said hi to @Bob and @alice") == ["alice", "bob"]

    def test_html_boundaries(self):
        assert extract_mentions("<b>@alice</b><br>@bob_2") == ["alice", "bob_2"]

    def test_no_mentions(self):
        assert extract_mentions("no mentions here") == []
        assert extract_mentions(None) == []


# ===== Video embeds =====

class TestVideoEmbeds:
    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/shorts/dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
    ])
    def test_youtube_forms_share_embed(self, url):
        parsed = parse_video_url(url)
        assert parsed is not None
        assert parsed.platform == "youtube"
        assert parsed.embed_url == "https://www.youtube.com/embed/dQw4w9WgXcQ"
        assert parsed.thumbnail_url == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"

    def test_vimeo_has_no_thumbnail(self):
        parsed = parse_video_url("https://vimeo.com/123456")
        assert parsed.embed_url == "https://player.vimeo.com/video/123456"
        assert parsed.thumbnail_url is None

    def test_rumble_and_dailymotion(self):
        assert parse_video_url("https://rumble.com/v4abc-some-title.html").embed_url == (
            "https://rumble.com/embed/v4abc/"
        )
        assert parse_video_url("https://dai.ly/x8xyz").platform == "dailymotion"

    def test_unsupported(self):
        assert parse_video_url("https://example.com/video") is None
        assert parse_video_url("") is None
        assert not is_supported_video_url(None)
        assert get_platform_display_name("youtube") == "YouTube"
        assert get_platform_display_name("other") == "other"
        assert {p["id"] for p in SUPPORTED_VIDEO_PLATFORMS} == {"youtube", "vimeo", "rumble", "dailymotion"}


# ===== Error sanitisation =====

class TestErrorSanitisation:
    def test_development_passes_through(self):
        assert sanitize_error_message(ValueError("boom"), environment="development") == "boom"

    def test_production_hides_internals(self):
        err = RuntimeError('duplicate key value violates unique constraint "profiles_email_key"')
        assert sanitize_error_message(err, environment="production") == GENERIC_ERROR_MESSAGE

    def test_production_keeps_safe_messages(self):
        assert sanitize_error_message("Too many requests", environment="production") == "Too many requests"
        assert sanitize_error_message("Comment cannot be empty", environment="production") == (
            GENERIC_ERROR_MESSAGE
        )

    @pytest.mark.parametrize("environment", ["staging", "test", "PRODUCTION"])
    def test_other_environments_are_sanitised(self, environment):
        err = RuntimeError('duplicate key value violates unique constraint "x"')
        assert sanitize_error_message(err, environment=environment) == GENERIC_ERROR_MESSAGE
        assert sanitize_error_message("Too many requests", environment=environment) == "Too many requests"

    def test_non_errors_use_fallback(self):
        assert sanitize_error_message(42, "fallback") == "fallback"

    def test_handle_server_error_shape(self):
        body = handle_server_error("ctx", ValueError("Invalid thing"))
        assert body["success"] is False
        assert "error" in body
