"""입력값 검증 유틸리티 — 사용자명, 타임존, URL, HTML 텍스트 추출.

Input validation helpers: username format, IANA timezone names,
link URLs and plain-text extraction from user HTML.
"""

import html
import re
from dataclasses import dataclass
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

USERNAME_REGEX: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9_]{2,19}$")

RESERVED_USERNAMES: frozenset[str] = frozenset({
    "admin", "administrator", "mod", "moderator", "support", "help",
    "vocl", "bevocl", "bvocl", "be_vocl", "system", "official", "staff",
    "team", "api", "www", "mail", "email", "root", "null", "undefined",
    "settings", "feed", "profile", "login", "signup", "auth", "terms",
    "privacy", "security", "secure", "verify", "verified", "real",
    "authentic", "trust", "trusted", "ceo", "founder", "owner",
})

# 운영진 사칭 패턴 — 부분 일치 시 거부 (Staff impersonation, substring match)
BLOCKED_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in (
        r"bevocl", r"be_vocl", r"bvocl", r"b_vocl",
        r"vocl_team", r"voclteam", r"vocl_staff", r"voclstaff",
        r"vocl_admin", r"vocladmin", r"vocl_support", r"voclsupport",
        r"vocl_security", r"voclsecurity", r"vocl_official", r"voclofficial",
        r"staff_team", r"staffteam", r"security_team", r"securityteam",
        r"support_team", r"supportteam", r"official_staff", r"officialstaff",
        r"official_team", r"officialteam", r"official_support", r"officialsupport",
        r"real_staff", r"realstaff", r"real_admin", r"realadmin",
        r"verified_staff", r"verifiedstaff",
    )
)

COMMON_TIMEZONES: tuple[str, ...] = (
    "America/New_York", "America/Chicago", "America/Denver", "America/Los_Angeles",
    "America/Anchorage", "Pacific/Honolulu", "America/Toronto", "America/Vancouver",
    "America/Mexico_City", "America/Sao_Paulo", "America/Argentina/Buenos_Aires",
    "Europe/London", "Europe/Paris", "Europe/Berlin", "Europe/Rome", "Europe/Madrid",
    "Europe/Amsterdam", "Europe/Stockholm", "Europe/Moscow", "Africa/Cairo",
    "Africa/Johannesburg", "Asia/Dubai", "Asia/Kolkata", "Asia/Bangkok",
    "Asia/Singapore", "Asia/Hong_Kong", "Asia/Shanghai", "Asia/Tokyo", "Asia/Seoul",
    "Australia/Sydney", "Australia/Melbourne", "Australia/Perth", "Pacific/Auckland",
    "UTC",
)

_TAG_RE: re.Pattern[str] = re.compile(r"<[^>]*>")


@dataclass(frozen=True)
class UsernameValidationResult:
    """사용자명 검증 결과 — valid가 False면 error에 구체적 사유."""

    valid: bool
    error: str | None = None


def normalize_username(username: str) -> str:
    return username.lower().strip()


def _contains_blocked_pattern(username: str) -> bool:
    return any(pattern.search(username) for pattern in BLOCKED_PATTERNS)


def validate_username_format(username: str) -> UsernameValidationResult:
    """사용자명 형식을 검증합니다.

    Validate a username. The input is lowercased and stripped first; checks
    run in a fixed order so each rejection names the first rule broken.

    Args:
        username: 검증할 사용자명 (Raw username as typed)

    Returns:
        UsernameValidationResult: 검증 결과 (valid flag plus reason)
    """
    normalized: str = normalize_username(username)

    if not normalized:
        return UsernameValidationResult(False, "Username is required")
    if len(normalized) < 3:
        return UsernameValidationResult(False, "Username must be at least 3 characters")
    if len(normalized) > 20:
        return UsernameValidationResult(False, "Username must be 20 characters or less")
    if not re.match(r"[a-z]", normalized):
        return UsernameValidationResult(False, "Username must start with a letter")
    if "__" in normalized:
        return UsernameValidationResult(False, "Username cannot have consecutive underscores")
    if not USERNAME_REGEX.match(normalized):
        return UsernameValidationResult(
            False, "Username can only contain lowercase letters, numbers, and underscores"
        )
    if normalized in RESERVED_USERNAMES:
        return UsernameValidationResult(False, "This username is reserved")
    if _contains_blocked_pattern(normalized):
        return UsernameValidationResult(False, "This username is not allowed")
    return UsernameValidationResult(True)


def is_valid_timezone(timezone: str | None) -> bool:
    """IANA 타임존 이름인지 확인 — zoneinfo 데이터베이스 기준."""
    if not timezone or not isinstance(timezone, str):
        return False
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def is_valid_url(url: str) -> bool:
    """http/https/mailto/tel 스킴만 허용."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme in ("http", "https"):
        return bool(parsed.netloc)
    return parsed.scheme in ("mailto", "tel") and bool(parsed.path)


def is_valid_profile_link_url(url: str) -> bool:
    """프로필 링크용 — http/https만 허용."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def strip_html(value: str | None) -> str:
    """HTML 태그를 공백으로 치환하고 엔티티를 풀어 평문을 돌려줍니다.

    Replace tags with spaces, unescape entities and collapse whitespace.
    """
    if not value:
        return ""
    text: str = html.unescape(_TAG_RE.sub(" ", value))
    return " ".join(text.split())


def content_preview(content: dict | None, length: int = 100, default: str = "Your post") -> str:
    """게시글 content JSON에서 평문 미리보기를 만듭니다.

    Build a plain-text preview from post content: ``plain`` first, then
    ``html``, then an image/video caption. Falls back to ``default``.
    """
    if not content:
        return default
    for key in ("plain", "html", "caption_html", "title"):
        value = content.get(key)
        if isinstance(value, str):
            text: str = strip_html(value) if key != "plain" else value.strip()
            if text:
                return text[:length]
    return default
