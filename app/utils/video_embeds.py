"""동영상 링크 파싱 — YouTube, Vimeo, Rumble, Dailymotion.

Video link parsing for the supported embed platforms. Any accepted URL form
of a video (watch page, short link, embed, shorts) maps to the same
canonical embed URL.
"""

import re
from dataclasses import dataclass

# 플랫폼별 URL 패턴 — 첫 번째 캡처 그룹이 영상 ID
# Per-platform patterns; group 1 is the video id. Checked in order.
VIDEO_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "youtube": (
        re.compile(r"(?:youtube\.com/watch\?v=|youtube\.com/watch\?.+&v=)([a-zA-Z0-9_-]{11})"),
        re.compile(r"youtu\.be/([a-zA-Z0-9_-]{11})"),
        re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]{11})"),
        re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
    ),
    "vimeo": (
        re.compile(r"vimeo\.com/(\d+)"),
        re.compile(r"player\.vimeo\.com/video/(\d+)"),
    ),
    "rumble": (
        re.compile(r"rumble\.com/embed/([a-zA-Z0-9]+)"),
        re.compile(r"rumble\.com/([a-zA-Z0-9]+)-[^/]+\.html"),
    ),
    "dailymotion": (
        re.compile(r"dailymotion\.com/video/([a-zA-Z0-9]+)"),
        re.compile(r"dailymotion\.com/embed/video/([a-zA-Z0-9]+)"),
        re.compile(r"dai\.ly/([a-zA-Z0-9]+)"),
    ),
}

_EMBED_URLS: dict[str, str] = {
    "youtube": "https://www.youtube.com/embed/{id}",
    "vimeo": "https://player.vimeo.com/video/{id}",
    "rumble": "https://rumble.com/embed/{id}/",
    "dailymotion": "https://www.dailymotion.com/embed/video/{id}",
}

# Vimeo/Rumble 썸네일은 예측 불가 — No predictable thumbnail for vimeo/rumble
_THUMBNAIL_URLS: dict[str, str] = {
    "youtube": "https://img.youtube.com/vi/{id}/hqdefault.jpg",
    "dailymotion": "https://www.dailymotion.com/thumbnail/video/{id}",
}

_DISPLAY_NAMES: dict[str, str] = {
    "youtube": "YouTube",
    "vimeo": "Vimeo",
    "rumble": "Rumble",
    "dailymotion": "Dailymotion",
}

SUPPORTED_VIDEO_PLATFORMS: tuple[dict[str, str], ...] = (
    {"id": "youtube", "name": "YouTube", "domain": "youtube.com, youtu.be"},
    {"id": "vimeo", "name": "Vimeo", "domain": "vimeo.com"},
    {"id": "rumble", "name": "Rumble", "domain": "rumble.com"},
    {"id": "dailymotion", "name": "Dailymotion", "domain": "dailymotion.com, dai.ly"},
)


@dataclass(frozen=True)
class ParsedVideoEmbed:
    """파싱된 영상 정보 — Parsed embed descriptor."""

    platform: str
    video_id: str
    embed_url: str
    thumbnail_url: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "platform": self.platform,
            "video_id": self.video_id,
            "embed_url": self.embed_url,
            "thumbnail_url": self.thumbnail_url,
        }


def parse_video_url(url: str | None) -> ParsedVideoEmbed | None:
    """영상 URL을 파싱합니다. 지원하지 않는 URL이면 None.

    Parse a video URL into its platform, id and embed URL.
    Returns None for empty input or unsupported hosts.
    """
    if not url:
        return None
    normalized: str = url.strip()

    for platform, patterns in VIDEO_PATTERNS.items():
        for pattern in patterns:
            match = pattern.search(normalized)
            if match and match.group(1):
                video_id: str = match.group(1)
                thumbnail: str | None = _THUMBNAIL_URLS.get(platform)
                return ParsedVideoEmbed(
                    platform=platform,
                    video_id=video_id,
                    embed_url=_EMBED_URLS[platform].format(id=video_id),
                    thumbnail_url=thumbnail.format(id=video_id) if thumbnail else None,
                )
    return None


def is_supported_video_url(url: str | None) -> bool:
    return parse_video_url(url) is not None


def get_platform_display_name(platform: str) -> str:
    return _DISPLAY_NAMES.get(platform, platform)
