"""@멘션 추출 유틸리티.

Mention extraction from post, caption and comment HTML.
Tags are replaced with spaces before matching so ``<b>@alice</b>`` and
``@alice<br>@bob`` both resolve cleanly.
"""

import re

from app.utils.validation import strip_html

MENTION_REGEX: re.Pattern[str] = re.compile(r"@([a-zA-Z0-9_]+)")


def extract_mentions(content: str | None) -> list[str]:
    """본문에서 멘션된 사용자명 목록을 추출합니다.

    Return mentioned usernames, lowercased and deduplicated in first-seen
    order.

    Example:
        extract_mentions("@alice said hi to @Bob and @alice")  # ["alice", "bob"]
    """
    text: str = strip_html(content)
    seen: dict[str, None] = {}
    for match in MENTION_REGEX.finditer(text):
        seen.setdefault(match.group(1).lower(), None)
    return list(seen)
