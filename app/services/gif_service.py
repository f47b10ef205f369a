"""GIF 검색 서비스 — Tenor v2 API, 실패 시 목업 목록.

GIF search and featured GIFs via the Tenor v2 API. With no API key, or on
any upstream error, a small mock list is returned instead.
"""

import logging
from typing import Any

import httpx

from app.config import settings
from app.schemas.media import Gif, GifSearchResponse

logger = logging.getLogger(__name__)

TENOR_URL: str = "https://tenor.googleapis.com/v2"

MOCK_GIFS: tuple[Gif, ...] = (
    Gif(
        id="mock1",
        url="https://media.tenor.com/images/example1.gif",
        preview_url="https://media.tenor.com/images/example1_preview.gif",
        width=200,
        height=200,
    ),
)


def mock_response() -> GifSearchResponse:
    return GifSearchResponse(gifs=list(MOCK_GIFS), next="")


def to_gif(result: dict[str, Any]) -> Gif:
    formats: dict[str, Any] = result["media_formats"]
    gif: dict[str, Any] = formats["gif"]
    preview: dict[str, Any] = formats.get("tinygif") or formats.get("nanogif") or gif
    return Gif(
        id=str(result["id"]),
        url=gif["url"],
        preview_url=preview["url"],
        width=gif["dims"][0],
        height=gif["dims"][1],
    )


class GifService:
    """Tenor 클라이언트 — transport는 테스트에서 MockTransport 주입."""

    def __init__(self, api_key: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.api_key = api_key
        self.transport = transport

    async def search(self, query: str | None = None, limit: int = 20, pos: str | None = None) -> GifSearchResponse:
        """검색어가 있으면 검색, 없으면 추천 GIF."""
        if not self.api_key:
            return mock_response()

        params: dict[str, str] = {
            "key": self.api_key,
            "limit": str(limit),
            "media_filter": "gif,tinygif",
            "contentfilter": "medium",
        }
        if query:
            params["q"] = query
        if pos:
            params["pos"] = pos
        endpoint: str = "search" if query else "featured"

        try:
            async with httpx.AsyncClient(base_url=TENOR_URL, transport=self.transport, timeout=10.0) as client:
                response: httpx.Response = await client.get(f"/{endpoint}", params=params)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            gifs: list[Gif] = [to_gif(result) for result in data.get("results") or []]
        except (httpx.HTTPError, ValueError, KeyError, IndexError) as exc:
            logger.error("Tenor API error: %s", exc)
            return mock_response()
        return GifSearchResponse(gifs=gifs, next=data.get("next") or "")


_service: GifService | None = None


def get_gif_service() -> GifService:
    global _service
    if _service is None:
        _service = GifService(settings.TENOR_API_KEY)
    return _service


def set_gif_service(service: GifService | None) -> None:
    global _service
    _service = service
