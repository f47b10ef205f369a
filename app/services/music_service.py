"""음악 검색 서비스 — Spotify Web API (client credentials).

Music search against the Spotify Web API. The app token is obtained with
the client-credentials grant and cached until 60 seconds before it expires.
"""

import logging
import time
from typing import Any, Callable

import httpx

from app.config import settings
from app.schemas.media import Track, TrackSearchResponse

logger = logging.getLogger(__name__)

TOKEN_URL: str = "https://accounts.spotify.com/api/token"
API_URL: str = "https://api.spotify.com/v1"
TOKEN_EXPIRY_MARGIN: int = 60


class MusicNotConfiguredError(Exception):
    """자격 증명 미설정 — Spotify credentials are missing."""


class MusicSearchError(Exception):
    """Spotify 호출 실패 — Upstream call failed."""


def to_track(item: dict[str, Any]) -> Track:
    images: list[dict[str, Any]] = (item.get("album") or {}).get("images") or []
    return Track(
        id=item["id"],
        name=item["name"],
        artist=", ".join(a["name"] for a in item.get("artists") or []),
        album=(item.get("album") or {}).get("name", ""),
        album_art=images[0]["url"] if images else None,
        preview_url=item.get("preview_url"),
        duration=item.get("duration_ms") or 0,
        external_url=(item.get("external_urls") or {}).get("spotify", ""),
    )


class MusicService:
    """Spotify 검색 클라이언트.

    Args:
        client_id / client_secret: 앱 자격 증명 (App credentials)
        transport: httpx 전송 계층 — 테스트에서 MockTransport 주입
        clock: 토큰 만료 계산용 시계 (Clock for token expiry)
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.transport = transport
        self.clock = clock
        self._token: str | None = None
        self._expires_at: float = 0.0

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=15.0)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._token and self.clock() < self._expires_at:
            return self._token
        if not self.is_configured:
            raise MusicNotConfiguredError("Spotify credentials not configured")

        response: httpx.Response = await client.post(
            TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        if response.status_code != 200:
            raise MusicSearchError("Failed to get Spotify access token")
        data: dict[str, Any] = response.json()
        self._token = data["access_token"]
        self._expires_at = self.clock() + int(data.get("expires_in", 3600)) - TOKEN_EXPIRY_MARGIN
        return self._token

    async def search_tracks(self, query: str, limit: int = 5) -> TrackSearchResponse:
        """트랙 검색.

        Raises:
            MusicNotConfiguredError: 자격 증명 없음
            MusicSearchError: 토큰 발급 또는 검색 실패
        """
        try:
            async with self._client() as client:
                token: str = await self._get_access_token(client)
                response: httpx.Response = await client.get(
                    f"{API_URL}/search",
                    params={"q": query, "type": "track", "limit": str(limit)},
                    headers={"Authorization": f"Bearer {token}"},
                )
            if response.status_code != 200:
                raise MusicSearchError("Spotify search failed")
            items: list[dict[str, Any]] = response.json()["tracks"]["items"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.error("Spotify search error: %s", exc)
            raise MusicSearchError("Spotify search failed") from exc
        return TrackSearchResponse(tracks=[to_track(item) for item in items])

    async def get_track(self, track_id: str) -> Track | None:
        """트랙 단건 조회 — 없는 트랙이면 None."""
        try:
            async with self._client() as client:
                token: str = await self._get_access_token(client)
                response: httpx.Response = await client.get(
                    f"{API_URL}/tracks/{track_id}", headers={"Authorization": f"Bearer {token}"}
                )
            if response.status_code != 200:
                return None
            return to_track(response.json())
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.error("Spotify track lookup error: %s", exc)
            raise MusicSearchError("Spotify lookup failed") from exc


_service: MusicService | None = None


def get_music_service() -> MusicService:
    global _service
    if _service is None:
        _service = MusicService(settings.SPOTIFY_CLIENT_ID, settings.SPOTIFY_CLIENT_SECRET)
    return _service


def set_music_service(service: MusicService | None) -> None:
    """서비스 교체 — 테스트용."""
    global _service
    _service = service
