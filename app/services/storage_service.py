"""스토리지 서비스 — S3 호환 오브젝트 스토리지 presigned 업로드.

Storage Service — Presigned PUT URLs against an S3-compatible object store
(Cloudflare R2 in production). The client uploads directly to storage; the
API only validates the request and signs the URL.

Key layout:
    avatars/{user_id}/{ts}_{rand}.{ext}
    headers/{user_id}/{ts}_{rand}.{ext}
    posts/{user_id}/{post_id}/images/{index}_{ts}_{rand}.{ext}
    posts/{user_id}/{post_id}/video/{ts}_{rand}.{ext}
    posts/{user_id}/{post_id}/audio/{ts}_{rand}.{ext}
"""

import secrets
import time

from app.config import settings
from app.models.profile import Profile
from app.schemas.media import PresignRequest, PresignResponse
from app.utils.exceptions import BadRequestError, ServiceUnavailableError, TooManyRequestsError
from app.utils.rate_limit import RateLimitResult, check_rate_limit

MB: int = 1024 * 1024

# 허용 MIME 타입 → 확장자 (Allowed content types and their file extension)
IMAGE_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
VIDEO_TYPES: dict[str, str] = {
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}
AUDIO_TYPES: dict[str, str] = {
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/ogg": "ogg",
    "audio/webm": "webm",
}

MAX_SIZES: dict[str, int] = {
    "image": 10 * MB,
    "video": 100 * MB,
    "audio": 50 * MB,
}

# 업로드 유형별 미디어 종류 (Media kind per upload type)
_UPLOAD_MEDIA: dict[str, str] = {
    "avatar": "image",
    "header": "image",
    "post_image": "image",
    "post_video": "video",
    "post_audio": "audio",
}

_TYPES_BY_MEDIA: dict[str, dict[str, str]] = {
    "image": IMAGE_TYPES,
    "video": VIDEO_TYPES,
    "audio": AUDIO_TYPES,
}


def _unique_name(ext: str) -> str:
    return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}.{ext}"


def build_key(upload_type: str, user_id: str, ext: str, post_id: str | None = None, index: int = 0) -> str:
    """업로드 유형별 스토리지 키를 생성합니다."""
    if upload_type == "avatar":
        return f"avatars/{user_id}/{_unique_name(ext)}"
    if upload_type == "header":
        return f"headers/{user_id}/{_unique_name(ext)}"
    if upload_type == "post_image":
        return f"posts/{user_id}/{post_id}/images/{index}_{_unique_name(ext)}"
    if upload_type == "post_video":
        return f"posts/{user_id}/{post_id}/video/{_unique_name(ext)}"
    return f"posts/{user_id}/{post_id}/audio/{_unique_name(ext)}"


class StorageService:
    """presigned 업로드 URL 서비스 — boto3 클라이언트는 최초 사용 시 생성."""

    def __init__(self) -> None:
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(settings.STORAGE_ACCESS_KEY_ID and settings.STORAGE_SECRET_ACCESS_KEY and self.endpoint_url)

    @property
    def endpoint_url(self) -> str:
        if settings.STORAGE_ENDPOINT_URL:
            return settings.STORAGE_ENDPOINT_URL
        if settings.STORAGE_ACCOUNT_ID:
            return f"https://{settings.STORAGE_ACCOUNT_ID}.r2.cloudflarestorage.com"
        return ""

    @property
    def client(self):
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                region_name=settings.STORAGE_REGION,
                aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID,
                aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    def public_url(self, key: str) -> str:
        base: str = settings.STORAGE_PUBLIC_URL.rstrip("/")
        if not base:
            base = f"{self.endpoint_url.rstrip('/')}/{settings.STORAGE_BUCKET}"
        return f"{base}/{key}"

    def create_presigned_upload(self, user: Profile, data: PresignRequest) -> PresignResponse:
        """presigned PUT URL을 발급합니다.

        Raises:
            TooManyRequestsError: 시간당 업로드 50건 초과 (Upload rate limit)
            BadRequestError: 허용되지 않는 타입/크기, post_id 누락
            ServiceUnavailableError: 스토리지 미설정 (Storage not configured)
        """
        limit: RateLimitResult = check_rate_limit(f"upload:{user.id}", "upload")
        if not limit.allowed:
            raise TooManyRequestsError("Too many uploads. Please try again later.", limit)

        media: str = _UPLOAD_MEDIA[data.upload_type]
        ext: str | None = _TYPES_BY_MEDIA[media].get(data.content_type.lower())
        if ext is None:
            raise BadRequestError(f"Invalid file type for {data.upload_type}: {data.content_type}")
        max_size: int = MAX_SIZES[media]
        if data.file_size is not None and data.file_size > max_size:
            raise BadRequestError(f"File too large. Maximum size is {max_size // MB}MB")
        if data.upload_type.startswith("post_") and not data.post_id:
            raise BadRequestError("post_id is required for post uploads")

        if not self.is_configured:
            raise ServiceUnavailableError("Storage is not configured")

        post_id: str | None = str(data.post_id) if data.post_id else None
        key: str = build_key(data.upload_type, str(user.id), ext, post_id, data.index)
        upload_url: str = self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.STORAGE_BUCKET,
                "Key": key,
                "ContentType": data.content_type,
            },
            ExpiresIn=settings.STORAGE_PRESIGN_EXPIRES,
        )
        return PresignResponse(
            upload_url=upload_url,
            key=key,
            public_url=self.public_url(key),
            max_size=max_size,
            media_type=media,
            expires_in=settings.STORAGE_PRESIGN_EXPIRES,
        )


storage_service: StorageService = StorageService()
