"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification.

JWT Payload Structure:
    {
        "sub": "profile_uuid",      # 프로필 ID (Profile identifier)
        "username": "alice",        # 사용자명 (Username at issue time)
        "role": 0,                  # 역할 레벨 (Role level at issue time)
        "exp": 1234567890,          # 만료 시간 (Expiration)
        "type": "access"|"refresh"  # 토큰 유형 (Token type discriminator)
    }

The role claim is informational only; authorization always re-reads the
profile row so demotions and bans apply immediately.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt

from app.config import settings


def _encode(data: dict[str, Any], expires_in: timedelta, token_type: str) -> str:
    to_encode: dict[str, Any] = data.copy()
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_in,
        "iat": datetime.now(timezone.utc),
        "type": token_type,
    })
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: dict[str, Any]) -> str:
    """액세스 토큰 발급 — JWT_ACCESS_TOKEN_EXPIRE_MINUTES 후 만료."""
    return _encode(data, timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES), "access")


def create_refresh_token(data: dict[str, Any]) -> str:
    """리프레시 토큰 발급 — JWT_REFRESH_TOKEN_EXPIRE_DAYS 후 만료.

    A random ``jti`` keeps two refresh tokens issued within the same second
    distinct, since refresh tokens are stored under a unique constraint.
    """
    payload: dict[str, Any] = {**data, "jti": uuid.uuid4().hex}
    return _encode(payload, timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS), "refresh")


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
