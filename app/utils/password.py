"""비밀번호 해싱 및 검증 유틸리티 모듈 (bcrypt).

Password hashing and verification with bcrypt.
"""

import bcrypt

# bcrypt는 72바이트 이후를 무시 — bcrypt only reads the first 72 bytes
_BCRYPT_MAX_BYTES: int = 72

PASSWORD_MIN_LENGTH: int = 8


def hash_password(password: str) -> str:
    """평문 비밀번호를 솔트 포함 bcrypt 해시로 변환합니다."""
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """평문과 저장된 해시 비교. 해시 형식이 깨졌으면 False.

    Returns False instead of raising when the stored hash is malformed.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES], hashed_password.encode("utf-8")
        )
    except ValueError:
        return False
